"""
Token authentication for the portal API.

Kept apart from the login views so that DRF can import the
authentication class during settings initialisation without pulling in
views, serializers or models.  JWT bearer tokens are handled by
simplejwt's ``JWTAuthentication``, configured next to this class.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` for the long lived login token."""

    keyword = 'Token'
