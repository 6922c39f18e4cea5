"""
Paystack payment gateway client.

When the gateway is disabled (``PAYSTACK_ENABLE=0`` or no secret key)
a mock is used: initialisation returns a local authorization URL and
verification succeeds unless the reference contains ``fail``.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import requests
from django.conf import settings
from django.utils import timezone

from portal.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class GatewayInit:
    reference: str
    authorization_url: str
    access_code: str
    mock: bool = False


@dataclass
class GatewayVerification:
    success: bool
    reference: str
    amount: Optional[Decimal] = None
    gateway_response: str = ''
    paid_at: Optional[str] = None
    channel: str = ''
    raw: dict[str, Any] = field(default_factory=dict)


def is_mock() -> bool:
    return not (settings.PAYSTACK_ENABLE and settings.PAYSTACK_SECRET_KEY)


def _headers() -> dict[str, str]:
    return {
        'Authorization': f'Bearer {settings.PAYSTACK_SECRET_KEY}',
        'Content-Type': 'application/json',
    }


def initialize_transaction(*, email: str, amount: Decimal, reference: str,
                           metadata: Optional[dict] = None) -> GatewayInit:
    if is_mock():
        logger.info('Mock payment initialized: %s', reference)
        return GatewayInit(
            reference=reference,
            authorization_url=f'{settings.CLIENT_URL}/payment/mock?reference={reference}',
            access_code=f'mock_{reference}',
            mock=True,
        )
    payload = {
        'email': email,
        # Paystack amounts are in kobo
        'amount': int(Decimal(amount) * 100),
        'reference': reference,
        'metadata': metadata or {},
    }
    if settings.PAYSTACK_CALLBACK_URL:
        payload['callback_url'] = settings.PAYSTACK_CALLBACK_URL
    try:
        r = requests.post(f'{settings.PAYSTACK_BASE_URL}/transaction/initialize', json=payload,
                          headers=_headers(), timeout=settings.PAYSTACK_TIMEOUT)
        r.raise_for_status()
        data = r.json().get('data') or {}
    except (requests.RequestException, ValueError) as e:
        logger.error('Paystack initialization error for %s: %s', reference, e)
        raise GatewayError('Payment initialization failed')
    return GatewayInit(
        reference=data.get('reference', reference),
        authorization_url=data.get('authorization_url', ''),
        access_code=data.get('access_code', ''),
    )


def verify_transaction(reference: str) -> GatewayVerification:
    if is_mock():
        ok = 'fail' not in reference
        logger.info('Mock payment verified: %s (%s)', reference, 'success' if ok else 'failed')
        return GatewayVerification(
            success=ok,
            reference=reference,
            gateway_response='Successful' if ok else 'Failed',
            paid_at=timezone.now().isoformat(),
            channel='mock',
        )
    try:
        r = requests.get(f'{settings.PAYSTACK_BASE_URL}/transaction/verify/{reference}',
                         headers=_headers(), timeout=settings.PAYSTACK_TIMEOUT)
        r.raise_for_status()
        data = r.json().get('data') or {}
    except (requests.RequestException, ValueError) as e:
        logger.error('Paystack verification error for %s: %s', reference, e)
        raise GatewayError('Payment verification failed')
    amount = data.get('amount')
    return GatewayVerification(
        success=data.get('status') == 'success',
        reference=data.get('reference', reference),
        amount=(Decimal(amount) / 100) if amount is not None else None,
        gateway_response=data.get('gateway_response') or '',
        paid_at=data.get('paid_at'),
        channel=data.get('channel') or '',
        raw=data,
    )


def valid_signature(body: bytes, signature: Optional[str]) -> bool:
    """Check ``X-Paystack-Signature`` (HMAC-SHA512 of the raw body)."""
    secret = settings.PAYSTACK_SECRET_KEY
    if not secret:
        return is_mock()
    if not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected, signature)
