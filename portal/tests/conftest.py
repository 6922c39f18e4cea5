import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from portal.models import User


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttles and bursary overviews live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    def _make(username, role='student', password='P@ssw0rd1', **extra):
        return User.objects.create_user(username=username, password=password, role=role,
                                        email=extra.pop('email', f'{username}@uni.test'), **extra)
    return _make
