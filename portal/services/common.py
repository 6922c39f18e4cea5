"""Helpers shared by the service modules."""
from __future__ import annotations

import math
import random
import time
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.db.models import QuerySet


def paginate(qs: QuerySet, page: Optional[int] = 1, page_size: Optional[int] = None) -> tuple[list, dict]:
    """Slice ``qs`` and return ``(items, pagination)``.

    ``page`` starts at 1 and ``page_size`` is clamped to
    ``settings.MAX_PAGE_SIZE``.
    """
    page = max(1, int(page or 1))
    page_size = min(settings.MAX_PAGE_SIZE, max(1, int(page_size or settings.DEFAULT_PAGE_SIZE)))
    total = qs.count()
    start = (page - 1) * page_size
    items = list(qs[start:start + page_size])
    return items, {
        'total': total,
        'page': page,
        'pageSize': page_size,
        'totalPages': math.ceil(total / page_size) if total else 0,
    }


def generate_reference(prefix: str) -> str:
    """``PREFIX-<epoch ms>-<4 random digits>``."""
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 9999):04d}"


def money(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value.quantize(Decimal('0.01')))
    return round(float(value), 2)


def iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def user_brief(user) -> Optional[dict]:
    if user is None:
        return None
    return {
        'id': user.id,
        'name': user.get_full_name() or user.username,
        'email': user.email,
        'avatar': user.avatar or None,
        'studentId': user.student_id,
    }


def session_brief(session) -> Optional[dict]:
    if session is None:
        return None
    return {'id': session.id, 'name': session.name}
