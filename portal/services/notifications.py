"""
In-app notifications.

Every workflow that changes something a user cares about (payment
verified, room allocated, result published, ...) goes through
:func:`create_notification`.  The row is persisted and pushed to the
user's channel group so connected clients update without polling.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import bleach
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from portal.exceptions import Forbidden, NotFound
from portal.models import Notification
from portal.services.common import iso, paginate

logger = logging.getLogger(__name__)

TYPES = {'info', 'success', 'warning', 'error'}


def group_name(user_id: int) -> str:
    return f"notifications.{user_id}"


def serialize_notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'link': n.link or None,
        'isRead': n.is_read,
        'readAt': iso(n.read_at),
        'createdAt': iso(n.created_at),
    }


def _push(notification: Notification) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(
            group_name(notification.user_id),
            {'type': 'notification.created', 'notification': serialize_notification(notification)},
        )
    except Exception:
        # delivery is best effort; the row is already stored
        logger.warning('Realtime push failed for notification %s', notification.id, exc_info=True)


def create_notification(user, type: str, title: str, message: str, link: Optional[str] = None) -> Notification:
    if type not in TYPES:
        raise ValueError(f'Unsupported notification type: {type}')
    user_id = user if isinstance(user, int) else user.id
    n = Notification.objects.create(
        user_id=user_id,
        type=type,
        title=title,
        message=bleach.clean(message, strip=True),
        link=link or '',
    )
    logger.info('Notification %s (%s) created for user %s', n.id, type, user_id)
    _push(n)
    return n


def create_bulk_notifications(users: Iterable, type: str, title: str, message: str,
                              link: Optional[str] = None) -> list[Notification]:
    if type not in TYPES:
        raise ValueError(f'Unsupported notification type: {type}')
    user_ids = sorted({u if isinstance(u, int) else u.id for u in users})
    if not user_ids:
        return []
    clean = bleach.clean(message, strip=True)
    created = Notification.objects.bulk_create([
        Notification(user_id=uid, type=type, title=title, message=clean, link=link or '')
        for uid in user_ids
    ])
    logger.info('Bulk notification "%s" created for %d users', title, len(created))
    for n in created:
        _push(n)
    return created


def unread_count(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).count()


def list_notifications(user, *, read=None, page=1, page_size=None):
    qs = Notification.objects.filter(user=user)
    if read is not None:
        qs = qs.filter(is_read=read)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_notification(n) for n in items], pagination


def get_notification(user, pk: int) -> Notification:
    n = Notification.objects.filter(pk=pk).first()
    if not n:
        raise NotFound('Notification not found')
    if n.user_id != user.id:
        raise Forbidden('You do not have access to this notification')
    return n


def mark_read(user, pk: int) -> Notification:
    n = get_notification(user, pk)
    if not n.is_read:
        n.is_read = True
        n.read_at = timezone.now()
        n.save(update_fields=['is_read', 'read_at'])
    return n


def mark_all_read(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True, read_at=timezone.now())


def delete_notification(user, pk: int) -> None:
    get_notification(user, pk).delete()


def clear_read(user) -> int:
    deleted, _ = Notification.objects.filter(user=user, is_read=True).delete()
    return deleted


def recent(user, limit: int = 10) -> dict:
    items = Notification.objects.filter(user=user).order_by('-created_at', '-id')[:limit]
    return {'notifications': [serialize_notification(n) for n in items], 'unreadCount': unread_count(user)}
