"""Direct messages between portal users."""
from __future__ import annotations

from typing import Optional

import bleach
from django.db.models import Q
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import Message, User
from portal.services.common import iso, paginate
from portal.services.notifications import create_notification

BOX_TYPES = ('inbox', 'sent')


def _participant(user: User) -> dict:
    return {'id': user.id, 'name': user.full_name, 'email': user.email, 'avatar': user.avatar or None}


def serialize_message(m: Message) -> dict:
    return {
        'id': m.id,
        'sender': _participant(m.sender),
        'recipient': _participant(m.recipient),
        'subject': m.subject,
        'body': m.body,
        'attachments': m.attachments,
        'isRead': m.is_read,
        'readAt': iso(m.read_at),
        'threadId': m.thread_id,
        'createdAt': iso(m.created_at),
    }


def _qs():
    return Message.objects.select_related('sender', 'recipient')


def unread_count(user) -> int:
    return Message.objects.filter(recipient=user, is_read=False).count()


def list_messages(user, *, box: str = 'inbox', page=1, page_size=None):
    if box not in BOX_TYPES:
        raise BadRequest('Invalid message type. Use inbox or sent')
    qs = _qs().filter(recipient=user) if box == 'inbox' else _qs().filter(sender=user)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_message(m) for m in items], pagination


def _get_for_participant(user, pk: int) -> Message:
    message = _qs().filter(pk=pk).first()
    if not message:
        raise NotFound('Message not found')
    if user.id not in (message.sender_id, message.recipient_id):
        raise Forbidden('You do not have access to this message')
    return message


def _mark_read(message: Message) -> None:
    if not message.is_read:
        message.is_read = True
        message.read_at = timezone.now()
        message.save(update_fields=['is_read', 'read_at'])


def get_thread(user, pk: int) -> list[dict]:
    message = _get_for_participant(user, pk)
    if message.recipient_id == user.id:
        _mark_read(message)
    root_id = message.thread_id or message.id
    thread = _qs().filter(Q(pk=root_id) | Q(thread_id=root_id)).order_by('created_at', 'id')
    return [serialize_message(m) for m in thread]


def send_message(sender, *, recipient_id: int, subject: str, body: str,
                 attachments: Optional[list] = None, thread_id: Optional[int] = None) -> Message:
    recipient = User.objects.filter(pk=recipient_id).first()
    if not recipient:
        raise NotFound('Recipient not found')
    if thread_id is not None:
        root = Message.objects.filter(pk=thread_id).first()
        if not root:
            raise NotFound('Thread not found')
        thread_id = root.thread_id or root.id
    message = Message.objects.create(
        sender=sender,
        recipient=recipient,
        subject=bleach.clean(subject, strip=True),
        body=bleach.clean(body, strip=True),
        attachments=attachments or [],
        thread_id=thread_id,
    )
    create_notification(
        recipient, 'info', 'New Message',
        f'You have a new message from {sender.full_name}: {message.subject}',
        f'/messages/{message.id}',
    )
    return _qs().get(pk=message.pk)


def mark_as_read(user, pk: int) -> Message:
    message = _qs().filter(pk=pk).first()
    if not message:
        raise NotFound('Message not found')
    if message.recipient_id != user.id:
        raise Forbidden('Only the recipient can mark a message as read')
    _mark_read(message)
    return message


def delete_message(user, pk: int) -> None:
    _get_for_participant(user, pk).delete()
