"""
In-app notifications.

Each notification is stored and then pushed to the recipient's channel
group so that connected WebSocket clients receive it immediately.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from clinic.models import Notification, User

logger = logging.getLogger(__name__)


def group_for(user_id) -> str:
    return f"notifications.{user_id}"


def format_notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'title': n.title,
        'message': n.message,
        'notification_type': n.notification_type,
        'data': n.data,
        'is_read': n.is_read,
        'read_at': n.read_at.isoformat() if n.read_at else None,
        'created_at': n.created_at.isoformat(),
    }


def push(notification: Notification) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {"type": "notification.message", "notification": format_notification(notification)}
    try:
        async_to_sync(channel_layer.group_send)(group_for(notification.recipient_id), event)
    except Exception:
        # The row is already stored; clients pick it up on their next fetch
        logger.warning("push to %s failed", group_for(notification.recipient_id), exc_info=True)


def notify(user: Optional[User], *, title: str, message: str, notification_type: str = 'system',
           data: Optional[dict] = None) -> Optional[Notification]:
    if user is None:
        return None
    n = Notification.objects.create(
        recipient=user,
        title=title,
        message=message,
        notification_type=notification_type,
        data=data or {},
    )
    push(n)
    return n


def broadcast(users: Iterable[User], *, title: str, message: str, data: Optional[dict] = None) -> int:
    count = 0
    for user in users:
        notify(user, title=title, message=message, notification_type='system', data=data)
        count += 1
    logger.info("broadcast '%s' to %s users", title, count)
    return count


def mark_read(n: Notification) -> Notification:
    if not n.is_read:
        n.is_read = True
        n.read_at = timezone.now()
        n.save(update_fields=['is_read', 'read_at'])
    return n


def mark_all_read(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).update(is_read=True, read_at=timezone.now())


def unread_count(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()
