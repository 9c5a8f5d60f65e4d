"""Public helpers for emitting and reading user notifications."""

from .events import notify_new_message
from .service import (
    NotificationPage,
    create_bulk_notifications,
    create_notification,
    delete_old_notifications,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    unread_count,
)

__all__ = [
    "NotificationPage",
    "create_bulk_notifications",
    "create_notification",
    "delete_old_notifications",
    "list_notifications",
    "mark_all_as_read",
    "mark_as_read",
    "notify_new_message",
    "unread_count",
]
