"""Public helpers for persisting and broadcasting notification changes."""

from .events import (
    NotificationNotFoundError,
    create_notification,
    delete_notifications,
    list_notifications,
    mark_notifications_read,
)

__all__ = [
    "NotificationNotFoundError",
    "list_notifications",
    "create_notification",
    "mark_notifications_read",
    "delete_notifications",
]
