"""Domain entities exposed by the application."""

from .notification import Notification
from .notification_change import (
    CHANGE_DELETE,
    CHANGE_EVENT_TYPES,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    NotificationChange,
)

__all__ = [
    "Notification",
    "NotificationChange",
    "CHANGE_INSERT",
    "CHANGE_UPDATE",
    "CHANGE_DELETE",
    "CHANGE_EVENT_TYPES",
]
