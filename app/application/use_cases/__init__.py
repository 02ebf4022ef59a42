"""Aggregate application use cases."""

from .notifications import (
    create_notification,
    delete_notifications,
    list_notifications,
    mark_notifications_read,
)

__all__ = [
    "create_notification",
    "delete_notifications",
    "list_notifications",
    "mark_notifications_read",
]
