from .notification import (
    ApiError,
    NotificationChangeMessage,
    NotificationCreate,
    NotificationRead,
    parse_notification_ids,
)

__all__ = [
    "ApiError",
    "NotificationChangeMessage",
    "NotificationCreate",
    "NotificationRead",
    "parse_notification_ids",
]
