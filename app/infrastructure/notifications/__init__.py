"""Realtime notification helpers for the infrastructure layer."""

from .feed import (
    ChangeFeed,
    ChangeHandler,
    FeedSubscription,
    NotificationChangeFeed,
    Subscription,
    notification_change_feed,
)
from .publisher import (
    NotificationChangePublisher,
    dispatch_change,
    notification_publisher,
)
from .websocket_feed import WebSocketChangeFeed, WebSocketSubscription

__all__ = [
    "ChangeFeed",
    "ChangeHandler",
    "FeedSubscription",
    "NotificationChangeFeed",
    "Subscription",
    "notification_change_feed",
    "NotificationChangePublisher",
    "notification_publisher",
    "dispatch_change",
    "WebSocketChangeFeed",
    "WebSocketSubscription",
]
