"""Utility helpers to push notification changes to feed subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from app.domain.entities import NotificationChange

from .feed import NotificationChangeFeed, notification_change_feed

logger = logging.getLogger(__name__)


class NotificationChangePublisher:
    """Schedule the delivery of notification changes through the feed."""

    def __init__(self, feed: NotificationChangeFeed) -> None:
        self._feed = feed
        self._pending: set[asyncio.Task[Any]] = set()

    def dispatch(self, change: NotificationChange) -> None:
        """Deliver ``change`` from either the event loop or a worker thread.

        Inside the loop the delivery is scheduled as a task. From a worker
        thread started by anyio (synchronous FastAPI routes) the call blocks
        until every subscriber has received the change.
        """

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(self._feed.publish, change)
            except RuntimeError:
                logger.debug(
                    "No event loop available; %s change for notification %s not pushed",
                    change.event_type,
                    change.target_id,
                )
        else:
            task = loop.create_task(self._feed.publish(change))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)


notification_publisher = NotificationChangePublisher(notification_change_feed)


def dispatch_change(change: NotificationChange) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(change)


__all__ = [
    "NotificationChangePublisher",
    "notification_publisher",
    "dispatch_change",
]
