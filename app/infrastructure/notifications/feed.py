"""In-process change feed grouping notification subscribers by user."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Awaitable, Callable, DefaultDict, List, Protocol, Union

from app.domain.entities import NotificationChange

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[NotificationChange], Union[Awaitable[None], None]]


class Subscription(Protocol):
    async def close(self) -> None: ...


class ChangeFeed(Protocol):
    """Source of the changes made to the rows owned by one user."""

    async def subscribe(self, user_id: str, handler: ChangeHandler) -> Subscription: ...


class FeedSubscription:
    """Handle returned by :meth:`NotificationChangeFeed.subscribe`.

    Closing the subscription is idempotent; only the first call detaches the
    handler from the feed.
    """

    def __init__(
        self, feed: "NotificationChangeFeed", user_id: str, handler: ChangeHandler
    ) -> None:
        self._feed = feed
        self.user_id = user_id
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def close(self) -> None:
        if not self._active:
            return
        self._active = False
        self._feed._discard(self)

    async def __aenter__(self) -> "FeedSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class NotificationChangeFeed:
    """Deliver :class:`NotificationChange` events to the owner's subscribers."""

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[str, List[FeedSubscription]] = defaultdict(list)

    async def subscribe(self, user_id: str, handler: ChangeHandler) -> FeedSubscription:
        """Register ``handler`` for changes on rows owned by ``user_id``."""

        if not user_id:
            raise ValueError("A user id is required to subscribe to notification changes")
        subscription = FeedSubscription(self, user_id, handler)
        self._subscriptions[user_id].append(subscription)
        logger.debug("Subscribed to notification changes for user %s", user_id)
        return subscription

    async def publish(self, change: NotificationChange) -> int:
        """Send ``change`` to every active subscriber of its owner.

        Returns the number of handlers that accepted the change. A handler that
        raises is logged and unsubscribed.
        """

        delivered = 0
        for subscription in list(self._subscriptions.get(change.user_id, ())):
            if not subscription.active:
                continue
            try:
                result = subscription.handler(change)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Dropping notification subscriber for user %s after a delivery error",
                    change.user_id,
                )
                await subscription.close()
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, user_id: str | None = None) -> int:
        if user_id is not None:
            return len(self._subscriptions.get(user_id, ()))
        return sum(len(subscriptions) for subscriptions in self._subscriptions.values())

    def clear(self) -> None:
        """Detach every subscriber."""

        for subscriptions in list(self._subscriptions.values()):
            for subscription in subscriptions:
                subscription._active = False
        self._subscriptions.clear()

    def _discard(self, subscription: FeedSubscription) -> None:
        subscriptions = self._subscriptions.get(subscription.user_id)
        if subscriptions is None:
            return
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.user_id, None)
        logger.debug(
            "Unsubscribed from notification changes for user %s", subscription.user_id
        )


notification_change_feed = NotificationChangeFeed()


__all__ = [
    "ChangeFeed",
    "ChangeHandler",
    "FeedSubscription",
    "NotificationChangeFeed",
    "notification_change_feed",
    "Subscription",
]
