"""Tests for the in-process notification change feed and publisher."""

from __future__ import annotations

import asyncio

import pytest

from app.domain.entities import CHANGE_INSERT, Notification, NotificationChange
from app.infrastructure.notifications import (
    NotificationChangeFeed,
    NotificationChangePublisher,
)


def _insert(user_id: str, notification_id: str = "n-1") -> NotificationChange:
    return NotificationChange(
        CHANGE_INSERT,
        new=Notification(id=notification_id, user_id=user_id, type="info", message="Hi"),
    )


@pytest.mark.anyio
async def test_publish_only_reaches_the_owner() -> None:
    feed = NotificationChangeFeed()
    received: list[str] = []
    await feed.subscribe("alice", lambda change: received.append(f"alice:{change.target_id}"))
    await feed.subscribe("bob", lambda change: received.append(f"bob:{change.target_id}"))

    delivered = await feed.publish(_insert("alice"))

    assert delivered == 1
    assert received == ["alice:n-1"]


@pytest.mark.anyio
async def test_async_handlers_are_awaited() -> None:
    feed = NotificationChangeFeed()
    received: list[NotificationChange] = []

    async def handler(change: NotificationChange) -> None:
        await asyncio.sleep(0)
        received.append(change)

    await feed.subscribe("alice", handler)
    change = _insert("alice")
    await feed.publish(change)

    assert received == [change]


@pytest.mark.anyio
async def test_close_is_idempotent() -> None:
    feed = NotificationChangeFeed()
    subscription = await feed.subscribe("alice", lambda change: None)

    await subscription.close()
    await subscription.close()

    assert subscription.active is False
    assert feed.subscriber_count() == 0
    assert await feed.publish(_insert("alice")) == 0


@pytest.mark.anyio
async def test_failing_handler_is_dropped() -> None:
    feed = NotificationChangeFeed()
    received: list[str] = []

    def broken(change: NotificationChange) -> None:
        raise RuntimeError("socket closed")

    await feed.subscribe("alice", broken)
    await feed.subscribe("alice", lambda change: received.append(change.target_id))

    assert await feed.publish(_insert("alice")) == 1
    assert feed.subscriber_count("alice") == 1
    assert received == ["n-1"]


@pytest.mark.anyio
async def test_subscribe_requires_user() -> None:
    with pytest.raises(ValueError):
        await NotificationChangeFeed().subscribe("", lambda change: None)


@pytest.mark.anyio
async def test_publisher_schedules_delivery_on_running_loop() -> None:
    feed = NotificationChangeFeed()
    publisher = NotificationChangePublisher(feed)
    received: list[NotificationChange] = []
    await feed.subscribe("alice", received.append)

    publisher.dispatch(_insert("alice"))
    assert received == []

    for _ in range(5):
        await asyncio.sleep(0)
    assert [change.target_id for change in received] == ["n-1"]


def test_publisher_without_loop_does_not_raise() -> None:
    feed = NotificationChangeFeed()
    publisher = NotificationChangePublisher(feed)

    publisher.dispatch(_insert("alice"))

    assert feed.subscriber_count() == 0
