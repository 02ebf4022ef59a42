"""Tests for the websocket-backed notification change feed."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import anyio
import pytest
from httpx_ws import WebSocketDisconnect

from app.domain.entities import CHANGE_INSERT, Notification, NotificationChange
from app.infrastructure.notifications import WebSocketChangeFeed
from app.interfaces.api.schemas import NotificationChangeMessage

pytestmark = pytest.mark.anyio


def make_frame(notification_id: str, *, user_id: str = "user-1") -> dict:
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    notification = Notification(
        id=notification_id,
        user_id=user_id,
        type="info",
        message=f"Notification {notification_id}",
        created_at=created,
        updated_at=created,
    )
    change = NotificationChange(CHANGE_INSERT, new=notification)
    return NotificationChangeMessage.from_change(change).model_dump(
        mode="json", by_alias=True
    )


class FakeConnection:
    def __init__(self) -> None:
        self.frames: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def receive_json(self):
        frame = await self.frames.get()
        if isinstance(frame, Exception):
            raise frame
        return frame


class FakeServer:
    """Stands in for ``aconnect_ws`` and records every opened socket."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []

    @asynccontextmanager
    async def connect(self, url: str):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        connection = FakeConnection()
        self.connections.append(connection)
        try:
            yield connection
        finally:
            connection.closed = True


async def _wait_until(predicate) -> None:
    with anyio.fail_after(5):
        while not predicate():
            await anyio.sleep(0.01)


async def test_frames_are_decoded_into_changes() -> None:
    server = FakeServer()
    feed = WebSocketChangeFeed(connect=server.connect)
    received: list[NotificationChange] = []

    subscription = await feed.subscribe("user-1", received.append)
    connection = server.connections[0]
    connection.frames.put_nowait({"type": "pong"})
    connection.frames.put_nowait({"eventType": "INSERT", "new": None})
    connection.frames.put_nowait(make_frame("n-1"))

    await _wait_until(lambda: received)
    await subscription.close()

    assert server.urls == ["/notifications/ws?user_id=user-1"]
    assert len(received) == 1
    assert received[0].event_type == CHANGE_INSERT
    assert received[0].record.id == "n-1"
    assert received[0].record.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


async def test_async_handlers_are_awaited() -> None:
    server = FakeServer()
    feed = WebSocketChangeFeed(connect=server.connect)
    received: list[str] = []

    async def handler(change: NotificationChange) -> None:
        await anyio.sleep(0)
        received.append(change.target_id)

    subscription = await feed.subscribe("user-1", handler)
    server.connections[0].frames.put_nowait(make_frame("n-1"))

    await _wait_until(lambda: received)
    await subscription.close()

    assert received == ["n-1"]


async def test_connection_errors_reach_the_subscriber() -> None:
    feed = WebSocketChangeFeed(connect=FakeServer(OSError("connection refused")).connect)

    with pytest.raises(OSError):
        await feed.subscribe("user-1", lambda change: None)


async def test_empty_user_id_is_rejected() -> None:
    feed = WebSocketChangeFeed(connect=FakeServer().connect)

    with pytest.raises(ValueError):
        await feed.subscribe("", lambda change: None)


async def test_close_is_idempotent_and_closes_the_socket() -> None:
    server = FakeServer()
    feed = WebSocketChangeFeed(connect=server.connect)

    subscription = await feed.subscribe("user-1", lambda change: None)
    assert subscription.active is True

    await subscription.close()
    await subscription.close()

    assert subscription.active is False
    assert server.connections[0].closed is True


async def test_server_disconnect_ends_the_stream() -> None:
    server = FakeServer()
    feed = WebSocketChangeFeed(connect=server.connect)

    subscription = await feed.subscribe("user-1", lambda change: None)
    server.connections[0].frames.put_nowait(WebSocketDisconnect(1000, "server shutdown"))

    await _wait_until(lambda: not subscription.active)
    await subscription.close()

    assert server.connections[0].closed is True


async def test_failing_handler_drops_the_stream() -> None:
    server = FakeServer()
    feed = WebSocketChangeFeed(connect=server.connect)

    def handler(change: NotificationChange) -> None:
        raise RuntimeError("boom")

    subscription = await feed.subscribe("user-1", handler)
    server.connections[0].frames.put_nowait(make_frame("n-1"))

    await _wait_until(lambda: not subscription.active)

    assert server.connections[0].closed is True
