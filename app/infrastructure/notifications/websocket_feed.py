"""Change feed reading the service's ``/notifications/ws`` stream."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Protocol
from urllib.parse import urlencode

import httpx
from httpx_ws import WebSocketDisconnect, aconnect_ws

from app.config import get_settings
from app.domain.entities import NotificationChange
from app.interfaces.api.schemas import NotificationChangeMessage

from .feed import ChangeHandler

logger = logging.getLogger(__name__)


class ChangeConnection(Protocol):
    async def receive_json(self) -> Any: ...


Connector = Callable[[str], AbstractAsyncContextManager[ChangeConnection]]


class WebSocketSubscription:
    """One open websocket delivering changes to ``handler``.

    The connection is owned by a background task; :meth:`close` cancels it and
    waits for the socket to be closed. Closing twice is a no-op.
    """

    def __init__(self, user_id: str, handler: ChangeHandler) -> None:
        self.user_id = user_id
        self.handler = handler
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed and self._task is not None and not self._task.done()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Closed notification change stream for user %s", self.user_id)

    async def __aenter__(self) -> "WebSocketSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class WebSocketChangeFeed:
    """Subscribe to notification changes pushed by a remote service.

    Each subscription opens its own websocket on ``path`` with the user id in
    the query string. When no ``connect`` callable is given the socket is
    opened with :func:`httpx_ws.aconnect_ws` on ``client``, or on a client
    created from the settings and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        path: str | None = None,
        connect: Connector | None = None,
    ) -> None:
        settings = get_settings()
        self._path = path or settings.notifications_ws_path
        self._owns_client = client is None and connect is None
        if self._owns_client:
            client = httpx.AsyncClient(base_url=base_url or settings.api_base_url)
        self._client = client
        self._connect = connect or self._connect_ws

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "WebSocketChangeFeed":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def subscribe(self, user_id: str, handler: ChangeHandler) -> WebSocketSubscription:
        """Open the stream for ``user_id``; connection errors propagate."""

        if not user_id:
            raise ValueError("A user id is required to subscribe to notification changes")

        url = f"{self._path}?{urlencode({'user_id': user_id})}"
        subscription = WebSocketSubscription(user_id, handler)
        connected: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        task = asyncio.create_task(self._run(url, subscription, connected))
        subscription._task = task
        try:
            await connected
        except BaseException:
            task.cancel()
            raise
        logger.debug("Subscribed to notification change stream for user %s", user_id)
        return subscription

    def _connect_ws(self, url: str) -> AbstractAsyncContextManager[ChangeConnection]:
        return aconnect_ws(url, self._client)

    async def _run(
        self,
        url: str,
        subscription: WebSocketSubscription,
        connected: asyncio.Future[None],
    ) -> None:
        try:
            async with self._connect(url) as connection:
                if not connected.done():
                    connected.set_result(None)
                await _read_changes(connection, subscription)
        except asyncio.CancelledError:
            if not connected.done():
                connected.cancel()
            raise
        except Exception as exc:
            if not connected.done():
                connected.set_exception(exc)
                return
            logger.exception(
                "Notification change stream for user %s failed", subscription.user_id
            )


async def _read_changes(
    connection: ChangeConnection, subscription: WebSocketSubscription
) -> None:
    while True:
        try:
            payload = await connection.receive_json()
        except WebSocketDisconnect:
            logger.info(
                "Notification change stream closed by the server for user %s",
                subscription.user_id,
            )
            return

        change = _parse_change(payload)
        if change is None:
            continue
        try:
            result = subscription.handler(change)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "Dropping notification change stream for user %s after a delivery error",
                subscription.user_id,
            )
            return


def _parse_change(payload: Any) -> NotificationChange | None:
    # Control frames such as {"type": "pong"} carry no change.
    if not isinstance(payload, dict) or "type" in payload:
        return None
    try:
        return NotificationChangeMessage.model_validate(payload).to_change()
    except ValueError as exc:
        logger.warning("Ignoring malformed notification change frame: %s", exc)
        return None


__all__ = ["WebSocketChangeFeed", "WebSocketSubscription"]
