"""Keep a user's notification list in sync with the notification service."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, replace
from typing import Any, Coroutine, Iterable

from app.domain.entities import (
    CHANGE_DELETE,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    Notification,
    NotificationChange,
)
from app.infrastructure.gateway import (
    DELETE_ERROR,
    LIST_ERROR,
    MARK_READ_ERROR,
    GatewayError,
    NotificationGateway,
)
from app.infrastructure.notifications import ChangeFeed, ChangeHandler

from .notices import LoggingNotifier, Notifier
from .session import SIGNED_IN, SIGNED_OUT, AuthSession
from .tracing import LoggingTracer, SyncTracer

logger = logging.getLogger(__name__)

SUBSCRIBE_ERROR = "Unable to subscribe to notification updates"


@dataclass(frozen=True)
class SyncState:
    """Read-only view of the controller state handed to the UI."""

    items: tuple[Notification, ...]
    loading: bool
    last_error: str | None
    unread_count: int


class NotificationSyncController:
    """Mirror the notifications of the bound identity.

    The list is filled by :meth:`load`, kept current by the changes pushed
    through the feed and updated after confirmed :meth:`mark_read` and
    :meth:`delete_notifications` calls. Each :meth:`start` opens a new binding
    whose feed subscription and session listener live in one exit stack, so
    :meth:`stop` (or the next :meth:`start`) releases them exactly once.

    Every binding gets a new generation number; responses that arrive after
    their generation ended are discarded.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        feed: ChangeFeed,
        *,
        session: AuthSession | None = None,
        notifier: Notifier | None = None,
        tracer: SyncTracer | None = None,
    ) -> None:
        self._gateway = gateway
        self._feed = feed
        self._session = session
        self._notifier = notifier or LoggingNotifier()
        self._tracer = tracer or LoggingTracer()
        self._items: tuple[Notification, ...] = ()
        self._loading = False
        self._last_error: str | None = None
        self._identity: str | None = None
        self._generation = 0
        self._resources: AsyncExitStack | None = None
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def items(self) -> tuple[Notification, ...]:
        return self._items

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.read)

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> SyncState:
        return SyncState(
            items=self._items,
            loading=self._loading,
            last_error=self._last_error,
            unread_count=self.unread_count,
        )

    async def __aenter__(self) -> "NotificationSyncController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self, identity: str | None) -> None:
        """Bind the controller to ``identity`` and perform the initial load."""

        await self._release()
        generation = self._generation
        stack = AsyncExitStack()
        self._resources = stack
        if self._session is not None:
            stack.callback(self._session.on_change(self._on_identity_change))

        if not identity:
            self._identity = None
            self._items = ()
            self._loading = False
            self._tracer.emit("sync.idle", generation=generation)
            return

        self._identity = identity
        self._loading = True
        self._last_error = None
        self._tracer.emit("sync.started", identity=identity, generation=generation)

        try:
            subscription = await self._feed.subscribe(
                identity, self._change_handler(generation)
            )
        except Exception:
            logger.exception("Could not subscribe to notification changes for %s", identity)
            if generation == self._generation:
                self._notifier.error(SUBSCRIBE_ERROR)
        else:
            if generation != self._generation:
                await subscription.close()
                return
            stack.push_async_callback(subscription.close)
            self._tracer.emit("sync.subscribed", identity=identity, generation=generation)

        if generation != self._generation:
            return
        await self.load()

    async def stop(self) -> None:
        """Release the current binding and forget the cached notifications."""

        await self._release()
        self._identity = None
        self._items = ()
        self._loading = False

    async def close(self) -> None:
        """Stop the controller and cancel pending identity-change restarts."""

        current = asyncio.current_task()
        for task in list(self._pending):
            if task is not current:
                task.cancel()
        await self.stop()

    async def load(self) -> None:
        """Replace the cached list with the one returned by the service."""

        identity = self._identity
        if not identity:
            self._items = ()
            self._loading = False
            return

        generation = self._generation
        self._loading = True
        self._last_error = None
        self._tracer.emit("sync.load.started", identity=identity, generation=generation)
        try:
            notifications = await self._gateway.list_notifications(identity)
        except Exception as exc:
            if self._is_stale(generation, "load"):
                return
            message = _failure_message(exc, LIST_ERROR)
            self._last_error = message
            self._notifier.error(message)
            self._tracer.emit("sync.load.failed", identity=identity, error=message)
            return
        else:
            if self._is_stale(generation, "load"):
                return
            self._items = tuple(notifications)
            self._tracer.emit(
                "sync.load.succeeded", identity=identity, count=len(self._items)
            )
        finally:
            if generation == self._generation:
                self._loading = False

    async def mark_read(self, notification_ids: Iterable[str]) -> None:
        """Mark ``notification_ids`` as read once the service confirms it."""

        identity = self._identity
        ids = _unique_ids(notification_ids)
        if not identity or not ids:
            return

        generation = self._generation
        try:
            await self._gateway.mark_read(identity, ids)
        except Exception as exc:
            if self._is_stale(generation, "mark_read"):
                return
            message = _failure_message(exc, MARK_READ_ERROR)
            self._notifier.error(message)
            self._tracer.emit("sync.mark_read.failed", ids=ids, error=message)
            return

        if self._is_stale(generation, "mark_read"):
            return
        targets = set(ids)
        self._items = tuple(
            replace(item, read=True) if item.id in targets and not item.read else item
            for item in self._items
        )
        self._tracer.emit("sync.mark_read.succeeded", ids=ids)

    async def delete_notifications(self, notification_ids: Iterable[str]) -> None:
        """Remove ``notification_ids`` once the service confirms the deletion."""

        identity = self._identity
        ids = _unique_ids(notification_ids)
        if not identity or not ids:
            return

        generation = self._generation
        try:
            await self._gateway.delete_notifications(identity, ids)
        except Exception as exc:
            if self._is_stale(generation, "delete"):
                return
            message = _failure_message(exc, DELETE_ERROR)
            self._notifier.error(message)
            self._tracer.emit("sync.delete.failed", ids=ids, error=message)
            return

        if self._is_stale(generation, "delete"):
            return
        targets = set(ids)
        self._items = tuple(item for item in self._items if item.id not in targets)
        self._tracer.emit("sync.delete.succeeded", ids=ids)

    def apply_change(self, change: NotificationChange) -> None:
        """Merge a pushed change into the cached list."""

        if self._identity is None or change.user_id != self._identity:
            self._tracer.emit(
                "sync.change.ignored",
                event_type=change.event_type,
                notification_id=change.target_id,
            )
            return

        if change.event_type == CHANGE_INSERT:
            self._apply_insert(change.record)
        elif change.event_type == CHANGE_UPDATE:
            self._apply_update(change.record)
        elif change.event_type == CHANGE_DELETE:
            self._apply_delete(change.target_id)

    def _apply_insert(self, notification: Notification) -> None:
        # A re-delivered insert replaces the cached row and moves it to the head.
        duplicate = any(item.id == notification.id for item in self._items)
        self._items = (notification,) + tuple(
            item for item in self._items if item.id != notification.id
        )
        self._tracer.emit(
            "sync.change.applied",
            event_type=CHANGE_INSERT,
            notification_id=notification.id,
            duplicate=duplicate,
        )
        if not duplicate:
            self._notifier.info(notification.message)

    def _apply_update(self, notification: Notification) -> None:
        if not any(item.id == notification.id for item in self._items):
            self._tracer.emit(
                "sync.change.dropped",
                event_type=CHANGE_UPDATE,
                notification_id=notification.id,
            )
            return
        self._items = tuple(
            notification if item.id == notification.id else item for item in self._items
        )
        self._tracer.emit(
            "sync.change.applied",
            event_type=CHANGE_UPDATE,
            notification_id=notification.id,
        )

    def _apply_delete(self, notification_id: str) -> None:
        remaining = tuple(item for item in self._items if item.id != notification_id)
        if len(remaining) == len(self._items):
            return
        self._items = remaining
        self._tracer.emit(
            "sync.change.applied",
            event_type=CHANGE_DELETE,
            notification_id=notification_id,
        )

    def _change_handler(self, generation: int) -> ChangeHandler:
        def handle(change: NotificationChange) -> None:
            if generation != self._generation:
                return
            self.apply_change(change)

        return handle

    def _on_identity_change(self, event: str, user_id: str | None) -> None:
        self._tracer.emit("sync.identity_changed", auth_event=event, user_id=user_id)
        if event == SIGNED_IN:
            self._schedule(self.start(user_id))
        elif event == SIGNED_OUT:
            self._items = ()
            self._schedule(self.start(None))

    def _schedule(self, coroutine: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coroutine.close()
            logger.warning("Identity changed outside of an event loop; restart skipped")
            return
        task = loop.create_task(coroutine)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _release(self) -> None:
        self._generation += 1
        stack, self._resources = self._resources, None
        if stack is not None:
            await stack.aclose()
            self._tracer.emit("sync.released", identity=self._identity)

    def _is_stale(self, generation: int, operation: str) -> bool:
        if generation == self._generation:
            return False
        self._tracer.emit(
            "sync.stale_response", operation=operation, generation=generation
        )
        return True


def _failure_message(exc: Exception, default: str) -> str:
    if isinstance(exc, GatewayError):
        return exc.message or default
    logger.exception("Unexpected error while synchronizing notifications")
    return default


def _unique_ids(notification_ids: Iterable[str]) -> list[str]:
    if isinstance(notification_ids, str):
        notification_ids = [notification_ids]
    unique: list[str] = []
    for notification_id in notification_ids:
        if notification_id and notification_id not in unique:
            unique.append(notification_id)
    return unique


__all__ = ["NotificationSyncController", "SyncState", "SUBSCRIBE_ERROR"]
