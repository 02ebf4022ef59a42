"""Domain event describing a row-level change to a notification."""

from __future__ import annotations

from dataclasses import dataclass

from .notification import Notification

CHANGE_INSERT = "INSERT"
CHANGE_UPDATE = "UPDATE"
CHANGE_DELETE = "DELETE"

CHANGE_EVENT_TYPES = frozenset({CHANGE_INSERT, CHANGE_UPDATE, CHANGE_DELETE})


@dataclass(frozen=True)
class NotificationChange:
    """Change pushed to subscribers of a user's notification feed.

    ``new`` carries the row image after the change (inserts and updates) and
    ``old`` the image before it (deletes, optionally updates).
    """

    event_type: str
    new: Notification | None = None
    old: Notification | None = None

    def __post_init__(self) -> None:
        if self.event_type not in CHANGE_EVENT_TYPES:
            msg = f"Unsupported change event type: {self.event_type!r}"
            raise ValueError(msg)
        if self.event_type in (CHANGE_INSERT, CHANGE_UPDATE) and self.new is None:
            raise ValueError(f"{self.event_type} changes require the new row image")
        if self.event_type == CHANGE_DELETE and self.old is None:
            raise ValueError("DELETE changes require the old row image")

    @property
    def record(self) -> Notification:
        """Return the most recent image carried by the change."""

        return self.new if self.new is not None else self.old  # type: ignore[return-value]

    @property
    def target_id(self) -> str:
        return self.record.id

    @property
    def user_id(self) -> str:
        return self.record.user_id


__all__ = [
    "CHANGE_INSERT",
    "CHANGE_UPDATE",
    "CHANGE_DELETE",
    "CHANGE_EVENT_TYPES",
    "NotificationChange",
]
