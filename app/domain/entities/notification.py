"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    """Information message delivered to a specific user.

    ``read`` starts as ``False`` and is only ever moved to ``True``; there is no
    way to mark a notification as unread again.
    """

    id: str
    user_id: str
    type: str
    message: str
    read: bool = False
    event_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["Notification"]
