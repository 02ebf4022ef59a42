"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import Notification, NotificationChange


class NotificationRead(BaseModel):
    """Representation of a notification exchanged with the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    type: str
    message: str
    read: bool = False
    event_id: str | None = Field(default=None, alias="eventId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            message=notification.message,
            read=notification.read,
            event_id=notification.event_id,
            created_at=notification.created_at,
            updated_at=notification.updated_at,
        )

    def to_entity(self) -> Notification:
        return Notification(
            id=self.id,
            user_id=self.user_id,
            type=self.type,
            message=self.message,
            read=self.read,
            event_id=self.event_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class NotificationCreate(BaseModel):
    """Payload used to create a notification for the current user."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., min_length=1, max_length=50)
    message: str = Field(..., min_length=1)
    event_id: str | None = Field(default=None, alias="eventId")


class ApiError(BaseModel):
    """Structured error body returned by the notification endpoints."""

    error: str
    details: str | None = None


class NotificationChangeMessage(BaseModel):
    """Wire format of a row-level change pushed to subscribers."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(alias="eventType")
    new: NotificationRead | None = None
    old: NotificationRead | None = None

    @classmethod
    def from_change(cls, change: NotificationChange) -> "NotificationChangeMessage":
        return cls(
            event_type=change.event_type,
            new=NotificationRead.from_entity(change.new) if change.new else None,
            old=NotificationRead.from_entity(change.old) if change.old else None,
        )

    def to_change(self) -> NotificationChange:
        return NotificationChange(
            event_type=self.event_type,
            new=self.new.to_entity() if self.new else None,
            old=self.old.to_entity() if self.old else None,
        )


def parse_notification_ids(raw_ids: str) -> list[str]:
    """Split a comma-joined path segment into unique ids preserving order."""

    unique: list[str] = []
    seen: set[str] = set()
    for candidate in raw_ids.split(","):
        notification_id = candidate.strip()
        if not notification_id or notification_id in seen:
            continue
        seen.add(notification_id)
        unique.append(notification_id)
    return unique


__all__ = [
    "ApiError",
    "NotificationChangeMessage",
    "NotificationCreate",
    "NotificationRead",
    "parse_notification_ids",
]
