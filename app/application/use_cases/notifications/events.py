"""Utility helpers to persist notification changes and dispatch them."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import (
    CHANGE_DELETE,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    Notification,
    NotificationChange,
)
from app.infrastructure.notifications import dispatch_change
from app.infrastructure.repositories import NotificationRepository


class NotificationNotFoundError(LookupError):
    """None of the requested notifications belongs to the user."""

    def __init__(self, notification_ids: Sequence[str]) -> None:
        self.notification_ids = list(notification_ids)
        joined = ", ".join(self.notification_ids)
        super().__init__(f"Notifications not found: {joined}")


def list_notifications(
    session: Session, *, user_id: str, limit: int | None = 50
) -> Sequence[Notification]:
    """Return the most recent notifications of ``user_id``, newest first."""

    return NotificationRepository(session).list_for_user(user_id, limit=limit)


def create_notification(
    session: Session,
    *,
    user_id: str,
    type: str,
    message: str,
    event_id: str | None = None,
) -> Notification:
    """Persist a notification and push an ``INSERT`` change to its owner."""

    saved = NotificationRepository(session).create(
        user_id=user_id, type=type, message=message, event_id=event_id
    )
    dispatch_change(NotificationChange(CHANGE_INSERT, new=saved))
    return saved


def mark_notifications_read(
    session: Session, *, user_id: str, notification_ids: Sequence[str]
) -> Sequence[Notification]:
    """Mark the notifications as read and push one ``UPDATE`` per changed row.

    Already read notifications are left untouched. Raises
    :class:`NotificationNotFoundError` when none of the ids belongs to the user.
    """

    repository = NotificationRepository(session)
    previous = {
        notification.id: notification
        for notification in repository.get_many(notification_ids, user_id=user_id)
    }
    if not previous:
        raise NotificationNotFoundError(notification_ids)

    updated = repository.mark_as_read(previous.keys(), user_id=user_id)
    for notification in updated:
        dispatch_change(
            NotificationChange(
                CHANGE_UPDATE, new=notification, old=previous.get(notification.id)
            )
        )
    return updated


def delete_notifications(
    session: Session, *, user_id: str, notification_ids: Sequence[str]
) -> Sequence[Notification]:
    """Delete the notifications and push a ``DELETE`` change for each of them."""

    removed = NotificationRepository(session).delete(notification_ids, user_id=user_id)
    if not removed:
        raise NotificationNotFoundError(notification_ids)

    for notification in removed:
        dispatch_change(NotificationChange(CHANGE_DELETE, old=notification))
    return removed


__all__ = [
    "NotificationNotFoundError",
    "list_notifications",
    "create_notification",
    "mark_notifications_read",
    "delete_notifications",
]
