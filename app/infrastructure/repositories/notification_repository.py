"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from app.domain.entities import Notification
from app.infrastructure.models import NotificationModel
from app.utils import as_app_timezone, now_in_app_naive_datetime


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def get_many(
        self, notification_ids: Iterable[str], *, user_id: str
    ) -> Sequence[Notification]:
        """Return the notifications of ``user_id`` among ``notification_ids``."""

        ids = _clean_ids(notification_ids)
        if not ids:
            return []
        models = self._query_owned(ids, user_id=user_id).all()
        by_id = {model.id: model for model in models}
        return [
            self._to_entity(by_id[notification_id])
            for notification_id in ids
            if notification_id in by_id
        ]

    def create(
        self,
        *,
        user_id: str,
        type: str,
        message: str,
        event_id: str | None = None,
    ) -> Notification:
        now = now_in_app_naive_datetime()
        model = NotificationModel(
            user_id=user_id,
            type=type,
            message=message,
            read=False,
            event_id=event_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(
        self, notification_ids: Iterable[str], *, user_id: str
    ) -> Sequence[Notification]:
        """Flag unread notifications as read and return the rows that changed."""

        ids = _clean_ids(notification_ids)
        if not ids:
            return []
        models = (
            self._query_owned(ids, user_id=user_id)
            .filter(NotificationModel.read.is_(False))
            .all()
        )
        if not models:
            return []
        now = now_in_app_naive_datetime()
        for model in models:
            model.read = True
            model.updated_at = now
        self.session.commit()
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def delete(
        self, notification_ids: Iterable[str], *, user_id: str
    ) -> Sequence[Notification]:
        """Delete the owned notifications and return their last known state."""

        ids = _clean_ids(notification_ids)
        if not ids:
            return []
        models = self._query_owned(ids, user_id=user_id).all()
        removed = [self._to_entity(model) for model in models]
        for model in models:
            self.session.delete(model)
        self.session.commit()
        return removed

    def _query_owned(self, ids: list[str], *, user_id: str):
        return self.session.query(NotificationModel).filter(
            NotificationModel.id.in_(ids),
            NotificationModel.user_id == user_id,
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            message=model.message,
            read=bool(model.read),
            event_id=model.event_id,
            created_at=as_app_timezone(model.created_at),
            updated_at=as_app_timezone(model.updated_at),
        )


def _clean_ids(notification_ids: Iterable[str]) -> list[str]:
    unique: list[str] = []
    for notification_id in notification_ids:
        if notification_id and notification_id not in unique:
            unique.append(notification_id)
    return unique


__all__ = ["NotificationRepository"]
