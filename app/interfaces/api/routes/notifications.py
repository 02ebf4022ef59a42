"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationNotFoundError,
    create_notification,
    delete_notifications,
    list_notifications,
    mark_notifications_read,
)
from app.config import get_settings
from app.domain.entities import NotificationChange
from app.infrastructure.database import get_db
from app.infrastructure.notifications import notification_change_feed
from app.interfaces.api.dependencies import get_current_user_id
from app.interfaces.api.schemas import (
    NotificationChangeMessage,
    NotificationCreate,
    NotificationRead,
    parse_notification_ids,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _require_ids(raw_ids: str) -> list[str]:
    ids = parse_notification_ids(raw_ids)
    if not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No notification ids provided"},
        )
    return ids


def _not_found(exc: NotificationNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "Notifications not found", "details": str(exc)},
    )


@router.get("", response_model=list[NotificationRead])
def read_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    notifications = list_notifications(
        db, user_id=user_id, limit=get_settings().notifications_limit
    )
    return [NotificationRead.from_entity(notification) for notification in notifications]


@router.post("", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_user_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> NotificationRead:
    """Create a notification for the authenticated user."""

    notification = create_notification(
        db,
        user_id=user_id,
        type=payload.type,
        message=payload.message,
        event_id=payload.event_id,
    )
    return NotificationRead.from_entity(notification)


@router.patch("/{notification_ids}", response_model=list[NotificationRead])
def mark_as_read(
    notification_ids: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> list[NotificationRead]:
    """Mark the comma separated ``notification_ids`` as read."""

    ids = _require_ids(notification_ids)
    try:
        updated = mark_notifications_read(db, user_id=user_id, notification_ids=ids)
    except NotificationNotFoundError as exc:
        raise _not_found(exc) from exc
    return [NotificationRead.from_entity(notification) for notification in updated]


@router.delete("/{notification_ids}", status_code=status.HTTP_204_NO_CONTENT)
def remove_notifications(
    notification_ids: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    """Delete the comma separated ``notification_ids``."""

    ids = _require_ids(notification_ids)
    try:
        delete_notifications(db, user_id=user_id, notification_ids=ids)
    except NotificationNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notification changes to a user."""

    user_id = websocket.query_params.get("user_id")
    if not user_id:
        await websocket.close(code=1008)
        return

    async def forward(change: NotificationChange) -> None:
        message = NotificationChangeMessage.from_change(change)
        await websocket.send_json(message.model_dump(mode="json", by_alias=True))

    await websocket.accept()
    subscription = await notification_change_feed.subscribe(user_id, forward)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.debug("Notification websocket closed for user %s", user_id)
    finally:
        await subscription.close()


__all__ = ["router"]
