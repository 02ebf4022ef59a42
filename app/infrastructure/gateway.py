"""HTTP client for the notification endpoints consumed by the sync controller."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.config import get_settings
from app.domain.entities import Notification
from app.interfaces.api.schemas import NotificationRead

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"
NON_JSON_ERROR = "Server error: non-JSON response"
LIST_ERROR = "Failed to load notifications"
MARK_READ_ERROR = "Unable to mark notifications as read"
DELETE_ERROR = "Unable to delete notifications"


class GatewayError(Exception):
    """Raised when a notification request fails or is answered with an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class NotificationGateway:
    """Thin wrapper around :class:`httpx.AsyncClient` for the notification API.

    Every request carries the caller's identity in the configured header. When
    no client is provided one is created from the settings and closed by
    :meth:`aclose`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        identity_header: str | None = None,
    ) -> None:
        settings = get_settings()
        self._identity_header = identity_header or settings.identity_header
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.request_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "NotificationGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def list_notifications(self, identity: str) -> list[Notification]:
        """Return every notification visible to ``identity``."""

        response = await self._request("GET", "/notifications", identity, LIST_ERROR)
        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayError(LIST_ERROR, status_code=response.status_code) from exc
        if not isinstance(data, list):
            raise GatewayError(
                LIST_ERROR,
                status_code=response.status_code,
                details="Expected a JSON array of notifications",
            )
        try:
            return [NotificationRead.model_validate(item).to_entity() for item in data]
        except ValidationError as exc:
            raise GatewayError(
                LIST_ERROR, status_code=response.status_code, details=str(exc)
            ) from exc

    async def mark_read(self, identity: str, notification_ids: Iterable[str]) -> None:
        await self._request(
            "PATCH", _ids_path(notification_ids), identity, MARK_READ_ERROR
        )

    async def delete_notifications(
        self, identity: str, notification_ids: Iterable[str]
    ) -> None:
        await self._request("DELETE", _ids_path(notification_ids), identity, DELETE_ERROR)

    async def _request(
        self, method: str, path: str, identity: str, default_message: str
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, headers={self._identity_header: identity}
            )
        except httpx.HTTPError as exc:
            logger.error("Notification request %s %s failed: %s", method, path, exc)
            raise GatewayError(default_message) from exc

        logger.debug(
            "Notification request %s %s answered with status %s",
            method,
            path,
            response.status_code,
        )
        if response.is_success:
            return response
        raise _error_from_response(response, default_message)


def _ids_path(notification_ids: Iterable[str]) -> str:
    joined = ",".join(
        quote(str(notification_id), safe="") for notification_id in notification_ids
    )
    return f"/notifications/{joined}"


def _error_from_response(response: httpx.Response, default_message: str) -> GatewayError:
    """Build the most specific :class:`GatewayError` for an error response."""

    error: str | None = UNKNOWN_ERROR
    details: str | None = None
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body: Any = response.json()
        except ValueError:
            logger.error(
                "Unable to parse JSON error body (status %s)", response.status_code
            )
        else:
            error, details = _extract_error_fields(body)
    else:
        error = NON_JSON_ERROR
        details = response.text or None

    logger.error(
        "Notification request %s %s failed with status %s: %s",
        response.request.method,
        response.request.url.path,
        response.status_code,
        details or error,
    )
    return GatewayError(
        details or error or default_message,
        status_code=response.status_code,
        details=details,
    )


def _extract_error_fields(body: Any) -> tuple[str | None, str | None]:
    """Return the ``error`` and ``details`` members of a structured error body."""

    if not isinstance(body, dict):
        return None, None

    error = body.get("error")
    details = body.get("details")
    if error is None and isinstance(body.get("detail"), str):
        error = body["detail"]
    return (
        str(error) if error else None,
        str(details) if details else None,
    )


__all__ = [
    "GatewayError",
    "NotificationGateway",
    "UNKNOWN_ERROR",
    "NON_JSON_ERROR",
    "LIST_ERROR",
    "MARK_READ_ERROR",
    "DELETE_ERROR",
]
