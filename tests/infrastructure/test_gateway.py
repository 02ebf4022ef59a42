"""Tests for the httpx based notification gateway."""

from __future__ import annotations

import httpx
import pytest

from app.infrastructure.gateway import (
    LIST_ERROR,
    MARK_READ_ERROR,
    NON_JSON_ERROR,
    GatewayError,
    NotificationGateway,
)

pytestmark = pytest.mark.anyio

NOTIFICATION_PAYLOAD = {
    "id": "1",
    "userId": "user-1",
    "type": "invite",
    "message": "You were invited",
    "read": False,
    "eventId": "event-9",
    "createdAt": "2024-05-01T12:00:00+00:00",
    "updatedAt": "2024-05-01T12:00:00+00:00",
}


def _gateway(handler) -> NotificationGateway:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://testserver"
    )
    return NotificationGateway(client, identity_header="X-User-Id")


async def test_list_notifications_parses_payload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[NOTIFICATION_PAYLOAD])

    notifications = await _gateway(handler).list_notifications("user-1")

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/notifications"
    assert seen[0].headers["X-User-Id"] == "user-1"
    assert len(notifications) == 1
    notification = notifications[0]
    assert notification.id == "1"
    assert notification.user_id == "user-1"
    assert notification.event_id == "event-9"
    assert notification.read is False
    assert notification.created_at.year == 2024


async def test_mark_read_joins_ids_in_path() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    await _gateway(handler).mark_read("user-1", ["1", "2"])

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/notifications/1,2"


async def test_delete_uses_delete_method() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    await _gateway(handler).delete_notifications("user-1", ["a"])

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/notifications/a"


async def test_structured_error_prefers_details() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            500, json={"error": "Internal error", "details": "Database unavailable"}
        )

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).list_notifications("user-1")

    assert excinfo.value.message == "Database unavailable"
    assert excinfo.value.status_code == 500


async def test_structured_error_without_details_uses_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Notifications not found"})

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).mark_read("user-1", ["1"])

    assert excinfo.value.message == "Notifications not found"


async def test_unstructured_error_keeps_raw_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            502, text="<html>Bad gateway</html>", headers={"content-type": "text/html"}
        )

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).list_notifications("user-1")

    assert excinfo.value.message == "<html>Bad gateway</html>"
    assert excinfo.value.details == "<html>Bad gateway</html>"


async def test_unstructured_empty_error_uses_generic_prefix() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="", headers={"content-type": "text/plain"})

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).list_notifications("user-1")

    assert excinfo.value.message == NON_JSON_ERROR


async def test_empty_json_error_falls_back_to_operation_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={})

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).mark_read("user-1", ["1"])

    assert excinfo.value.message == MARK_READ_ERROR


async def test_transport_failure_is_generic() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).mark_read("user-1", ["1"])

    assert excinfo.value.message == MARK_READ_ERROR
    assert excinfo.value.status_code is None


async def test_invalid_list_payload_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    with pytest.raises(GatewayError) as excinfo:
        await _gateway(handler).list_notifications("user-1")

    assert excinfo.value.message == LIST_ERROR
