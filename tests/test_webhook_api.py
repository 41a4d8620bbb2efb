"""HTTP tests for /webhook, /groups and /health (in-process, no lifespan)."""

import json

import pytest
from httpx import ASGITransport, AsyncClient
from loguru import logger

from conftest import GROUP_ID, FakeClientFactory, settle
from jellyzap.api.app import create_app
from jellyzap.channels.supervisor import ConnectionSupervisor
from jellyzap.config.schema import Config

SUPPORTED_EVENTS = [
    {"NotificationType": "ItemAdded", "ItemType": "Movie", "Name": "Movie X"},
    {"NotificationType": "PlaybackStart", "NotificationUsername": "alice", "Name": "Movie X"},
    {"NotificationType": "PlaybackStop", "NotificationUsername": "alice", "Name": "Movie X"},
    {"NotificationType": "AuthenticationSuccess", "NotificationUsername": "alice"},
    {"NotificationType": "AuthenticationFailure", "Username": "mallory"},
]


def _make(factory: FakeClientFactory | None = None, group_id: str = GROUP_ID):
    factory = factory or FakeClientFactory()
    supervisor = ConnectionSupervisor(factory)
    config = Config(channels={"whatsapp": {"group_id": group_id}})
    app = create_app(config, supervisor=supervisor)
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
    return client, supervisor, factory


@pytest.mark.asyncio
async def test_playback_start_delivered():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post(
            "/webhook",
            json={"NotificationType": "PlaybackStart", "NotificationUsername": "alice", "Name": "Movie X"},
        )
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Notification sent"}
    assert factory.last.sent == [(GROUP_ID, "alice started watching\nMovie X")]


@pytest.mark.asyncio
async def test_empty_payload_rejected():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Empty payload received"}
    assert factory.last.sent == []


@pytest.mark.asyncio
async def test_empty_body_rejected_as_empty_payload():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", content=b"", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"error": "Empty payload received"}


@pytest.mark.asyncio
async def test_missing_notification_type_rejected():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", json={"Name": "Movie X"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid payload: NotificationType is required"}
    assert factory.last.sent == []


@pytest.mark.asyncio
async def test_unsupported_type_rejected():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", json={"NotificationType": "Unknown"})
    assert r.status_code == 400
    assert r.json() == {"error": "Unsupported notification type"}
    assert factory.last.sent == []


@pytest.mark.asyncio
async def test_text_plain_json_body():
    client, supervisor, factory = _make()
    await supervisor.connect()
    body = json.dumps({"NotificationType": "AuthenticationSuccess", "NotificationUsername": "alice"})
    async with client:
        r = await client.post("/webhook", content=body, headers={"content-type": "text/plain"})
    assert r.status_code == 200
    assert factory.last.sent == [(GROUP_ID, "Successful Login\nalice Logged in")]


@pytest.mark.asyncio
async def test_text_plain_double_encoded_body():
    client, supervisor, factory = _make()
    await supervisor.connect()
    inner = json.dumps({"NotificationType": "PlaybackStop", "NotificationUsername": "bob", "Name": "Show"})
    async with client:
        r = await client.post(
            "/webhook", content=json.dumps(inner), headers={"content-type": "text/plain; charset=utf-8"}
        )
    assert r.status_code == 200
    assert factory.last.sent == [(GROUP_ID, "bob stopped watching\nShow")]


@pytest.mark.asyncio
async def test_text_plain_invalid_json_rejected():
    client, supervisor, factory = _make()
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", content="not json", headers={"content-type": "text/plain"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid JSON in text/plain body"}
    assert factory.last.sent == []


@pytest.mark.asyncio
async def test_invalid_json_body_rejected():
    client, supervisor, factory = _make()
    async with client:
        r = await client.post("/webhook", content="{oops", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid JSON body"}


@pytest.mark.asyncio
@pytest.mark.parametrize("event", SUPPORTED_EVENTS)
async def test_unusable_channel_returns_500(event):
    client, supervisor, factory = _make()
    async with client:
        r = await client.post("/webhook", json=event)
    assert r.status_code == 500
    assert r.json() == {
        "error": "Failed to send notification",
        "details": "WhatsApp client not initialized or not connected",
    }
    assert factory.clients == []


@pytest.mark.asyncio
async def test_delivery_failure_returns_500_with_details():
    client, supervisor, factory = _make(FakeClientFactory(send_error=RuntimeError("chat not found")))
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", json=SUPPORTED_EVENTS[1])
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to send notification"
    assert "chat not found" in body["details"]


@pytest.mark.asyncio
async def test_missing_group_id_returns_500():
    client, supervisor, factory = _make(group_id="")
    await supervisor.connect()
    async with client:
        r = await client.post("/webhook", json=SUPPORTED_EVENTS[0])
    assert r.status_code == 500
    assert "not configured" in r.json()["details"]
    assert factory.last.sent == []


@pytest.mark.asyncio
async def test_groups_unavailable_then_listed_after_reconnect():
    client, supervisor, factory = _make()
    async with client:
        r = await client.get("/groups")
        assert r.status_code == 500
        assert r.json()["error"] == "Failed to fetch groups"
        assert "details" in r.json()

        await supervisor.connect()
        r = await client.get("/groups")
    assert r.status_code == 200
    assert r.json() == [
        {"name": "Movie Night", "id": GROUP_ID},
        {"name": "Family", "id": "120363000000000002@g.us"},
    ]


@pytest.mark.asyncio
async def test_health_reports_session_state():
    client, supervisor, factory = _make()
    async with client:
        r = await client.get("/health")
        assert r.json() == {"status": "ok", "session": "disconnected", "usable": False}
        await supervisor.connect()
        r = await client.get("/health")
    assert r.json() == {"status": "ok", "session": "connected", "usable": True}
    assert r.headers.get("X-Trace-Id")


def test_create_app_exposes_components():
    factory = FakeClientFactory()
    supervisor = ConnectionSupervisor(factory)
    app = create_app(Config(liveness={"interval_seconds": 5}), supervisor=supervisor)
    assert app.state.supervisor is supervisor
    assert app.state.monitor.interval_seconds == 5
    assert isinstance(app.state.monitor.supervisor, ConnectionSupervisor)


@pytest.mark.asyncio
async def test_request_logs_carry_response_trace_id():
    client, supervisor, factory = _make()
    await supervisor.connect()
    await settle()

    records = []
    handler = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        async with client:
            r = await client.post("/webhook", json=SUPPORTED_EVENTS[0])
    finally:
        logger.remove(handler)

    assert r.status_code == 200
    trace_id = r.headers["X-Trace-Id"]
    messages = [rec["message"] for rec in records]
    assert "Received webhook request" in messages
    assert f"Attempting to send ItemAdded notification to: {GROUP_ID}" in messages
    assert any(m.startswith("Message sent successfully") for m in messages)
    assert {rec["extra"].get("trace_id") for rec in records} == {trace_id}
