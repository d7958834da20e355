"""
LocalMarket Backend: Notification Tests
========================================

What we test:
    ✅ Create / list / mark read / mark all read over HTTP
    ✅ Stored notifications are pushed to connected listeners after commit
    ✅ Hub fan-out drops listeners whose send fails
    ✅ The WebSocket stream refuses missing or invalid tokens
"""

import uuid
from typing import Any, List

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import ADMIN, RIDER, SENDER, TEST_JWT_SECRET, FakeMailer, FakePaymentGateway, auth, make_token
from localmarket.auth.identity import JWTIdentityProvider
from localmarket.database import Database
from localmarket.main import create_app
from localmarket.services.notification_hub import NotificationHub


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.sent: List[Any] = []
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


class TestNotificationRoutes:
    @pytest.mark.asyncio
    async def test_create_and_filter(self, client):
        created = await client.post(
            "/notifications",
            json={"message": "Route changed", "to_role": "rider", "to_email": RIDER, "priority": "high"},
            headers=auth(ADMIN),
        )
        await client.post(
            "/notifications", json={"message": "New vendor", "to_role": "admin"}, headers=auth(SENDER)
        )
        assert created.status_code == 201

        for_rider = await client.get("/notifications", params={"to_role": "rider"}, headers=auth(RIDER))
        [notification] = for_rider.json()
        assert notification["id"] == created.json()["inserted_id"]
        assert notification["status"] == "unread"
        assert notification["to_email"] == RIDER
        assert notification["priority"] == "high"

        everything = await client.get("/notifications", headers=auth(ADMIN))
        assert len(everything.json()) == 2

    @pytest.mark.asyncio
    async def test_unknown_role_is_400(self, client):
        response = await client.post(
            "/notifications", json={"message": "x", "to_role": "superuser"}, headers=auth(SENDER)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_mark_one_read(self, client):
        created = await client.post(
            "/notifications", json={"message": "Hello", "to_role": "user"}, headers=auth(ADMIN)
        )
        notification_id = created.json()["inserted_id"]

        response = await client.patch(f"/notifications/{notification_id}/read", headers=auth(SENDER))

        assert response.status_code == 200
        assert response.json()["status"] == "read"
        assert response.json()["read_at"] is not None
        unread = await client.get("/notifications", params={"status": "unread"}, headers=auth(SENDER))
        assert unread.json() == []

    @pytest.mark.asyncio
    async def test_mark_read_identifier_errors(self, client):
        malformed = await client.patch("/notifications/abc/read", headers=auth(SENDER))
        missing = await client.patch(f"/notifications/{uuid.uuid4()}/read", headers=auth(SENDER))

        assert malformed.status_code == 400
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_mark_all_read_for_one_role(self, client):
        for message in ("a", "b"):
            await client.post("/notifications", json={"message": message, "to_role": "admin"}, headers=auth(SENDER))
        await client.post("/notifications", json={"message": "c", "to_role": "rider"}, headers=auth(SENDER))

        response = await client.patch(
            "/notifications/read-all", params={"to_role": "admin"}, headers=auth(ADMIN)
        )
        assert response.json() == {"updated": 2}

        again = await client.patch(
            "/notifications/read-all", params={"to_role": "admin"}, headers=auth(ADMIN)
        )
        assert again.json() == {"updated": 0}

        rider_unread = await client.get(
            "/notifications", params={"to_role": "rider", "status": "unread"}, headers=auth(RIDER)
        )
        assert len(rider_unread.json()) == 1

    @pytest.mark.asyncio
    async def test_read_all_requires_role(self, client):
        response = await client.patch("/notifications/read-all", headers=auth(ADMIN))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_new_notification_is_pushed_to_listeners(self, app, client):
        listener = FakeSocket()
        await app.state.notification_hub.connect(listener)

        created = await client.post(
            "/notifications", json={"message": "Ping", "to_role": "admin"}, headers=auth(SENDER)
        )

        [message] = listener.sent
        assert message["event"] == "notification"
        assert message["data"]["id"] == created.json()["inserted_id"]
        assert message["data"]["message"] == "Ping"


class TestNotificationHub:
    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_listener(self):
        hub = NotificationHub()
        first, second = FakeSocket(), FakeSocket()
        await hub.connect(first)
        await hub.connect(second)

        delivered = await hub.broadcast("notification", {"id": uuid.UUID(int=1), "message": "hi"})

        assert delivered == 2
        assert first.accepted and second.accepted
        assert first.sent == [{"event": "notification", "data": {"id": str(uuid.UUID(int=1)), "message": "hi"}}]

    @pytest.mark.asyncio
    async def test_failed_listener_is_dropped(self):
        hub = NotificationHub()
        healthy, broken = FakeSocket(), FakeSocket(fail=True)
        await hub.connect(healthy)
        await hub.connect(broken)

        delivered = await hub.broadcast("notification", {"message": "hi"})

        assert delivered == 1
        assert hub.listener_count == 1

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self):
        hub = NotificationHub()
        socket = FakeSocket()
        await hub.connect(socket)

        hub.disconnect(socket)
        hub.disconnect(socket)

        assert hub.listener_count == 0
        assert await hub.broadcast("notification", {}) == 0


class TestNotificationStream:
    @pytest.fixture
    def ws_client(self):
        app = create_app(
            database=Database("sqlite+aiosqlite://"),
            identity_provider=JWTIdentityProvider(secret=TEST_JWT_SECRET),
            payment_gateway=FakePaymentGateway(),
            mailer=FakeMailer(),
        )
        return TestClient(app)

    def test_missing_token_is_refused(self, ws_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect("/ws/notifications"):
                pass
        assert exc_info.value.code == 1008

    def test_expired_token_is_refused(self, ws_client):
        token = make_token(SENDER, expires_in=-60)
        with pytest.raises(WebSocketDisconnect):
            with ws_client.websocket_connect(f"/ws/notifications?token={token}"):
                pass

    def test_valid_token_connects_and_cleans_up(self, ws_client):
        token = make_token(SENDER)
        with ws_client.websocket_connect(f"/ws/notifications?token={token}") as websocket:
            websocket.send_text("hello")
        assert ws_client.app.state.notification_hub.listener_count == 0
