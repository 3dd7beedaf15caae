"""Integration tests for the REST and WebSocket API against the in-memory store."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from private_chat.api.deps import get_auth_service, get_clock
from private_chat.app import create_app
from private_chat.application.exceptions import StoreError
from private_chat.config import settings
from private_chat.infrastructure.auth.hs256_auth import HS256AuthService
from tests.conftest import CLIENT_UID, MASTER_UID, FakeDocumentStore, TickingClock


@pytest.fixture
def auth_service() -> HS256AuthService:
    return HS256AuthService(settings.JWT_SECRET, settings.CLIENT_UID)


@pytest.fixture
def app_store():
    return FakeDocumentStore()


@pytest.fixture
def client(app_store, auth_service):
    app = create_app()
    app.state.store = app_store
    clock = TickingClock()
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _headers(auth_service: HS256AuthService, uid: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_service.issue_token(uid)}"}


@pytest.fixture
def client_headers(auth_service):
    return _headers(auth_service, CLIENT_UID)


@pytest.fixture
def master_headers(auth_service):
    return _headers(auth_service, MASTER_UID)


def _receive_until(ws, predicate, limit: int = 20) -> dict:
    for _ in range(limit):
        event = ws.receive_json()
        if predicate(event):
            return event
    raise AssertionError("expected event never arrived")


def _state(phase: str):
    return lambda e: e["type"] == "state" and e["data"]["phase"] == phase


# -- health ---------------------------------------------------------------


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_readyz_reports_store_failure(client, app_store):
    assert client.get("/readyz").json() == {"status": "ready"}

    app_store.fail_with = StoreError("backend down")
    resp = client.get("/readyz")

    assert resp.status_code == 503
    assert resp.json()["status"] == "unavailable"


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


# -- auth -----------------------------------------------------------------


def test_anonymous_sign_in_then_me(client):
    resp = client.post("/api/v1/auth/anonymous")
    assert resp.status_code == 200
    body = resp.json()
    assert body["role"] == "master"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json() == {"uid": body["uid"], "role": "master"}


def test_missing_token_rejected(client):
    resp = client.get("/api/v1/chat/status")
    assert resp.status_code in (401, 403)


def test_invalid_token_rejected(client):
    resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


# -- chat -----------------------------------------------------------------


def test_client_flow_with_limit_and_special_code(client, client_headers, master_headers):
    login = client.post("/api/v1/chat/login", headers=client_headers)
    assert login.status_code == 200
    assert login.json()["is_logged_in"] is True
    assert login.json()["messages_left"] == 3

    for i in range(3):
        resp = client.post("/api/v1/chat/messages", json={"text": f"msg {i}"}, headers=client_headers)
        assert resp.status_code == 201
    assert resp.json()["status"]["messages_left"] == 0

    blocked = client.post("/api/v1/chat/messages", json={"text": "more"}, headers=client_headers)
    assert blocked.status_code == 429

    unlock = client.post("/api/v1/chat/messages", json={"text": "UNLOCK123"}, headers=client_headers)
    assert unlock.status_code == 201
    assert unlock.json()["action"] == "reset_counter"
    assert unlock.json()["message"]["is_system"] is True
    assert unlock.json()["status"]["msg_count"] == 0

    history = client.get("/api/v1/chat/messages", headers=master_headers)
    assert history.status_code == 200
    texts = [m["text"] for m in history.json()]
    assert texts[:3] == ["msg 0", "msg 1", "msg 2"]
    assert texts[-1].startswith("Master: Code received")

    status = client.get("/api/v1/chat/status", headers=master_headers).json()
    assert status["is_logged_in"] is True
    assert status["msg_count"] == 0


def test_empty_message_rejected(client, client_headers):
    client.post("/api/v1/chat/login", headers=client_headers)
    resp = client.post("/api/v1/chat/messages", json={"text": "   "}, headers=client_headers)
    assert resp.status_code == 422


def test_master_send_while_client_offline(client, master_headers):
    resp = client.post("/api/v1/chat/messages", json={"text": "hello?"}, headers=master_headers)
    assert resp.status_code == 409


def test_client_send_before_login(client, client_headers):
    resp = client.post("/api/v1/chat/messages", json={"text": "hi"}, headers=client_headers)
    assert resp.status_code == 403


def test_force_logout_is_master_only(client, app_store, client_headers, master_headers):
    client.post("/api/v1/chat/login", headers=client_headers)

    denied = client.post("/api/v1/chat/force-logout", headers=client_headers)
    assert denied.status_code == 403

    resp = client.post("/api/v1/chat/force-logout", headers=master_headers)
    assert resp.status_code == 202
    assert resp.json() == {"status": "requested"}
    status_doc = f"artifacts/test-app/public/data/users/{CLIENT_UID}"
    assert app_store.docs[status_doc]["forceLogout"] is True


def test_client_send_refused_after_forced_logout(client, client_headers, master_headers):
    client.post("/api/v1/chat/login", headers=client_headers)
    client.post("/api/v1/chat/force-logout", headers=master_headers)

    resp = client.post("/api/v1/chat/messages", json={"text": "still here"}, headers=client_headers)

    assert resp.status_code == 403
    history = client.get("/api/v1/chat/messages", headers=master_headers)
    assert history.json() == []


def test_force_logout_without_client_is_not_found(client, master_headers):
    resp = client.post("/api/v1/chat/force-logout", headers=master_headers)
    assert resp.status_code == 404


def test_logout_deletes_data_and_revokes_token(client, app_store, client_headers):
    client.post("/api/v1/chat/login", headers=client_headers)
    client.post("/api/v1/chat/messages", json={"text": "bye"}, headers=client_headers)

    resp = client.post("/api/v1/chat/logout", headers=client_headers)

    assert resp.status_code == 204
    assert app_store.docs == {}
    assert client.get("/api/v1/auth/me", headers=client_headers).status_code == 401


def test_store_failure_maps_to_503(client, app_store, client_headers):
    client.post("/api/v1/chat/login", headers=client_headers)
    app_store.fail_with = StoreError("backend down")

    resp = client.post("/api/v1/chat/messages", json={"text": "hi"}, headers=client_headers)

    assert resp.status_code == 503


# -- room -----------------------------------------------------------------


def test_room_post_and_list(client, auth_service):
    headers = _headers(auth_service, "abcd9999")

    created = client.post("/api/v1/room/messages", json={"text": "hello room"}, headers=headers)
    assert created.status_code == 201

    listed = client.get("/api/v1/room/messages", headers=headers)
    assert listed.status_code == 200
    [message] = listed.json()
    assert message["id"] == created.json()["id"]
    assert message["display_name"] == "Guest-abcd"
    assert message["uid"] == "abcd9999"


# -- websocket ------------------------------------------------------------


def test_ws_session_client_flow(client, auth_service):
    token = auth_service.issue_token(CLIENT_UID)
    with client.websocket_connect(f"/ws/session?token={token}") as ws:
        _receive_until(ws, _state("client_view"))

        ws.send_json({"type": "login"})
        _receive_until(
            ws,
            lambda e: e["type"] == "state"
            and e["data"]["client_status"]["is_logged_in"],
        )

        ws.send_json({"type": "send", "data": {"text": "hi there"}})
        result = _receive_until(ws, lambda e: e["type"] == "send.result")
        assert result["data"]["outcome"] == "sent"

        ws.send_json({"type": "ping"})
        _receive_until(ws, lambda e: e["type"] == "pong")

        ws.send_json({"type": "bogus"})
        error = _receive_until(ws, lambda e: e["type"] == "error")
        assert error["data"]["code"] == "unknown_type"


def test_ws_session_hold_logs_client_out(client, auth_service, app_store):
    token = auth_service.issue_token(CLIENT_UID)
    with client.websocket_connect("/ws/session") as ws:
        _receive_until(ws, _state("unauthenticated"))
        ws.send_json({"type": "auth", "data": {"token": token}})
        _receive_until(ws, _state("client_view"))
        ws.send_json({"type": "login"})

        ws.send_json({"type": "hold.press"})
        _receive_until(ws, lambda e: e["type"] == "state" and e["data"]["holding"])
        _receive_until(ws, _state("unauthenticated"))

    assert app_store.docs == {}


def test_ws_session_rejects_bad_payload(client):
    with client.websocket_connect("/ws/session") as ws:
        ws.receive_json()
        ws.send_text("not json")
        error = _receive_until(ws, lambda e: e["type"] == "error")
        assert error["data"]["code"] == "invalid_payload"


def test_ws_room_broadcasts_snapshots(client, auth_service):
    token = auth_service.issue_token("room-guest")
    with client.websocket_connect(f"/ws/room?token={token}") as ws:
        first = ws.receive_json()
        assert first == {"type": "room.snapshot", "data": {"messages": []}}

        ws.send_json({"type": "message.send", "data": {"text": "hey all"}})
        snapshot = _receive_until(
            ws, lambda e: e["type"] == "room.snapshot" and e["data"]["messages"],
        )
        [message] = snapshot["data"]["messages"]
        assert message["text"] == "hey all"
        assert message["display_name"] == "Guest-room"


def test_ws_room_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/room?token=garbage") as ws:
            ws.receive_json()
    assert exc_info.value.code == 4001
