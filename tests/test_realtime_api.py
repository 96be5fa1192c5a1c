"""End-to-end tests for negotiation and the client WebSocket."""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Iterator

import pytest

os.environ.setdefault("HUB_SIGNING_KEY", "test-signing-key")

from fastapi.testclient import TestClient  # noqa: E402
from starlette.websockets import WebSocketDisconnect  # noqa: E402

import chathub.services.transport as transport_module  # noqa: E402
from chathub.main import app  # noqa: E402
from chathub.services import get_hub  # noqa: E402


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _negotiate(client: TestClient, user_id: str | None = None) -> dict[str, str]:
    headers = {"userId": user_id} if user_id else {}
    response = client.post("/negotiate", headers=headers)
    assert response.status_code == 200, response.text
    assert response.headers["content-type"] == "application/octet-stream"
    return json.loads(response.content)


def _socket_path(client: TestClient, user_id: str | None = None) -> str:
    token = _negotiate(client, user_id)["accessToken"]
    return f"/client/?hub=chat&access_token={token}"


def _invoke(target: str, *arguments: str, invocation_id: str | None = None) -> dict[str, Any]:
    frame: dict[str, Any] = {"type": "invocation", "target": target, "arguments": list(arguments)}
    if invocation_id:
        frame["invocationId"] = invocation_id
    return frame


def _expect(ws, target: str) -> dict[str, Any]:
    frame = ws.receive_json()
    assert frame["type"] == "invocation", frame
    assert frame["target"] == target, frame
    return frame["arguments"][0]


def test_negotiate_returns_descriptor(client: TestClient) -> None:
    body = _negotiate(client, "alice")
    assert set(body) == {"url", "accessToken"}
    assert body["url"].endswith("/client/?hub=chat")


def test_negotiate_without_signing_key_is_service_unavailable(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("HUB_SIGNING_KEY", raising=False)
    response = client.post("/negotiate")
    assert response.status_code == 503
    assert response.json() == {"detail": "Realtime service is not configured"}


def test_index_and_health(client: TestClient) -> None:
    index = client.get("/")
    assert index.status_code == 200
    assert "text/html" in index.headers["content-type"]

    health = client.get("/health")
    assert health.json() == {"status": "ok", "hub": "chat", "connections": 0, "groups": 0}


def test_connect_with_bearer_header_announces_to_others(client: TestClient) -> None:
    with client.websocket_connect(_socket_path(client, "alice")) as first:
        own = _expect(first, "newConnection")
        assert own["authentication"] == "access_token"

        with client.websocket_connect("/client/?hub=chat", headers={"Authorization": "Bearer xyz"}) as second:
            announced = _expect(second, "newConnection")
            assert announced["authentication"] == "Bearer xyz"

            seen_by_first = _expect(first, "newConnection")
            assert seen_by_first == announced
            assert client.get("/health").json()["connections"] == 2


def test_access_token_is_not_announced_and_cannot_be_replayed(client: TestClient) -> None:
    with client.websocket_connect(_socket_path(client, "bob")) as bob:
        _expect(bob, "newConnection")

        token = _negotiate(client, "alice")["accessToken"]
        path = f"/client/?hub=chat&access_token={token}"
        with client.websocket_connect(path, headers={"Authorization": f"Bearer {token}"}) as alice:
            _expect(alice, "newConnection")
            seen_by_bob = _expect(bob, "newConnection")
            assert seen_by_bob["authentication"] == "access_token"
            assert token not in json.dumps(seen_by_bob)

            with pytest.raises(WebSocketDisconnect) as exc:
                with client.websocket_connect(path):
                    pass
            assert exc.value.code == 1008
            assert client.get("/health").json()["connections"] == 2


def test_duplicate_connection_id_is_closed_without_touching_registry(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    hub = get_hub()
    original = client.portal.call(hub.registry.register, "fixed", "", "Bearer original")
    monkeypatch.setattr(transport_module, "_new_connection_id", lambda: "fixed")

    with caplog.at_level(logging.ERROR, logger="chathub.routers.realtime"):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/client/?hub=chat", headers={"Authorization": "Bearer dup"}) as ws:
                ws.receive_text()

    assert exc.value.code == 1011
    assert client.portal.call(hub.registry.lookup, "fixed") == original
    assert client.portal.call(hub.registry.count) == 1
    assert "Transport produced a live connection id twice" in caplog.text


def test_connect_without_authorization_is_dropped(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/client/?hub=chat") as ws:
            ws.receive_text()
    assert exc.value.code == 1000
    assert client.get("/health").json()["connections"] == 0


def test_invalid_token_or_hub_is_refused(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/client/?hub=chat&access_token=garbage"):
            pass
    assert exc.value.code == 1008

    token = _negotiate(client, "alice")["accessToken"]
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/client/?hub=other&access_token={token}"):
            pass
    assert exc.value.code == 1008


def test_send_to_user_over_the_wire(client: TestClient) -> None:
    with client.websocket_connect(_socket_path(client, "alice")) as a1:
        _expect(a1, "newConnection")
        with client.websocket_connect(_socket_path(client, "alice")) as a2:
            _expect(a1, "newConnection")
            _expect(a2, "newConnection")
            with client.websocket_connect(_socket_path(client, "bob")) as bob:
                bob_id = _expect(bob, "newConnection")["connectionId"]
                _expect(a1, "newConnection")
                _expect(a2, "newConnection")

                bob.send_json(_invoke("SendToUser", "alice", "hi", invocation_id="1"))
                assert bob.receive_json() == {"type": "completion", "invocationId": "1"}

                expected = {"connectionId": bob_id, "sender": "bob", "text": "hi"}
                assert _expect(a1, "newMessage") == expected
                assert _expect(a2, "newMessage") == expected


def test_group_flow_over_the_wire(client: TestClient) -> None:
    with client.websocket_connect(_socket_path(client, "carol")) as carol:
        carol_id = _expect(carol, "newConnection")["connectionId"]
        with client.websocket_connect(_socket_path(client, "dan")) as dan:
            _expect(dan, "newConnection")
            _expect(carol, "newConnection")

            carol.send_json(_invoke("JoinGroup", carol_id, "room", invocation_id="join"))
            assert carol.receive_json() == {"type": "completion", "invocationId": "join"}
            assert client.get("/health").json()["groups"] == 1

            dan.send_json(_invoke("SendToGroup", "room", "knock knock", invocation_id="send"))
            assert dan.receive_json() == {"type": "completion", "invocationId": "send"}
            assert _expect(carol, "newMessage")["text"] == "knock knock"


def test_bad_frames_get_errors_and_socket_stays_open(client: TestClient) -> None:
    with client.websocket_connect(_socket_path(client, "eve")) as ws:
        _expect(ws, "newConnection")

        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}

        ws.send_text("{not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json(_invoke("Explode", invocation_id="7"))
        completion = ws.receive_json()
        assert completion["invocationId"] == "7"
        assert "Unknown hub method" in completion["error"]

        ws.send_json(_invoke("SendToGroup", "room"))
        assert "expects 2 argument" in ws.receive_json()["error"]

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
