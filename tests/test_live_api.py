import queue
import threading

import pytest
from starlette.websockets import WebSocketDisconnect

from app.api import subscriptions
from app.core.permission_listener import PermissionErrorListener
from tests.fakes import bearer

API = "/api/v1"
RECEIVE_TIMEOUT = 5


def token_for(principal):
    return bearer(principal)["Authorization"].split(" ", 1)[1]


def receive(ws, timeout=RECEIVE_TIMEOUT):
    """receive_json that fails the test instead of blocking forever."""
    box = queue.Queue()

    def read():
        try:
            box.put((True, ws.receive_json()))
        except Exception as e:
            box.put((False, e))

    threading.Thread(target=read, daemon=True).start()
    try:
        ok, value = box.get(timeout=timeout)
    except queue.Empty:
        pytest.fail(f"No frame within {timeout}s")
    if not ok:
        raise value
    return value


def test_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/subscribe") as ws:
            ws.receive_json()
    assert exc_info.value.code == 1008


def test_collection_and_document_snapshots(client, alice):
    body = {"debtor": "Bilal", "creditor": "Alice", "amount": 500, "due_date": "2025-03-01"}
    assert client.post(f"{API}/users/alice/qarzs", json=body, headers=bearer(alice)).status_code == 201

    with client.websocket_connect(f"/ws/subscribe?token={token_for(alice)}") as ws:
        ws.send_json({"path": "users/alice/qarzs"})
        frame = receive(ws)
        assert frame["type"] == "snapshot"
        assert frame["path"] == "users/alice/qarzs"
        assert [q["amount"] for q in frame["data"]] == [500]

        ws.send_json({"path": "users/alice"})
        frame = receive(ws)
        assert frame == {"type": "snapshot", "path": "users/alice", "data": None}


def test_denied_subscription_in_development(client, alice):
    with client.websocket_connect(f"/ws/subscribe?token={token_for(alice)}") as ws:
        ws.send_json({"path": "users/bob/qarzs"})
        frame = receive(ws)

    assert frame["type"] == "error"
    assert frame["code"] == "PERMISSION_DENIED"
    assert frame["details"] == {"path": "users/bob/qarzs", "operation": "list"}


def test_denied_subscription_in_production(app, client, alice, production_settings, monkeypatch):
    monkeypatch.setattr(subscriptions, "settings", production_settings)
    app.state.permission_listener.unmount()
    PermissionErrorListener(app.state.emitter, production_settings).mount()

    with client.websocket_connect(f"/ws/subscribe?token={token_for(alice)}") as ws:
        ws.send_json({"path": "users/bob/qarzs"})
        toast = receive(ws)
        error = receive(ws)

    assert toast["type"] == "toast"
    assert toast["title"] == "Permission Denied"
    assert error["code"] == "PERMISSION_DENIED"
    assert error["details"] is None
    assert "users/bob" not in toast["description"]


def test_invalid_path(client, alice):
    with client.websocket_connect(f"/ws/subscribe?token={token_for(alice)}") as ws:
        ws.send_json({"path": "users//qarzs"})
        frame = receive(ws)

    assert frame["type"] == "error"
    assert frame["code"] == "INVALID_PATH"


def test_malformed_frames_keep_the_session_open(client, alice):
    with client.websocket_connect(f"/ws/subscribe?token={token_for(alice)}") as ws:
        ws.send_text("not json")
        frame = receive(ws)
        assert frame["type"] == "error"
        assert frame["code"] == "INVALID_FRAME"

        ws.send_json(["users/alice/qarzs"])
        assert receive(ws)["code"] == "INVALID_FRAME"

        ws.send_json({"path": "users/alice/qarzs"})
        frame = receive(ws)

    assert frame == {"type": "snapshot", "path": "users/alice/qarzs", "data": []}
