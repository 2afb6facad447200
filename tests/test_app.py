import time

import pytest
from fastapi.testclient import TestClient

from coderoom.app import create_app
from coderoom.config import Settings


@pytest.fixture
def client():
    app = create_app(Settings(_env_file=None, execution_enabled=False))
    with TestClient(app) as client:
        yield client


def join(ws, room_id, name):
    ws.send_json({"type": "join", "roomId": room_id, "displayName": name})


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_websocket_room_flow(client):
    with client.websocket_connect("/ws") as a:
        join(a, "r1", "alice")
        assert a.receive_json()["type"] == "roomState"
        assert a.receive_json() == {"type": "userJoined", "data": ["alice"]}

        with client.websocket_connect("/ws") as b:
            join(b, "r1", "bob")
            assert b.receive_json()["type"] == "roomState"
            assert b.receive_json() == {"type": "userJoined", "data": ["alice", "bob"]}
            assert a.receive_json() == {"type": "userJoined", "data": ["alice", "bob"]}

            a.send_json({"type": "codeChange", "roomId": "r1", "code": "x=1"})
            assert b.receive_json() == {"type": "codeUpdate", "data": "x=1"}

            # If alice had been echoed her own edit it would arrive before this.
            b.send_json({"type": "typing", "roomId": "r1", "displayName": "bob"})
            assert a.receive_json() == {"type": "userTyping", "data": "bob"}

            detail = client.get("/rooms/r1").json()
            assert detail == {
                "room_id": "r1",
                "members": ["alice", "bob"],
                "language": "javascript",
                "buffer": "x=1",
            }

        # bob's socket closed: alice sees the shrunken presence list
        assert a.receive_json() == {"type": "userJoined", "data": ["alice"]}

        a.send_json({"type": "leaveRoom"})
        a.send_json({"type": "join", "roomId": "r2", "displayName": "alice"})
        assert a.receive_json()["type"] == "roomState"
        assert client.get("/rooms/r1").status_code == 404


def test_room_is_reset_after_everyone_leaves(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as c:
        join(a, "r1", "alice")
        a.receive_json(), a.receive_json()
        a.send_json({"type": "codeChange", "roomId": "r1", "code": "x=1"})
        a.send_json({"type": "languageChange", "roomId": "r1", "language": "python"})
        a.send_json({"type": "leaveRoom"})
        # Round-trip on the same socket so the leave is known to be applied.
        join(a, "elsewhere", "alice")
        assert a.receive_json()["data"]["roomId"] == "elsewhere"

        join(c, "r1", "carol")
        assert c.receive_json() == {
            "type": "roomState",
            "data": {"roomId": "r1", "buffer": "// start coding here\n", "language": "javascript"},
        }


def test_bad_frames_do_not_kill_the_connection(client):
    with client.websocket_connect("/ws") as a:
        a.send_text("not json")
        a.send_bytes(b"\x00\x01")
        a.send_json({"type": "nope"})
        join(a, "r1", "alice")
        assert a.receive_json()["type"] == "roomState"


def test_duplicate_name_rejected_over_websocket(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        join(a, "r1", "alice")
        a.receive_json(), a.receive_json()
        join(b, "r1", "alice")
        assert b.receive_json() == {
            "type": "joinRejected",
            "data": {"roomId": "r1", "reason": "name_taken"},
        }


def test_run_code_when_disabled(client):
    with client.websocket_connect("/ws") as a:
        join(a, "r1", "alice")
        a.receive_json(), a.receive_json()
        a.send_json({"type": "runCode", "roomId": "r1", "language": "python", "code": "print(1)"})
        result = a.receive_json()
        assert result["type"] == "runResult"
        assert result["data"]["ok"] is False


def test_list_rooms(client):
    assert client.get("/rooms").json() == []
    with client.websocket_connect("/ws") as a:
        join(a, "r1", "alice")
        a.receive_json(), a.receive_json()
        assert client.get("/rooms").json() == [
            {"room_id": "r1", "member_count": 1, "language": "javascript"}
        ]
        a.send_json({"type": "leaveRoom"})
        join(a, "r2", "alice")
        a.receive_json()
        assert client.get("/rooms/r1").status_code == 404
        assert [r["room_id"] for r in client.get("/rooms").json()] == ["r2"]


def test_room_is_removed_when_last_socket_closes(client):
    with client.websocket_connect("/ws") as a:
        join(a, "r1", "alice")
        a.receive_json(), a.receive_json()
        a.send_json({"type": "codeChange", "roomId": "r1", "code": "x=1"})
        # Another member's round-trip shows the edit was applied before closing.
        with client.websocket_connect("/ws") as b:
            join(b, "r1", "bob")
            assert b.receive_json()["data"]["buffer"] == "x=1"
            b.send_json({"type": "leaveRoom"})
            assert a.receive_json() == {"type": "userJoined", "data": ["alice", "bob"]}
            assert a.receive_json() == {"type": "userJoined", "data": ["alice"]}

    assert wait_until(lambda: client.get("/rooms/r1").status_code == 404)

    with client.websocket_connect("/ws") as c:
        join(c, "r1", "carol")
        assert c.receive_json()["data"]["buffer"] == "// start coding here\n"
