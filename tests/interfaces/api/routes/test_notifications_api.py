"""Integration tests for the notification endpoints and websocket."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


def _send(client: TestClient, admin, recipients, **overrides) -> dict:
    payload = {
        "recipients": recipients,
        "type": "task_assigned",
        "title": "New task assigned",
        "message": "You have been assigned 'Write docs'.",
        "priority": "high",
        "actionable": True,
        "action": "View Task",
        "link": "/tasks/42",
        "email_notification": False,
    }
    payload.update(overrides)
    response = client.post("/notifications", json=payload, headers=admin.headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_admin_send_then_list_and_read(client: TestClient, admin, member) -> None:
    created = _send(client, admin, [member.id, member.id])
    assert created["delivered_to"] == 1
    notification_id = created["notifications"][0]["id"]

    listing = client.get("/notifications", headers=member.headers)
    assert listing.status_code == 200
    body = listing.json()
    assert body["unread_count"] == 1
    assert body["pagination"] == {"page": 1, "limit": 20, "total_count": 1, "total_pages": 1}
    assert body["notifications"][0]["link"] == "/tasks/42"
    assert body["notifications"][0]["priority"] == "high"

    summary = client.get("/notifications/summary", headers=member.headers).json()
    assert summary["unread_count"] == 1

    not_owner = client.patch(f"/notifications/{notification_id}/read", headers=admin.headers)
    assert not_owner.status_code == 404

    marked = client.patch(f"/notifications/{notification_id}/read", headers=member.headers)
    assert marked.status_code == 200
    assert marked.json()["read"] is True

    unread = client.get("/notifications", params={"unread_only": True}, headers=member.headers)
    assert unread.json()["pagination"]["total_count"] == 0


def test_mark_all_read_is_idempotent(client: TestClient, admin, member) -> None:
    for title in ("one", "two", "three"):
        _send(client, admin, [member.id], title=title)

    first = client.patch("/notifications/read-all", headers=member.headers)
    second = client.patch("/notifications/read-all", headers=member.headers)

    assert first.json() == {"count": 3}
    assert second.json() == {"count": 0}
    assert client.get("/notifications/summary", headers=member.headers).json()[
        "unread_count"
    ] == 0


def test_delete_and_clear(client: TestClient, admin, member) -> None:
    created = _send(client, admin, [member.id])
    _send(client, admin, [member.id], title="second")
    notification_id = created["notifications"][0]["id"]

    assert client.delete(f"/notifications/{notification_id}", headers=member.headers).status_code == 204
    assert client.delete(f"/notifications/{notification_id}", headers=member.headers).status_code == 404
    assert client.delete("/notifications", headers=member.headers).json() == {"count": 1}


def test_broadcast_to_role(client: TestClient, admin, member) -> None:
    response = client.post(
        "/notifications/broadcast",
        json={"type": "system_alert", "title": "Maintenance", "message": "Tonight", "role": "member"},
        headers=admin.headers,
    )

    assert response.status_code == 201
    assert [n["user_id"] for n in response.json()["notifications"]] == [member.id]


def test_only_admins_can_send(client: TestClient, member) -> None:
    response = client.post(
        "/notifications",
        json={"recipients": [member.id], "title": "Hi", "message": "There"},
        headers=member.headers,
    )

    assert response.status_code == 403


def test_invalid_payload_is_rejected(client: TestClient, admin, member) -> None:
    response = client.post(
        "/notifications",
        json={"recipients": [member.id], "title": "x" * 201, "message": "There"},
        headers=admin.headers,
    )

    assert response.status_code == 422


def test_requests_without_token_are_unauthorized(client: TestClient) -> None:
    assert client.get("/notifications").status_code == 401
    assert (
        client.get("/notifications", headers={"Authorization": "Bearer nope"}).status_code
        == 401
    )


def test_inactive_user_is_rejected(client: TestClient, inactive) -> None:
    assert client.get("/notifications", headers=inactive.headers).status_code == 400


def test_preferences_default_and_update(client: TestClient, member) -> None:
    defaults = client.get("/notifications/preferences", headers=member.headers).json()
    assert defaults["email"]["team_activity"] is False
    assert defaults["push"]["team_activity"] is True
    assert defaults["real_time"]["enabled"] is True

    defaults["email"]["task_due"] = False
    defaults["real_time"]["sound"] = False
    updated = client.put("/notifications/preferences", json=defaults, headers=member.headers)

    assert updated.status_code == 200
    reloaded = client.get("/notifications/preferences", headers=member.headers).json()
    assert reloaded["email"]["task_due"] is False
    assert reloaded["real_time"]["sound"] is False


def test_websocket_rejects_invalid_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/notifications/ws?token=invalid"):
            pass

    assert excinfo.value.code == 1008


def test_websocket_rejects_missing_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/notifications/ws"):
            pass

    assert excinfo.value.code == 1008


def test_websocket_receives_live_notifications(client: TestClient, admin, member) -> None:
    with client.websocket_connect(f"/notifications/ws?token={member.token}") as websocket:
        initial = websocket.receive_json()
        assert initial == {
            "type": "notification_summary",
            "data": {"unread_count": 0, "recent_notifications": []},
        }

        status = client.get("/notifications/status", headers=member.headers).json()
        assert status["online"] is True
        assert status["connections"] == 1

        _send(client, admin, [member.id])

        pushed = websocket.receive_json()
        assert pushed["type"] == "notification"
        assert pushed["data"]["title"] == "New task assigned"
        summary = websocket.receive_json()
        assert summary["type"] == "notification_summary"
        assert summary["data"]["unread_count"] == 1

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_json({"type": "get_notifications", "filters": {"limit": 5}})
        listing = websocket.receive_json()
        assert listing["type"] == "notifications_list"
        assert listing["data"]["pagination"]["total_count"] == 1

        websocket.send_json({"type": "mark_read", "ids": [pushed["data"]["id"]]})
        assert websocket.receive_json()["data"]["unread_count"] == 0

        websocket.send_json(
            {"type": "update_preferences", "preferences": {"email": {"task_assigned": False}}}
        )
        preferences = websocket.receive_json()
        assert preferences["type"] == "preferences_updated"
        assert preferences["data"]["email"]["task_assigned"] is False
        assert preferences["data"]["push"]["task_assigned"] is True

    status = client.get("/notifications/status", headers=member.headers).json()
    assert status["online"] is False


def test_offline_notifications_are_replayed_on_connect(client: TestClient, admin, member) -> None:
    _send(client, admin, [member.id], title="first")
    _send(client, admin, [member.id], title="second")

    with client.websocket_connect(f"/notifications/ws?token={member.token}") as websocket:
        replayed = [websocket.receive_json(), websocket.receive_json()]
        summary = websocket.receive_json()

    assert [m["type"] for m in replayed] == ["notification", "notification"]
    assert [m["data"]["title"] for m in replayed] == ["first", "second"]
    assert summary["type"] == "notification_summary"
    assert summary["data"]["unread_count"] == 2
