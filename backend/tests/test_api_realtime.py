# backend/tests/test_api_realtime.py

import pytest
from starlette.websockets import WebSocketDisconnect


def test_realtime_health(client):
    body = client.get("/realtime/health").json()
    assert body["status"] == "healthy"
    assert "connected_clients" in body


def test_socket_rejects_missing_or_bad_token(client):
    for url in ("/ws", "/ws?token=garbage"):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(url):
                pass
        assert exc.value.code == 1008


def test_socket_message_protocol(client, token, user_id):
    with client.websocket_connect(f"/ws?token={token}") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "connection_established"
        assert hello["user_id"] == user_id

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        ws.send_json({"type": "subscribe_soil_updates", "farm_id": "f1"})
        reply = ws.receive_json()
        assert reply["type"] == "subscription_confirmed"
        assert reply["farm_id"] == "f1"

        ws.send_json({"type": "unsubscribe_soil_updates", "farm_id": "f1"})
        assert ws.receive_json()["type"] == "unsubscription_confirmed"

        ws.send_text("{not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_bytes(b"\x00\x01")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        ws.send_json({"type": "request_current_data", "resource": "soil_readings"})
        current = ws.receive_json()
        assert current["type"] == "current_soil_readings"
        assert current["data"] == []


def test_socket_accepts_bearer_header(client, token):
    with client.websocket_connect("/ws", headers={"Authorization": f"Bearer {token}"}) as ws:
        assert ws.receive_json()["type"] == "connection_established"


def test_reading_events_are_pushed(client, token, auth_headers, farm, acidic_reading):
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()

        res = client.post("/soil/readings", json={"farm_id": farm["id"], **acidic_reading}, headers=auth_headers)
        reading = res.json()

        added = ws.receive_json()
        assert added["type"] == "soil_reading_added"
        assert added["data"]["id"] == reading["id"]

        score = ws.receive_json()
        assert score["type"] == "health_score_updated"
        assert score["data"] == {"farm_id": farm["id"], "health_score": reading["health_score"]}

        alert = ws.receive_json()
        assert alert["type"] == "alert"
        assert alert["data"]["urgency"] == "high"

        client.patch(f"/soil/readings/{reading['id']}", json={"notes": "resampled"}, headers=auth_headers)
        updated = ws.receive_json()
        assert updated["type"] == "soil_reading_updated"
        assert updated["data"]["notes"] == "resampled"

        client.delete(f"/soil/readings/{reading['id']}", headers=auth_headers)
        deleted = ws.receive_json()
        assert deleted["type"] == "soil_reading_deleted"
        assert deleted["data"] == {"id": reading["id"]}

        ws.send_json({"type": "request_current_data", "resource": "soil_readings"})
        assert ws.receive_json()["data"] == []
