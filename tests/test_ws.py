import httpx
from fastapi.testclient import TestClient

from app.main import create_app
from app.settings import Settings


def _app():
    settings = Settings(_env_file=None, app_env="test")
    return create_app(
        settings, transport=httpx.MockTransport(lambda request: httpx.Response(503))
    )


def test_disaster_room_receives_one_event_per_mutation() -> None:
    with TestClient(_app()) as client:
        with client.websocket_connect("/ws/disasters/1") as ws:
            assert ws.receive_json() == {"event": "connected", "topics": ["1"]}

            response = client.put(
                "/api/disasters/1",
                headers={"x-user-id": "netrunnerX"},
                json={"description": "Water receding"},
            )
            assert response.status_code == 200

            event = ws.receive_json()
            assert event["event"] == "disaster_updated"
            assert event["topic"] == "1"
            assert event["action"] == "update"
            assert event["data"]["description"] == "Water receding"

            # The next message is the ack, so no second event was queued.
            ws.send_json({"type": "leave_disaster", "disaster_id": "1"})
            assert ws.receive_json() == {"event": "left", "disaster_id": "1"}


def test_join_and_wildcard() -> None:
    with TestClient(_app()) as client:
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json()["topics"] == []

            ws.send_json({"type": "join_disaster", "disaster_id": "*"})
            assert ws.receive_json() == {"event": "joined", "disaster_id": "*"}

            client.post(
                "/api/disasters/2/resources",
                json={"name": "Cooling Center", "location_name": "Pasadena, CA", "type": "shelter"},
            )
            event = ws.receive_json()
            assert event["event"] == "resources_updated"
            assert event["topic"] == "2"
            assert event["action"] == "create"


def test_bad_messages_get_error_replies() -> None:
    with TestClient(_app()) as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            assert ws.receive_json()["message"] == "invalid json"
            ws.send_json({"type": "shout"})
            assert ws.receive_json()["message"] == "unsupported message"
