from fastapi.testclient import TestClient

from backend.app.api import websocket
from backend.app.api.websocket import NO_INSTRUCTIONS
from backend.app.core.config import Settings
from backend.app.main import app

client = TestClient(app)


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_annotate_instruction_list():
    response = client.post("/api/v1/steps", json={"instructions": ["Bake for 1 hour", "Serve"]})
    assert response.status_code == 200
    steps = response.json()["steps"]
    assert steps[0]["estimated_time_minutes"] == 60
    assert steps[1]["id"] == "step-1"


def test_annotate_raw_text():
    response = client.post("/api/v1/steps", json={"title": "Pasta", "text": "1. Boil water\n2) Add pasta"})
    body = response.json()
    assert body["title"] == "Pasta"
    assert [s["instruction"] for s in body["steps"]] == ["Boil water", "Add pasta"]
    assert body["steps"][0]["techniques"] == ["boiling"]


def test_session_rejects_empty_recipe():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": []})
        assert ws.receive_json() == {"type": "error", "error": NO_INSTRUCTIONS}


def test_session_runs_to_completion():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["Chop onions", "Simmer for 10 minutes"]})
        state = ws.receive_json()
        assert state["type"] == "state"
        assert state["current_step_index"] == 0

        ws.send_json({"key": "ArrowRight"})
        assert ws.receive_json()["current_step_index"] == 1

        ws.send_json({"action": "start_timer"})
        state = ws.receive_json()
        assert state["timers"][0]["name"] == "Step 2"
        assert state["timers"][0]["duration_sec"] == 600

        ws.send_json({"key": "Enter"})
        assert ws.receive_json() == {"type": "session_complete"}
        state = ws.receive_json()
        assert state["state"] == "completed"
        assert state["completed_steps"] == [1]


def test_session_exit_command():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"text": "Boil water\nAdd pasta"})
        ws.receive_json()

        ws.send_json({"command": "stop cooking"})
        assert ws.receive_json() == {"type": "session_exit"}
        assert ws.receive_json()["state"] == "inactive"


def fast_settings(monkeypatch, **overrides):
    config = Settings(**overrides)
    monkeypatch.setattr(websocket, "get_settings", lambda: config)


def test_auto_advance_is_pushed(monkeypatch):
    fast_settings(monkeypatch, auto_advance_delay_seconds=0.05)
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["one", "two"], "settings": {"auto_advance": True}})
        assert ws.receive_json()["current_step_index"] == 0

        ws.send_json({"key": "Enter"})
        reply = ws.receive_json()
        assert reply["current_step_index"] == 0
        assert reply["completed_steps"] == [0]

        pushed = ws.receive_json()
        assert pushed["type"] == "state"
        assert pushed["current_step_index"] == 1


def test_timer_completion_is_pushed(monkeypatch):
    fast_settings(monkeypatch, tick_interval_seconds=0.01)
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["Rest the dough"]})
        ws.receive_json()

        ws.send_json({"action": "start_timer", "name": "Dough", "minutes": 0.05})
        state = ws.receive_json()
        assert state["timers"][0]["duration_sec"] == 3

        alert = ws.receive_json()
        assert alert["type"] == "timer_complete"
        assert alert["name"] == "Dough"
        assert alert["title"] == "Timer Complete: Dough"
        assert alert["audio"]


def test_invalid_settings_are_rejected():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["one"], "settings": {"auto_advance": "sometimes"}})
        reply = ws.receive_json()
        assert reply["type"] == "error"
        assert reply["error"].startswith("Invalid recipe")


def test_malformed_frames_keep_session_alive():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["one", "two"]})
        ws.receive_json()

        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json(["ArrowRight"])
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"key": "ArrowRight"})
        assert ws.receive_json()["current_step_index"] == 1


def test_zero_minute_timer_is_refused():
    with client.websocket_connect("/api/v1/cook") as ws:
        ws.send_json({"instructions": ["one"]})
        ws.receive_json()

        ws.send_json({"action": "start_timer", "minutes": 0})
        assert ws.receive_json()["type"] == "error"
        assert ws.receive_json()["timers"] == []
