import csv
import os

import pytest
from fastapi.testclient import TestClient

from bleenkz.app import app
from bleenkz.routes import api_routes
from bleenkz.services.messages import FUNNY_MESSAGES, MessageBoard
from bleenkz.test_detection import make_frame
from bleenkz.test_session_messages import FixedRandom
from bleenkz.utils.data_logger import DataLogger


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(api_routes.llm_client, "base_url", "")
    c = TestClient(app)
    c.post("/api/reset")
    return c


def frame_body(ear, ts):
    pts = make_frame(ear).points
    return {"landmarks": [{"x": p.x, "y": p.y} for p in pts], "present": True, "timestamp": ts}


def test_health(client):
    assert client.get("/api/health").json() == {"ok": True}


def test_status(client):
    body = client.get("/api/status").json()
    assert body["backendConnected"] is True
    assert "landmarkModelLoaded" in body


def test_frames_produce_one_blink(client):
    detected = []
    for i, ear in enumerate([0.30] * 10 + [0.15] * 3):
        resp = client.post("/api/frame", json=frame_body(ear, i * 33))
        assert resp.status_code == 200
        detected.append(resp.json()["blink_detected"])

    assert detected.count(True) == 1
    assert detected.index(True) == 11

    stats = client.get("/api/blink_stats").json()
    assert stats["blink_count"] == 1
    assert stats["blinks_per_second"] == pytest.approx(0.2)

    state = client.get("/api/debug/state").json()
    assert state["eyes_closed"] is True
    assert state["token_amount"] == pytest.approx(0.00002)


def test_absent_frame(client):
    resp = client.post("/api/frame", json={"landmarks": [], "present": False, "timestamp": 0})
    body = resp.json()
    assert body["face_detected"] is False
    assert body["ear"] is None
    assert body["blink_detected"] is False


def test_bad_frame_body(client):
    resp = client.post("/api/frame", json={"landmarks": [{"x": "left"}]})
    assert resp.status_code == 422


def test_manual_blink_and_reset(client):
    resp = client.post("/api/blink")
    assert resp.json()["blink_detected"] is True
    assert client.get("/api/blink_stats").json()["blink_count"] == 1

    body = client.post("/api/reset").json()
    assert body["blink_count"] == 0
    assert client.get("/api/blink_stats").json()["blink_count"] == 0


def test_predict_frame_without_model(client, monkeypatch):
    monkeypatch.setattr(api_routes, "facemesh", None)
    resp = client.post("/api/predict_frame", json={"frame_data": "aGVsbG8="})
    assert resp.status_code == 503


def test_message_falls_back(client, monkeypatch):
    monkeypatch.setattr(api_routes.llm_client, "base_url", "")
    body = client.post("/api/message", json={}).json()
    assert body["source"] == "fallback"
    assert body["response"]


def test_blink_stats_pattern_expires(client):
    for t in range(0, 1500, 300):
        client.post("/api/frame", json={"landmarks": [], "present": False, "timestamp": t})
        api_routes.pipeline.register_manual_blink(ts=t)
    assert client.get("/api/blink_stats").json()["pattern"] == "fast"

    client.post("/api/frame", json={"landmarks": [], "present": False, "timestamp": 600000})
    stats = client.get("/api/blink_stats").json()
    assert stats["blinks_per_second"] == 0
    assert stats["pattern"] == "none"
    assert client.get("/api/debug/state").json()["pattern"] == "none"


def test_blinks_written_to_csv(client, monkeypatch, tmp_path):
    monkeypatch.setattr(api_routes, "data_logger", DataLogger(base_dir=str(tmp_path)))
    client.post("/api/blink")

    files = os.listdir(tmp_path)
    assert len(files) == 1
    with open(tmp_path / files[0], newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["logged_at", "event_ms", "blink_count", "blinks_per_second", "pattern"]
    assert len(rows) == 2
    assert rows[1][2] == "1"
    assert rows[1][3] == "0.20"
    assert rows[1][4] == "none"


class StubLLM:
    configured = True

    def __init__(self, text):
        self.text = text
        self.prompts = []

    def generate(self, prompt, model=None, options=None):
        self.prompts.append(prompt)
        return self.text


def test_blink_message_rewritten_by_model(client, monkeypatch):
    stub = StubLLM("Blink like nobody's watching!")
    spawned = []

    def run_now(target, *args):
        spawned.append(target)
        target(*args)

    monkeypatch.setattr(api_routes, "llm_client", stub)
    monkeypatch.setattr(api_routes, "board", MessageBoard(rng=FixedRandom(0.0)))
    monkeypatch.setattr(api_routes, "_spawn", run_now)

    client.post("/api/blink")
    assert len(spawned) == 1
    assert len(stub.prompts) == 1
    assert client.get("/api/debug/state").json()["message"] == "Blink like nobody's watching!"


def test_blink_message_without_model(client, monkeypatch):
    monkeypatch.setattr(api_routes, "board", MessageBoard(rng=FixedRandom(0.0)))
    monkeypatch.setattr(api_routes, "_spawn", lambda *a: pytest.fail("model called"))

    client.post("/api/blink")
    assert client.get("/api/debug/state").json()["message"] == FUNNY_MESSAGES[0]
