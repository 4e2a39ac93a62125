# tests/test_api.py
import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

import server.api as api
from meditation.catalog import MeditationCatalog

client = TestClient(api.app)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["catalog_size"] == 4


def test_evaluate_accepts_camel_case_payload():
    payload = {
        "voice": {"tone": "calm", "breathing": "deep"},
        "face": {"emotion": "relaxed", "attentionLevel": 90, "eyeOpenness": 95},
        "wearable": {"heartRate": 64, "bodyTemperature": 36.8, "bloodOxygen": 98, "energyLevel": "medium"},
        "seed": 5,
    }
    resp = client.post("/evaluate", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["emotional_state"] == "balanced"
    assert body["environment"] == {"sound": 60, "temperature": 50, "vibration": 60, "light": 50, "brightness": 50}
    assert body["insights"] == [
        {"message": "Optimal relaxation state achieved. Maintaining current settings.", "type": "info"},
    ]
    assert body["meditation"]["energy_type"] == "balancing"
    assert 0 <= body["adaptation_score"] <= 100


def test_evaluate_with_empty_body_sections():
    resp = client.post("/evaluate", json={})
    assert resp.status_code == 200
    assert resp.json()["emotional_state"] == "balanced"


def test_evaluate_no_match_is_404(monkeypatch):
    monkeypatch.setattr(api, "run_adaptation", _raise_no_match)
    resp = client.post("/evaluate", json={"wearable": {"heartRate": 120}})
    assert resp.status_code == 404
    assert "calming" in resp.json()["detail"]


def _raise_no_match(snapshot, **kwargs):
    MeditationCatalog([]).choose("calming")


def test_list_and_get_meditations():
    resp = client.get("/meditations", params={"energy_type": "energizing"})
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == ["energy-activation"]

    resp = client.get("/meditations/harmony-balance")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Harmony & Balance"

    assert client.get("/meditations/nope").status_code == 404
