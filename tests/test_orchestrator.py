# tests/test_orchestrator.py
import json

import numpy as np
import pytest

import app.orchestrator as orchestrator
from adaptation.score import AdaptationScoreTracker
from app.cli import main as cli_main
from app.orchestrator import get_catalog, result_to_dict, run_adaptation
from meditation.catalog import MeditationCatalog, NoMatchError


class ConstantStep:
    def uniform(self, lo, hi):
        return 1.0


STRESSED_PAYLOAD = {
    "voice": {"volume": 70, "tone": "stressed", "clarity": 60, "breathing": "shallow"},
    "face": {"emotion": "stressed", "attentionLevel": 40, "eyeOpenness": 85, "faceDetected": True},
    "wearable": {"heartRate": 96, "bodyTemperature": 37.4, "bloodOxygen": 94, "energyLevel": "high", "isConnected": True},
}


def test_cycle_from_host_payload():
    tracker = AdaptationScoreTracker(initial=68, rng=ConstantStep())
    result = run_adaptation(STRESSED_PAYLOAD, tracker=tracker, rng=np.random.default_rng(0), run_id="test_run")

    assert result.run_id == "test_run"
    assert result.emotional_state == "stressed"
    assert result.environment.sound == 30
    assert result.environment.temperature == 35
    assert result.environment.vibration == 20
    assert (result.environment.light, result.environment.brightness) == (60, 65)
    assert len(result.insights) == 4
    assert result.top_insights == result.insights[:3]
    assert result.session_recommendation.startswith("Your biometrics indicate elevated stress levels.")
    assert result.meditation.energy_type == "calming"
    assert result.meditation_suggestion == 'Try "Deep Relaxation" (10 min) to reduce stress.'
    assert result.adaptation_score == 69
    assert 0 <= result.biometric_score <= 100


def test_tracker_is_owned_by_caller():
    tracker = AdaptationScoreTracker(initial=50, rng=ConstantStep())
    for expected in (51, 52, 53):
        assert run_adaptation({}, tracker=tracker, run_id="test_run").adaptation_score == expected


def test_insight_limit_override():
    result = run_adaptation(STRESSED_PAYLOAD, run_id="test_run", insight_limit=1)
    assert len(result.top_insights) == 1


def test_no_match_propagates():
    with pytest.raises(NoMatchError):
        run_adaptation(STRESSED_PAYLOAD, catalog=MeditationCatalog([]), run_id="test_run")


def test_result_is_json_serializable():
    out = result_to_dict(run_adaptation(STRESSED_PAYLOAD, run_id="test_run"))
    decoded = json.loads(json.dumps(out))
    assert decoded["environment"]["temperature"] == 35
    assert isinstance(decoded["meditation"]["script"], list)


def test_catalog_is_loaded_once():
    assert get_catalog() is get_catalog()


def test_cli_evaluate(tmp_path, capsys):
    snap = tmp_path / "snapshot.json"
    snap.write_text(json.dumps(STRESSED_PAYLOAD), encoding="utf-8")
    assert cli_main(["evaluate", "--snapshot", str(snap), "--seed", "1", "--run-id", "cli"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if "meditation_suggestion" in line]
    out = json.loads(lines[-1])
    assert out["run_id"] == "cli"
    assert out["meditation"]["energy_type"] == "calming"


def test_cli_reports_catalog_mismatch(tmp_path, monkeypatch, capsys):
    snap = tmp_path / "snapshot.json"
    snap.write_text(json.dumps(STRESSED_PAYLOAD), encoding="utf-8")
    monkeypatch.setattr("app.cli.get_catalog", lambda path=None: MeditationCatalog([]))
    assert cli_main(["evaluate", "--snapshot", str(snap)]) == 2
    assert "no matching meditation" in capsys.readouterr().err


def test_cli_catalog_listing(capsys):
    assert cli_main(["catalog", "--energy-type", "focusing"]) == 0
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    assert [r["id"] for r in rows] == ["focus-enhancement"]


def test_error_counter_increments(monkeypatch):
    calls = []
    monkeypatch.setattr(orchestrator, "inc_counter", lambda counter, labels, amount=1.0: calls.append(counter))
    with pytest.raises(NoMatchError):
        run_adaptation({}, catalog=MeditationCatalog([]), run_id="test_run")
    assert orchestrator.catalog_mismatch_total in calls
    assert orchestrator.evaluation_errors_total in calls
