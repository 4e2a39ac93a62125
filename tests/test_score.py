# tests/test_score.py
import threading

import numpy as np
import pytest

from adaptation.score import AdaptationScoreTracker, calculate_adaptation_score
from common.types import FaceMetrics, SensorSnapshot, VoiceMetrics, WearableMetrics


class ConstantStep:
    def __init__(self, step):
        self.step = step

    def uniform(self, lo, hi):
        return self.step


def test_empty_snapshot_scores_base():
    assert calculate_adaptation_score(SensorSnapshot()) == 50


def test_best_case_is_capped_at_100():
    snap = SensorSnapshot(
        voice=VoiceMetrics(tone="calm", clarity=95),
        face=FaceMetrics(emotion="relaxed", attention_level=90),
        wearable=WearableMetrics(heart_rate=65, energy_level="high"),
    )
    assert calculate_adaptation_score(snap) == 100


def test_worst_case():
    snap = SensorSnapshot(
        voice=VoiceMetrics(tone="stressed", clarity=20),
        face=FaceMetrics(emotion="stressed", attention_level=20),
        wearable=WearableMetrics(heart_rate=130, energy_level="low"),
    )
    # 50 - 10 - 10 - 10 - 15 - 5
    assert calculate_adaptation_score(snap) == 0


def test_heart_rate_band_is_inclusive():
    for hr, expected in [(59, 50), (60, 65), (80, 65), (85, 50), (91, 35)]:
        snap = SensorSnapshot(wearable=WearableMetrics(heart_rate=hr))
        assert calculate_adaptation_score(snap) == expected


def test_tracker_starts_from_initial_value():
    tracker = AdaptationScoreTracker(initial=68, rng=ConstantStep(0.0))
    assert tracker.score == 68


def test_tracker_respects_ceiling():
    tracker = AdaptationScoreTracker(initial=97, ceiling=98, rng=ConstantStep(2.0))
    assert tracker.update() == 98
    assert tracker.update() == 98


def test_tracker_never_goes_below_zero():
    tracker = AdaptationScoreTracker(initial=1, rng=ConstantStep(-1.0))
    for _ in range(5):
        tracker.update()
    assert tracker.score == 0


def test_tracker_random_walk_is_reproducible_with_seed():
    a = AdaptationScoreTracker(rng=np.random.default_rng(3))
    b = AdaptationScoreTracker(rng=np.random.default_rng(3))
    assert [a.update() for _ in range(10)] == [b.update() for _ in range(10)]


def test_tracker_steps_stay_within_bounds():
    tracker = AdaptationScoreTracker(initial=50, step_min=-1, step_max=2, rng=np.random.default_rng(11))
    previous = tracker.value
    for _ in range(100):
        tracker.update()
        assert -1.0 - 1e-9 <= tracker.value - previous <= 2.0 + 1e-9
        assert 0 <= tracker.score <= 98
        previous = tracker.value


def test_tracker_reset():
    tracker = AdaptationScoreTracker(initial=70, rng=ConstantStep(1.5))
    tracker.update()
    tracker.reset()
    assert tracker.value == 70


def test_tracker_rejects_inverted_step_bounds():
    with pytest.raises(ValueError):
        AdaptationScoreTracker(step_min=3, step_max=1)


def test_concurrent_updates_are_not_lost():
    tracker = AdaptationScoreTracker(initial=10, ceiling=100, rng=ConstantStep(0.5))
    start = threading.Barrier(8)

    def worker():
        start.wait()
        for _ in range(10):
            tracker.update()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert tracker.value == pytest.approx(10 + 8 * 10 * 0.5)
