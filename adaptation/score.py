# adaptation/score.py
from __future__ import annotations

import threading
from typing import Optional

import numpy as np

from common.types import SensorSnapshot
from common.utils import above, below, between, clamp_percent
from config.settings import SETTINGS

_SCORE_CFG = SETTINGS.adaptation_score


def calculate_adaptation_score(snapshot: SensorSnapshot) -> int:
    """
    Rule-based alignment of the snapshot with a good session state, in [0,100].
    Each signal adds or removes a fixed amount from a base of 50.
    """
    voice, face, wearable = snapshot.voice, snapshot.face, snapshot.wearable
    score = 50

    # face
    if face.emotion == "relaxed":
        score += 15
    elif face.emotion == "stressed":
        score -= 10
    if above(face.attention_level, 80):
        score += 10
    elif below(face.attention_level, 50):
        score -= 10

    # voice
    if voice.tone == "calm":
        score += 10
    elif voice.tone == "stressed":
        score -= 10
    if above(voice.clarity, 80):
        score += 5

    # wearable
    if between(wearable.heart_rate, 60, 80):
        score += 15
    elif above(wearable.heart_rate, 90):
        score -= 15
    if wearable.energy_level == "high":
        score += 10
    elif wearable.energy_level == "low":
        score -= 5

    return clamp_percent(score)


class AdaptationScoreTracker:
    """
    Running "AI adaptation" indicator owned by the caller.

    Every ``update()`` applies a bounded random-walk step drawn uniformly from
    [step_min, step_max), caps the value at ``ceiling`` and keeps it in [0,100].
    Pass a seeded ``numpy.random.Generator`` (or any object with ``uniform``)
    to make the walk reproducible.
    """

    def __init__(
        self,
        initial: Optional[float] = None,
        ceiling: Optional[float] = None,
        step_min: Optional[float] = None,
        step_max: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.initial = float(_SCORE_CFG.initial if initial is None else initial)
        self.ceiling = float(_SCORE_CFG.ceiling if ceiling is None else ceiling)
        self.step_min = float(_SCORE_CFG.step_min if step_min is None else step_min)
        self.step_max = float(_SCORE_CFG.step_max if step_max is None else step_max)
        if self.step_min > self.step_max:
            raise ValueError("step_min must not exceed step_max")
        self._rng = rng if rng is not None else np.random.default_rng()
        self._lock = threading.Lock()
        self._value = self._bound(self.initial)

    def _bound(self, value: float) -> float:
        return max(0.0, min(100.0, min(self.ceiling, value)))

    @property
    def value(self) -> float:
        return self._value

    @property
    def score(self) -> int:
        return clamp_percent(self._value)

    def update(self) -> int:
        with self._lock:
            step = float(self._rng.uniform(self.step_min, self.step_max))
            self._value = self._bound(self._value + step)
            return clamp_percent(self._value)

    def reset(self) -> None:
        with self._lock:
            self._value = self._bound(self.initial)
