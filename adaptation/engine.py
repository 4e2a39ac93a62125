# adaptation/engine.py
# Rule tables mapping a SensorSnapshot to environment settings, insights,
# an emotional state, a session recommendation and a meditation pick.
# Every function is pure; the only randomness is the injectable rng used
# for the meditation pick.
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

import numpy as np

from common.types import (
    EnvironmentRecommendation,
    InsightMessage,
    MeditationScript,
    SensorSnapshot,
    normalize_keys,
)
from common.utils import above, below, clamp_percent
from meditation.catalog import MeditationCatalog

BASELINE = 50

SESSION_RECOMMENDATIONS = {
    "stressed": "Your biometrics indicate elevated stress levels. A calming session with reduced stimuli is recommended.",
    "tired": "Signs of fatigue detected. An energizing session with increased brightness may help restore energy.",
    "distracted": "Attention metrics show distraction. A focused session with stable environment is recommended.",
    "balanced": "Your metrics are well-balanced. A maintenance session to reinforce this state is recommended.",
}
DEFAULT_SESSION_RECOMMENDATION = "Based on your current readings, a balanced calibration session is recommended."

MeditationMetrics = Union[SensorSnapshot, Mapping[str, Any]]


def classify_emotional_state(snapshot: SensorSnapshot) -> str:
    """
    Ordered cascade, first match wins:
    stressed -> tired -> distracted -> balanced.
    """
    voice, face, wearable = snapshot.voice, snapshot.face, snapshot.wearable

    if above(wearable.heart_rate, 85) or face.emotion == "stressed" or voice.tone == "stressed":
        return "stressed"
    if below(face.eye_openness, 70) or wearable.energy_level == "low":
        return "tired"
    if below(face.attention_level, 60):
        return "distracted"
    return "balanced"


def recommend_environment(snapshot: SensorSnapshot) -> EnvironmentRecommendation:
    """
    Slider settings for the current snapshot.

    Each dimension starts at the baseline and takes at most one branch of its
    own if/elif chain; dimensions are independent of each other.
    """
    voice, face, wearable = snapshot.voice, snapshot.face, snapshot.wearable
    sound = temperature = vibration = light = brightness = BASELINE

    # sound: voice tone and heart rate
    if voice.tone == "stressed" or above(wearable.heart_rate, 85):
        sound = max(30, sound - 20)
    elif voice.tone == "calm" and below(wearable.heart_rate, 70):
        sound = min(70, sound + 10)

    # temperature: body temperature
    if above(wearable.body_temperature, 37):
        temperature = max(30, temperature - 15)
    elif below(wearable.body_temperature, 36.5):
        temperature = min(70, temperature + 15)

    # vibration: facial emotion
    if face.emotion in ("stressed", "sad"):
        vibration = max(20, vibration - 30)
    elif face.emotion in ("happy", "relaxed"):
        vibration = min(80, vibration + 10)

    # light and brightness: attention first, then eye openness
    if below(face.attention_level, 60):
        light = max(40, light + 10)
        brightness = max(45, brightness + 15)
    elif below(face.eye_openness, 70):
        light = max(35, light - 15)
        brightness = max(40, brightness - 10)

    return EnvironmentRecommendation(
        sound=clamp_percent(sound),
        temperature=clamp_percent(temperature),
        vibration=clamp_percent(vibration),
        light=clamp_percent(light),
        brightness=clamp_percent(brightness),
    )


def generate_insights(snapshot: SensorSnapshot) -> List[InsightMessage]:
    """All rules are evaluated; output keeps rule order and is unbounded."""
    voice, face, wearable = snapshot.voice, snapshot.face, snapshot.wearable
    insights: List[InsightMessage] = []

    # stress patterns
    if voice.tone == "stressed" and face.emotion == "stressed":
        insights.append(InsightMessage(
            message="High stress detected. Consider deep breathing exercises.",
            type="suggestion",
        ))

    # focus issues
    if below(face.attention_level, 50) and face.emotion != "relaxed":
        insights.append(InsightMessage(
            message="Focus seems scattered. Adjusting light to help concentration.",
            type="info",
        ))

    # physical signals
    if above(wearable.heart_rate, 90):
        insights.append(InsightMessage(
            message="Elevated heart rate detected. Adjusting environment for calming.",
            type="alert",
        ))
    if below(wearable.blood_oxygen, 95):
        insights.append(InsightMessage(
            message="Blood oxygen slightly low. Consider deeper breathing patterns.",
            type="suggestion",
        ))

    # positive state to reinforce
    if face.emotion == "relaxed" and voice.breathing == "deep":
        insights.append(InsightMessage(
            message="Optimal relaxation state achieved. Maintaining current settings.",
            type="info",
        ))

    return insights


def top_insights(insights: Sequence[InsightMessage], limit: int = 3) -> List[InsightMessage]:
    """Consumer-facing view of the insight list."""
    return list(insights[:max(0, limit)])


def recommend_session(snapshot: SensorSnapshot) -> str:
    state = classify_emotional_state(snapshot)
    return SESSION_RECOMMENDATIONS.get(state, DEFAULT_SESSION_RECOMMENDATION)


def _meditation_inputs(metrics: MeditationMetrics):
    if isinstance(metrics, SensorSnapshot):
        return (
            metrics.wearable.heart_rate,
            metrics.face.emotion,
            metrics.wearable.energy_level,
            metrics.face.attention_level,
        )
    data = normalize_keys(metrics or {})
    return (
        data.get("heart_rate"),
        data.get("emotion"),
        data.get("energy_level"),
        data.get("attention_level"),
    )


def target_energy_type(metrics: MeditationMetrics) -> str:
    """
    Energy type a meditation should have for these metrics:
    calming -> energizing -> focusing -> balancing (first match wins).
    """
    heart_rate, emotion, energy_level, attention_level = _meditation_inputs(metrics)

    if above(heart_rate, 80) or emotion == "stressed":
        return "calming"
    if energy_level == "low" or emotion == "sad":
        return "energizing"
    if below(attention_level, 60):
        return "focusing"
    return "balancing"


def recommend_meditation(
    metrics: MeditationMetrics,
    catalog: MeditationCatalog,
    rng: Optional[np.random.Generator] = None,
) -> MeditationScript:
    """
    Picks a catalog entry of the target energy type, uniformly at random.
    Raises NoMatchError when the catalog has none of that type.
    """
    return catalog.choose(target_energy_type(metrics), rng=rng)
