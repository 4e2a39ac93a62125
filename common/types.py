"""
common/types.py

📘 Shared data structures for the adaptation engine:
- Sensor metrics (voice, face, wearable) and the snapshot that bundles them
- Engine outputs (environment, insights, meditation scripts, cycle result)

Every entity is a point-in-time value object. Metric fields are optional:
``None`` means the collaborator did not report that reading.
"""

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


# -------------------------------------------------------------------------
# 🏷️ Vocabulary
# -------------------------------------------------------------------------

TONES = ("calm", "neutral", "stressed")
BREATHING_PATTERNS = ("deep", "normal", "shallow")
EMOTIONS = ("happy", "sad", "neutral", "stressed", "relaxed")
ENERGY_LEVELS = ("low", "medium", "high")
INSIGHT_TYPES = ("info", "suggestion", "alert")
EMOTIONAL_STATES = ("stressed", "tired", "distracted", "balanced")
ENERGY_TYPES = ("calming", "energizing", "focusing", "balancing")


# -------------------------------------------------------------------------
# 🎙️ Sensor metrics
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class VoiceMetrics:
    """
    Voice analysis reading.
    """
    volume: Optional[float] = None       # [0,100]
    tone: Optional[str] = None           # calm | neutral | stressed
    clarity: Optional[float] = None      # [0,100]
    breathing: Optional[str] = None      # deep | normal | shallow


@dataclass(frozen=True)
class FaceMetrics:
    """
    Face analysis reading.
    """
    emotion: Optional[str] = None            # happy | sad | neutral | stressed | relaxed
    attention_level: Optional[float] = None  # [0,100]
    eye_openness: Optional[float] = None     # [0,100]
    face_detected: Optional[bool] = None


@dataclass(frozen=True)
class WearableMetrics:
    """
    Wearable device reading (real or simulated).
    """
    heart_rate: Optional[int] = None           # bpm
    body_temperature: Optional[float] = None   # °C
    blood_oxygen: Optional[int] = None         # %
    energy_level: Optional[str] = None         # low | medium | high
    is_connected: Optional[bool] = None


@dataclass(frozen=True)
class SensorSnapshot:
    voice: VoiceMetrics = field(default_factory=VoiceMetrics)
    face: FaceMetrics = field(default_factory=FaceMetrics)
    wearable: WearableMetrics = field(default_factory=WearableMetrics)

    def __post_init__(self):
        # a sensor that reported nothing is an empty reading, not None
        if self.voice is None:
            object.__setattr__(self, "voice", VoiceMetrics())
        if self.face is None:
            object.__setattr__(self, "face", FaceMetrics())
        if self.wearable is None:
            object.__setattr__(self, "wearable", WearableMetrics())


# -------------------------------------------------------------------------
# 🎛️ Engine outputs
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class EnvironmentRecommendation:
    """
    Ambient slider settings, integer percentages in [0,100].
    """
    sound: int = 50
    temperature: int = 50
    vibration: int = 50
    light: int = 50
    brightness: int = 50


@dataclass(frozen=True)
class InsightMessage:
    message: str
    type: str  # info | suggestion | alert


@dataclass(frozen=True)
class MeditationScript:
    """
    Catalog entry. ``script`` holds the narration lines in order and
    ``duration`` is expressed in seconds.
    """
    id: str
    title: str
    description: str
    script: Tuple[str, ...]
    duration: int
    energy_type: str
    audio_src: Optional[str] = None
    video_src: Optional[str] = None
    voice_id: Optional[str] = None
    recommended_for: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdaptationResult:
    """
    Everything one evaluation cycle produces for the UI panels.

    - insights: full rule output, in rule order
    - top_insights: the consumer-facing view (first N insights)
    - biometric_score: rule-based alignment of the current snapshot
    - adaptation_score: caller-owned running indicator after this cycle
    """
    run_id: str
    emotional_state: str
    environment: EnvironmentRecommendation
    insights: List[InsightMessage]
    top_insights: List[InsightMessage]
    session_recommendation: str
    meditation: MeditationScript
    meditation_suggestion: str
    biometric_score: int
    adaptation_score: int


# -------------------------------------------------------------------------
# 🧰 Parsing and serialization helpers
# -------------------------------------------------------------------------

# host application field name -> dataclass field name
_ALIASES = {
    "attentionLevel": "attention_level",
    "eyeOpenness": "eye_openness",
    "faceDetected": "face_detected",
    "heartRate": "heart_rate",
    "bodyTemperature": "body_temperature",
    "bloodOxygen": "blood_oxygen",
    "energyLevel": "energy_level",
    "isConnected": "is_connected",
}


def _section(cls, data: Any):
    if not isinstance(data, Mapping):
        return cls()
    known = cls.__dataclass_fields__
    kwargs = {}
    for key, value in data.items():
        name = _ALIASES.get(key, key)
        if name in known:
            kwargs[name] = value
    return cls(**kwargs)


def snapshot_from_dict(data: Optional[Mapping[str, Any]]) -> SensorSnapshot:
    """
    Builds a SensorSnapshot from a plain mapping such as the JSON body sent by
    the host application.

    Accepts camelCase (``heartRate``) and snake_case (``heart_rate``) keys.
    Unknown keys are ignored; missing sections or fields stay ``None``.
    """
    data = data or {}
    return SensorSnapshot(
        voice=_section(VoiceMetrics, data.get("voice")),
        face=_section(FaceMetrics, data.get("face")),
        wearable=_section(WearableMetrics, data.get("wearable")),
    )


def normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Maps camelCase metric names to their snake_case equivalents."""
    return {_ALIASES.get(k, k): v for k, v in data.items()}


def to_dict(obj) -> Dict:
    """
    Converts any dataclass of this module to a dictionary.
    Equivalent to dataclasses.asdict(), but more explicit.
    """
    return asdict(obj)
