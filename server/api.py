# server/api.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

import numpy as np

from app.orchestrator import get_catalog, run_adaptation
from adaptation.score import AdaptationScoreTracker
from common.types import (
    FaceMetrics,
    SensorSnapshot,
    VoiceMetrics,
    WearableMetrics,
    to_dict,
)
from config.settings import SETTINGS
from meditation.catalog import NoMatchError

ALLOW_ORIGINS = SETTINGS.server.cors_allow_origins

# ------------- App -------------
app = FastAPI(title="Mindful Adaptation API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One running score per process; the host UI polls /evaluate every few seconds.
_tracker = AdaptationScoreTracker()


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VoiceIn(_Camel):
    volume: Optional[float] = None
    tone: Optional[str] = None
    clarity: Optional[float] = None
    breathing: Optional[str] = None


class FaceIn(_Camel):
    emotion: Optional[str] = None
    attention_level: Optional[float] = Field(default=None, alias="attentionLevel")
    eye_openness: Optional[float] = Field(default=None, alias="eyeOpenness")
    face_detected: Optional[bool] = Field(default=None, alias="faceDetected")


class WearableIn(_Camel):
    heart_rate: Optional[float] = Field(default=None, alias="heartRate")
    body_temperature: Optional[float] = Field(default=None, alias="bodyTemperature")
    blood_oxygen: Optional[float] = Field(default=None, alias="bloodOxygen")
    energy_level: Optional[str] = Field(default=None, alias="energyLevel")
    is_connected: Optional[bool] = Field(default=None, alias="isConnected")


class SnapshotIn(_Camel):
    voice: VoiceIn = Field(default_factory=VoiceIn)
    face: FaceIn = Field(default_factory=FaceIn)
    wearable: WearableIn = Field(default_factory=WearableIn)
    seed: Optional[int] = Field(default=None, description="Seed for a reproducible meditation pick")

    def to_snapshot(self) -> SensorSnapshot:
        return SensorSnapshot(
            voice=VoiceMetrics(**self.voice.model_dump()),
            face=FaceMetrics(**self.face.model_dump()),
            wearable=WearableMetrics(**self.wearable.model_dump()),
        )


class Environment(BaseModel):
    sound: int
    temperature: int
    vibration: int
    light: int
    brightness: int


class Insight(BaseModel):
    message: str
    type: str


class Meditation(BaseModel):
    id: str
    title: str
    description: str
    script: List[str]
    duration: int
    energy_type: str
    audio_src: Optional[str] = None
    video_src: Optional[str] = None
    voice_id: Optional[str] = None
    recommended_for: List[str] = []


class EvaluateResponse(BaseModel):
    run_id: str
    emotional_state: str
    environment: Environment
    insights: List[Insight]
    top_insights: List[Insight]
    session_recommendation: str
    meditation: Meditation
    meditation_suggestion: str
    biometric_score: int
    adaptation_score: int


@app.get("/health")
def health():
    catalog = get_catalog()
    return {
        "status": "ok",
        "run_id": SETTINGS.run_id,
        "catalog_path": SETTINGS.catalog.path,
        "catalog_size": len(catalog),
        "insight_limit": SETTINGS.insights.display_limit,
        "adaptation_score": _tracker.score,
    }


@app.post("/evaluate", response_model=EvaluateResponse)
def evaluate(body: SnapshotIn):
    rng = np.random.default_rng(body.seed) if body.seed is not None else None
    try:
        result = run_adaptation(body.to_snapshot(), tracker=_tracker, rng=rng)
    except NoMatchError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return EvaluateResponse(**to_dict(result))


@app.get("/meditations", response_model=List[Meditation])
def list_meditations(energy_type: Optional[str] = None):
    catalog = get_catalog()
    scripts = catalog.by_energy_type(energy_type) if energy_type else tuple(catalog)
    return [Meditation(**to_dict(s)) for s in scripts]


@app.get("/meditations/{meditation_id}", response_model=Meditation)
def get_meditation(meditation_id: str):
    script = get_catalog().get(meditation_id)
    if script is None:
        raise HTTPException(status_code=404, detail=f"Unknown meditation: {meditation_id}")
    return Meditation(**to_dict(script))
