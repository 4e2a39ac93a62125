# config/settings.py
from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .loader import CONFIG_DIR, load_settings_data


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class MetricsConfig:
    port: int


@dataclass(frozen=True)
class CatalogConfig:
    path: str


@dataclass(frozen=True)
class InsightsConfig:
    display_limit: int


@dataclass(frozen=True)
class AdaptationScoreConfig:
    initial: float
    ceiling: float
    step_min: float
    step_max: float


@dataclass(frozen=True)
class NarrationConfig:
    default_voice_id: str
    cache_max_entries: Optional[int]
    eviction: str


@dataclass(frozen=True)
class ServerConfig:
    cors_allow_origins: List[str]


@dataclass(frozen=True)
class Settings:
    logging: LoggingConfig
    metrics: MetricsConfig
    catalog: CatalogConfig
    insights: InsightsConfig
    adaptation_score: AdaptationScoreConfig
    narration: NarrationConfig
    server: ServerConfig
    run_id: str
    raw: Dict[str, Any]

    @property
    def metrics_port(self) -> int:
        return self.metrics.port

    @property
    def catalog_path(self) -> str:
        return self.catalog.path

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.raw)


def _build_logging(config: Dict[str, Any]) -> LoggingConfig:
    data = config.get("logging", {})
    return LoggingConfig(level=str(data.get("level", "INFO")).upper())


def _build_metrics(config: Dict[str, Any]) -> MetricsConfig:
    data = config.get("metrics", {})
    return MetricsConfig(port=int(data.get("port", 9000)))


def _build_catalog(config: Dict[str, Any]) -> CatalogConfig:
    data = config.get("catalog", {})
    path = Path(str(data.get("path", "meditations.yaml")))
    if not path.is_absolute():
        path = CONFIG_DIR / path
    return CatalogConfig(path=str(path))


def _build_insights(config: Dict[str, Any]) -> InsightsConfig:
    data = config.get("insights", {})
    limit = int(data.get("display_limit", 3))
    if limit < 0:
        raise ValueError("insights.display_limit must be >= 0")
    return InsightsConfig(display_limit=limit)


def _build_adaptation_score(config: Dict[str, Any]) -> AdaptationScoreConfig:
    data = config.get("adaptation_score", {})
    cfg = AdaptationScoreConfig(
        initial=float(data.get("initial", 68)),
        ceiling=float(data.get("ceiling", 98)),
        step_min=float(data.get("step_min", -1.0)),
        step_max=float(data.get("step_max", 2.0)),
    )
    if cfg.step_min > cfg.step_max:
        raise ValueError("adaptation_score.step_min must not exceed step_max")
    return cfg


def _build_narration(config: Dict[str, Any]) -> NarrationConfig:
    data = config.get("narration", {})
    max_entries = data.get("cache_max_entries", 64)
    if max_entries is not None:
        max_entries = int(max_entries)
    eviction = str(data.get("eviction", "lru")).lower()
    if eviction not in {"lru", "fifo"}:
        raise ValueError(f"Unknown narration.eviction policy: {eviction}")
    return NarrationConfig(
        default_voice_id=str(data.get("default_voice_id", "9BWtsMINqrJLrRacOk9x")),
        cache_max_entries=max_entries,
        eviction=eviction,
    )


def _build_server(config: Dict[str, Any]) -> ServerConfig:
    data = config.get("server", {})
    origins = data.get("cors_allow_origins", ["*"])
    if isinstance(origins, str):
        origins = origins.split(",")
    return ServerConfig(cors_allow_origins=[str(item) for item in origins])


def load_settings() -> Settings:
    raw_config = load_settings_data()
    runtime = raw_config.get("runtime", {})
    return Settings(
        logging=_build_logging(raw_config),
        metrics=_build_metrics(raw_config),
        catalog=_build_catalog(raw_config),
        insights=_build_insights(raw_config),
        adaptation_score=_build_adaptation_score(raw_config),
        narration=_build_narration(raw_config),
        server=_build_server(raw_config),
        run_id=str(runtime.get("run_id")),
        raw=raw_config,
    )


SETTINGS = load_settings()
