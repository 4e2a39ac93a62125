from __future__ import annotations

import copy
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable

import yaml

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_PATH = CONFIG_DIR / "defaults.yaml"
LOCAL_OVERRIDE_PATH = CONFIG_DIR / "local.yaml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(copy.deepcopy(base[key]), value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping at top level")
    return data


_ENV_MAP: Dict[str, Iterable[str]] = {
    "LOG_LEVEL": ("logging", "level"),
    "METRICS_PORT": ("metrics", "port"),
    "MEDITATION_CATALOG": ("catalog", "path"),
    "INSIGHT_LIMIT": ("insights", "display_limit"),
    "NARRATION_CACHE_SIZE": ("narration", "cache_max_entries"),
    "NARRATION_VOICE_ID": ("narration", "default_voice_id"),
    "CORS_ALLOW_ORIGINS": ("server", "cors_allow_origins"),
}

_INT_KEYS = {"METRICS_PORT", "INSIGHT_LIMIT", "NARRATION_CACHE_SIZE"}


def _assign(config: Dict[str, Any], path: Iterable[str], value: Any) -> None:
    target = config
    *parents, key = path
    for fragment in parents:
        target = target.setdefault(fragment, {})
        if not isinstance(target, dict):
            raise ValueError(f"Cannot assign into non-dict configuration path {'.'.join(path)}")
    target[key] = value


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    for env_key, path in _ENV_MAP.items():
        raw = os.getenv(env_key)
        if raw is None:
            continue
        if env_key in _INT_KEYS:
            value = int(raw)
        elif env_key == "CORS_ALLOW_ORIGINS":
            value = [origin.strip() for origin in raw.split(",") if origin.strip()]
        else:
            value = raw
        _assign(config, path, value)

    run_id = os.getenv("RUN_ID")
    if run_id:
        config.setdefault("runtime", {})["run_id"] = run_id


def load_settings_data() -> Dict[str, Any]:
    config = _load_yaml(DEFAULTS_PATH)
    if LOCAL_OVERRIDE_PATH.exists():
        overrides = _load_yaml(LOCAL_OVERRIDE_PATH)
        config = _deep_merge(config, overrides)

    _apply_env_overrides(config)

    runtime_cfg = config.setdefault("runtime", {})
    if not runtime_cfg.get("run_id"):
        prefix_len = int(runtime_cfg.get("run_id_prefix_length", 8))
        runtime_cfg["run_id"] = uuid.uuid4().hex[:prefix_len]

    return config
