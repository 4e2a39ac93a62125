# meditation/catalog.py
# Read-only meditation catalog: YAML loading, lookup by id / energy type,
# and uniform random choice among entries of one energy type.
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import yaml

from common.types import ENERGY_TYPES, MeditationScript
from config.settings import SETTINGS

_REQUIRED = ("id", "title", "description", "script", "duration", "energy_type")

_GOALS = {
    "calming": "reduce stress",
    "energizing": "boost your energy",
    "focusing": "improve focus",
    "balancing": "restore balance",
}


class NoMatchError(LookupError):
    """No meditation in the catalog has the requested energy type."""

    def __init__(self, energy_type: str):
        self.energy_type = energy_type
        super().__init__(f"no matching meditation for energy type '{energy_type}'")


class MeditationCatalog:
    def __init__(self, scripts: Sequence[MeditationScript]):
        self._scripts: Tuple[MeditationScript, ...] = tuple(scripts)
        self._by_id: Dict[str, MeditationScript] = {}
        for script in self._scripts:
            if script.id in self._by_id:
                raise ValueError(f"Duplicate meditation id: {script.id}")
            self._by_id[script.id] = script

    def __iter__(self) -> Iterator[MeditationScript]:
        return iter(self._scripts)

    def __len__(self) -> int:
        return len(self._scripts)

    def get(self, meditation_id: str) -> Optional[MeditationScript]:
        return self._by_id.get(meditation_id)

    def by_energy_type(self, energy_type: str) -> Tuple[MeditationScript, ...]:
        return tuple(s for s in self._scripts if s.energy_type == energy_type)

    def choose(self, energy_type: str, rng: Optional[np.random.Generator] = None) -> MeditationScript:
        """
        Picks one entry of ``energy_type`` uniformly at random.

        ``rng`` only needs an ``integers(n)`` method returning a value in [0, n);
        tests pass a seeded generator or a stub to force the pick.
        Raises NoMatchError when the catalog has no entry of that type.
        """
        matches = self.by_energy_type(energy_type)
        if not matches:
            raise NoMatchError(energy_type)
        rng = rng if rng is not None else np.random.default_rng()
        index = int(rng.integers(len(matches)))
        return matches[index]


def _parse_entry(entry: Any, position: int) -> MeditationScript:
    if not isinstance(entry, dict):
        raise ValueError(f"Catalog entry #{position} must be a mapping")
    missing = [key for key in _REQUIRED if entry.get(key) is None or entry.get(key) in ("", [])]
    if missing:
        raise ValueError(f"Catalog entry #{position} is missing {', '.join(missing)}")
    energy_type = str(entry["energy_type"])
    if energy_type not in ENERGY_TYPES:
        raise ValueError(f"Catalog entry '{entry['id']}' has unknown energy_type '{energy_type}'")
    lines = entry["script"]
    if isinstance(lines, str) or not isinstance(lines, list):
        raise ValueError(f"Catalog entry '{entry['id']}' script must be a list of lines")
    return MeditationScript(
        id=str(entry["id"]),
        title=str(entry["title"]),
        description=str(entry["description"]),
        script=tuple(str(line) for line in lines),
        duration=int(entry["duration"]),
        energy_type=energy_type,
        audio_src=entry.get("audio_src"),
        video_src=entry.get("video_src"),
        voice_id=entry.get("voice_id"),
        recommended_for=tuple(str(item) for item in entry.get("recommended_for") or ()),
    )


def load_catalog(path: Optional[str] = None) -> MeditationCatalog:
    """
    Loads the catalog YAML (a list of entries).

    Args:
        path (str | None): catalog file; defaults to the configured one.

    Returns:
        MeditationCatalog: immutable catalog.
    """
    catalog_path = Path(path or SETTINGS.catalog.path)
    if not catalog_path.exists():
        raise FileNotFoundError(f"Meditation catalog not found: {catalog_path}")
    with catalog_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or []
    if not isinstance(data, list):
        raise ValueError(f"Catalog file {catalog_path} must contain a list at top level")
    entries: List[MeditationScript] = [_parse_entry(entry, i) for i, entry in enumerate(data, start=1)]
    return MeditationCatalog(entries)


def describe_meditation(script: MeditationScript) -> str:
    """Suggestion sentence shown next to the recommended meditation."""
    minutes = script.duration // 60
    goal = _GOALS.get(script.energy_type, "restore balance")
    return f'Try "{script.title}" ({minutes} min) to {goal}.'
