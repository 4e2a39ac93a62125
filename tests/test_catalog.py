# tests/test_catalog.py
import pytest

from common.types import ENERGY_TYPES, MeditationScript
from meditation.catalog import (
    MeditationCatalog,
    NoMatchError,
    describe_meditation,
    load_catalog,
)


class FixedPick:
    """rng stub that always returns the same index."""

    def __init__(self, index):
        self.index = index
        self.calls = []

    def integers(self, n):
        self.calls.append(n)
        return self.index


def _script(id_, energy_type, duration=300):
    return MeditationScript(
        id=id_,
        title=id_.title(),
        description="test entry",
        script=("breathe in", "breathe out"),
        duration=duration,
        energy_type=energy_type,
    )


def test_packaged_catalog_covers_every_energy_type():
    catalog = load_catalog()
    assert len(catalog) == 4
    for energy_type in ENERGY_TYPES:
        assert len(catalog.by_energy_type(energy_type)) >= 1
    relax = catalog.get("deep-relaxation")
    assert relax is not None
    assert relax.energy_type == "calming"
    assert relax.duration == 600
    assert len(relax.script) == 10
    assert "stress reduction" in relax.recommended_for


def test_get_unknown_id_returns_none():
    assert load_catalog().get("does-not-exist") is None


def test_choose_uses_injected_rng():
    catalog = MeditationCatalog([
        _script("a", "calming"), _script("b", "focusing"), _script("c", "calming"),
    ])
    rng = FixedPick(1)
    assert catalog.choose("calming", rng=rng).id == "c"
    assert rng.calls == [2]


def test_choose_without_match_raises():
    catalog = MeditationCatalog([_script("a", "calming")])
    with pytest.raises(NoMatchError, match="energizing"):
        catalog.choose("energizing")
    assert issubclass(NoMatchError, LookupError)


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        MeditationCatalog([_script("a", "calming"), _script("a", "focusing")])


def test_load_catalog_from_custom_file(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "- id: short-calm\n"
        "  title: Short Calm\n"
        "  description: two minutes\n"
        "  duration: 120\n"
        "  energy_type: calming\n"
        "  audio_src: https://example.com/calm.mp3\n"
        "  script:\n"
        "    - Breathe.\n",
        encoding="utf-8",
    )
    catalog = load_catalog(str(path))
    script = catalog.get("short-calm")
    assert script.script == ("Breathe.",)
    assert script.audio_src == "https://example.com/calm.mp3"
    assert script.recommended_for == ()


@pytest.mark.parametrize("body", [
    "id: not-a-list\n",
    "- id: x\n  title: X\n  description: d\n  duration: 60\n  energy_type: sleepy\n  script: [a]\n",
    "- id: x\n  title: X\n  description: d\n  energy_type: calming\n  script: [a]\n",
    "- id: x\n  title: X\n  description: d\n  duration: 60\n  energy_type: calming\n  script: one line\n",
    "- id: x\n  title: X\n  description: d\n  duration: 60\n  energy_type: calming\n  script: []\n",
])
def test_malformed_catalog_rejected(tmp_path, body):
    path = tmp_path / "bad.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_missing_catalog_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize("energy_type,goal", [
    ("calming", "reduce stress"),
    ("energizing", "boost your energy"),
    ("focusing", "improve focus"),
    ("balancing", "restore balance"),
])
def test_describe_meditation(energy_type, goal):
    text = describe_meditation(_script("walk", energy_type, duration=479))
    assert text == f'Try "Walk" (7 min) to {goal}.'
