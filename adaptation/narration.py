"""
adaptation/narration.py

🔊 Narration voices and the generated-audio cache.

Producing audio (a text-to-speech call) is the caller's job: the cache only
stores whatever reference the caller's factory returns (URL, path, bytes
handle) keyed by voice and text, and hands evicted references to
``on_evict`` so the caller can release them.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

from config.settings import SETTINGS

T = TypeVar("T")
CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class NarrationVoice:
    id: str
    name: str


DEFAULT_VOICES = (
    NarrationVoice(id="9BWtsMINqrJLrRacOk9x", name="Aria"),
    NarrationVoice(id="CwhRBWXzGAHq8TQ4Fs17", name="Roger"),
    NarrationVoice(id="EXAVITQu4vr4xnSDxMaL", name="Sarah"),
    NarrationVoice(id="FGY2WhTYpPnrIDTdsKH5", name="Laura"),
    NarrationVoice(id="IKne3meq5aSn9XLyUdCD", name="Charlie"),
)


def default_voice() -> NarrationVoice:
    configured = SETTINGS.narration.default_voice_id
    for voice in DEFAULT_VOICES:
        if voice.id == configured:
            return voice
    return DEFAULT_VOICES[0]


def find_voice(voice_id: Optional[str]) -> NarrationVoice:
    """Returns the matching voice, or the default one when the id is unknown."""
    for voice in DEFAULT_VOICES:
        if voice.id == voice_id:
            return voice
    return default_voice()


# -------------------------------------------------------------------------
# Eviction policies
# -------------------------------------------------------------------------

class LRUEviction:
    """Evicts the least recently used entry; a hit refreshes the entry."""

    name = "lru"

    def on_access(self, entries: "OrderedDict[Hashable, object]", key: Hashable) -> None:
        entries.move_to_end(key)


class FIFOEviction:
    """Evicts the oldest inserted entry; hits do not change the order."""

    name = "fifo"

    def on_access(self, entries: "OrderedDict[Hashable, object]", key: Hashable) -> None:
        return None


_POLICIES = {"lru": LRUEviction, "fifo": FIFOEviction}


def eviction_policy(name: str):
    try:
        return _POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown eviction policy: {name}") from None


class NarrationCache(Generic[T]):
    """
    Audio references keyed by ``(voice_id, text)``.

    ``max_entries=None`` means unbounded. The policy decides which entry goes
    first once the cache is full; entries are ordered oldest-first and the
    first one is evicted.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        eviction=None,
        on_evict: Optional[Callable[[T], None]] = None,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        self.max_entries = max_entries
        self.eviction = eviction if eviction is not None else LRUEviction()
        self.on_evict = on_evict
        self._entries: "OrderedDict[CacheKey, T]" = OrderedDict()

    @classmethod
    def from_settings(cls, on_evict: Optional[Callable[[T], None]] = None) -> "NarrationCache[T]":
        cfg = SETTINGS.narration
        return cls(
            max_entries=cfg.cache_max_entries,
            eviction=eviction_policy(cfg.eviction),
            on_evict=on_evict,
        )

    @staticmethod
    def key(voice_id: str, text: str) -> CacheKey:
        return (voice_id, text)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, voice_id: str, text: str) -> Optional[T]:
        key = self.key(voice_id, text)
        if key not in self._entries:
            return None
        self.eviction.on_access(self._entries, key)
        return self._entries[key]

    def put(self, voice_id: str, text: str, value: T) -> None:
        key = self.key(voice_id, text)
        if key in self._entries:
            previous = self._entries[key]
            self._entries[key] = value
            self.eviction.on_access(self._entries, key)
            if previous is not value:
                self._release(previous)
            return
        self._entries[key] = value
        while self.max_entries is not None and len(self._entries) > self.max_entries:
            _, evicted = self._entries.popitem(last=False)
            self._release(evicted)

    def get_or_create(self, voice_id: str, text: str, factory: Callable[[str, str], Optional[T]]) -> Optional[T]:
        """
        Returns the cached reference or calls ``factory(voice_id, text)``.
        A ``None`` result (failed generation) is not cached.
        """
        cached = self.get(voice_id, text)
        if cached is not None:
            return cached
        value = factory(voice_id, text)
        if value is not None:
            self.put(voice_id, text, value)
        return value

    def discard(self, voice_id: str, text: str) -> None:
        value = self._entries.pop(self.key(voice_id, text), None)
        if value is not None:
            self._release(value)

    def clear(self) -> None:
        while self._entries:
            _, value = self._entries.popitem(last=False)
            self._release(value)

    def _release(self, value: T) -> None:
        if self.on_evict is not None:
            self.on_evict(value)
