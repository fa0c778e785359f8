"""TTL cache for translated text."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .config import TRANSLATION_CACHE_TTL

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]  # (from_lang, to_lang, text)


@dataclass
class CacheEntry:
    value: str
    created_at: float


class TranslationCache:
    """
    Thread-safe map of (from, to, text) -> translation.

    Entries older than ``ttl`` seconds are treated as absent and dropped on the
    lookup that finds them. Nothing else evicts, so the map grows for the life
    of the process.
    """

    def __init__(self, ttl: float = TRANSLATION_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at > self.ttl:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key[0]}->{key[1]}")
                return None
            return entry.value

    def set(self, key: CacheKey, value: str) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, created_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
