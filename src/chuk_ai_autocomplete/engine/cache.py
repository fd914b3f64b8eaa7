# chuk_ai_autocomplete/engine/cache.py
"""
Completion Cache - bounded LRU map from a derived key to a cleaned completion.

Asking the model again for the same prefix on the same site in the same
language is the expensive path; the cache short-circuits it.

Cache is keyed by: (site_identifier, last 200 chars of before_cursor, language)

The key is a stable, non-cryptographic 32-bit string hash. Collisions are
acceptable: the cache is an optimization, never a correctness channel.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from chuk_ai_autocomplete.config import DEFAULT_CACHE_CAPACITY
from chuk_ai_autocomplete.constants import CACHE_KEY_WINDOW_CHARS
from chuk_ai_autocomplete.models import CacheStats

logger = logging.getLogger(__name__)


def _string_hash(payload: str) -> int:
    """31-multiplier rolling hash folded to a signed 32-bit integer."""
    value = 0
    for char in payload:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def compute_cache_key(site: str, before_cursor: str, language: str) -> str:
    """
    Derive the cache key for a completion.

    Only the last 200 characters of the before-cursor text participate, so an
    edit far above the cursor still reuses a cached continuation.
    """
    payload = f"{site}|{(before_cursor or '')[-CACHE_KEY_WINDOW_CHARS:]}|{language}"
    return f"k:{_string_hash(payload)}"


class CompletionCache:
    """
    Strict LRU cache of cleaned completions.

    Both get() and set() count as a touch. When an insert pushes the size past
    capacity, the least recently touched entry is evicted.

    Only ever touched from the engine's single event loop, so the
    read-then-reorder in get() needs no locking.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> str | None:
        """Return the cached completion and mark it most recently used."""
        if key not in self._entries:
            self._stats["misses"] += 1
            return None

        # Move to end (most recently used)
        self._entries.move_to_end(key)
        self._stats["hits"] += 1
        return self._entries[key]

    def set(self, key: str, completion: str) -> None:
        """Store a completion, evicting the LRU entry if over capacity."""
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = completion

        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"Evicted cache entry {evicted}")

    def keys(self) -> list[str]:
        """Keys from least to most recently used (for debugging/inspection)."""
        return list(self._entries.keys())

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    @property
    def hit_rate(self) -> float:
        total = self._stats["hits"] + self._stats["misses"]
        if total == 0:
            return 0.0
        return self._stats["hits"] / total

    def get_stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            capacity=self.capacity,
            hits=self._stats["hits"],
            misses=self._stats["misses"],
            evictions=self._stats["evictions"],
            hit_rate=self.hit_rate,
        )
