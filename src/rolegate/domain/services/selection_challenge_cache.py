"""Expiring storage for account-selection challenges.

Provides an abstract cache with get, set-with-TTL and delete-on-read, and a
thread-safe in-memory implementation.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from rolegate.domain.entities import SelectionChallenge


@dataclass
class CacheEntry:
    """Cache entry with TTL support.

    Attributes:
        value: The cached challenge.
        expires_at: Unix timestamp when this entry expires.
    """

    value: SelectionChallenge
    expires_at: float


class ChallengeCache(ABC):
    """Expiring key-value store for selection challenges."""

    @abstractmethod
    def get(self, key: str) -> SelectionChallenge | None:
        """Get a live challenge without consuming it."""

    @abstractmethod
    def set(self, key: str, value: SelectionChallenge, ttl_seconds: float) -> None:
        """Store a challenge for ``ttl_seconds``."""

    @abstractmethod
    def pop(self, key: str) -> SelectionChallenge | None:
        """Remove and return a live challenge atomically.

        At most one caller receives a given challenge.
        """


class InMemoryChallengeCache(ChallengeCache):
    """Thread-safe TTL cache kept in process memory.

    Expired entries are dropped when read, and swept on ``set`` once every
    ``cleanup_interval`` seconds so abandoned challenges do not pile up.
    """

    def __init__(self, clock: Callable[[], float] = time.time, cleanup_interval: float = 60.0) -> None:
        """Initialize the cache.

        Args:
            clock: Source of the current Unix time.
            cleanup_interval: Interval in seconds between sweeps of expired entries.
        """
        self._clock = clock
        self._cache: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    def get(self, key: str) -> SelectionChallenge | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._cache[key]
                return None
            return entry.value

    def set(self, key: str, value: SelectionChallenge, ttl_seconds: float) -> None:
        now = self._clock()
        with self._lock:
            # Periodic cleanup
            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup_stale(now)
            self._cache[key] = CacheEntry(value=value, expires_at=now + ttl_seconds)

    def pop(self, key: str) -> SelectionChallenge | None:
        with self._lock:
            entry = self._cache.pop(key, None)
            if entry is None or self._clock() >= entry.expires_at:
                return None
            return entry.value

    def purge_expired(self) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            return self._cleanup_stale(self._clock())

    def _cleanup_stale(self, now: float) -> int:
        expired = [key for key, entry in self._cache.items() if now >= entry.expires_at]
        for key in expired:
            del self._cache[key]
        self._last_cleanup = now
        return len(expired)

    def size(self) -> int:
        """Get the number of stored entries, including expired ones not yet swept."""
        with self._lock:
            return len(self._cache)


# Default process-wide challenge cache
challenge_cache = InMemoryChallengeCache()
