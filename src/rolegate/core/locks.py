"""Keyed asyncio locks.

Serializes coroutines that touch the same logical resource (for example the
refresh-token chain of one user) while letting unrelated keys run
concurrently. Locks are process-local.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLock:
    """A registry of asyncio locks indexed by key.

    Entries are reference counted and dropped once no coroutine holds or
    waits for them, so the registry does not grow with the number of users.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for ``key`` for the duration of the block.

        Args:
            key: Resource key to serialize on.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        """Check whether a coroutine currently holds the lock for ``key``."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def size(self) -> int:
        """Get the number of keys currently tracked."""
        return len(self._locks)
