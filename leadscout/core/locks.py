"""
Keyed asyncio locks for single-writer-per-entity sections.

Serializes read-then-write sequences on one company balance, one lead's
purchase flag or one scout's settlement within a worker process. Cross-process
safety comes from the conditional UPDATEs in the repositories.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class EntityLocks:
    """Registry of per-entity locks, created on first use and dropped when idle."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        return lock

    def _checkin(self, key: Hashable) -> None:
        self._holders[key] -= 1
        if self._holders[key] == 0:
            del self._holders[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: Hashable) -> AsyncIterator[None]:
        """Acquire several entity locks in a stable order (no lock-order deadlocks)."""
        ordered = sorted(set(keys), key=str)
        checked_out = []
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._checkin(key)
