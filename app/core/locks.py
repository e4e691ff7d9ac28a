"""
In-process mutation locks keyed by resource name.

Every read-modify-write on the content tree, an agenda or the home video
runs under the lock for its key, so two concurrent replacements cannot both
read the same old media reference and both delete it. Locks only cover one
process; run a single writer worker.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

TREE_LOCK = "tree"
HOME_LOCK = "home"
CURRENT_AGENDA_LOCK = "agenda:current"


def agenda_lock(agenda_id: str) -> str:
    return f"agenda:{agenda_id}"


class KeyedLocks:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                # Nobody queued on it any more
                del self._waiters[key]
                del self._locks[key]


_locks = KeyedLocks()


def get_locks() -> KeyedLocks:
    return _locks
