"""
Per-session turn locking.

Serialises work on one session token inside a process while leaving other
tokens free to proceed in parallel. Locks are reference counted and dropped
once no task holds or waits on them.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class SessionLockRegistry:
    """
    Registry of asyncio locks keyed by session token.

    Usage:
        async with registry.hold(session_id):
            ...
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._refs: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._refs[session_id] = self._refs.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[session_id] -= 1
            if self._refs[session_id] == 0:
                del self._refs[session_id]
                del self._locks[session_id]

    def is_locked(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ['SessionLockRegistry']
