"""
Per-owner advisory locks.

Cycle validation reads the owner's edges and then writes a new one. Two
concurrent creations that are each acyclic on their own can jointly close a
cycle, so creation for one owner is serialised behind an asyncio.Lock.

The locks live in this process only; deployments running several API
instances need a distributed lock or a conditional write instead.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from app.logging_config import get_logger

logger = get_logger(__name__)


class OwnerLockRegistry:
    """
    Hands out one asyncio.Lock per owner ID.

    A lock is dropped from the registry as soon as nobody holds or waits
    for it, so the registry only grows with concurrently active owners.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def get(self, owner_id: str) -> asyncio.Lock:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = self._locks[owner_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        lock = self.get(owner_id)
        if lock.locked():
            logger.debug(f"Waiting for dependency lock of owner {owner_id}")

        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if self._users[owner_id] == 0:
                del self._users[owner_id]
                self._locks.pop(owner_id, None)

    def __len__(self) -> int:
        return len(self._locks)


owner_locks = OwnerLockRegistry()
