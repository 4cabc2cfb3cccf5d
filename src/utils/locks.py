"""
Per-identity locks - serializes command handling for a single sender.

Two inbound messages from the same identity must not interleave their
command bodies; replies are sent in the order the commands arrived.
Locks are in-process asyncio locks owned by one running app. An entry
exists only while some task holds or waits on it.
"""
import asyncio
from contextlib import asynccontextmanager


class IdentityLocks:
    """Registry of per-identity locks, created in the app lifespan."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}  # holders + waiters per identity

    @asynccontextmanager
    async def hold(self, identity: str):
        """
        Hold the lock for an identity while a command runs.

        Usage:
            async with locks.hold(identity):
                await router.route(text, identity)
        """
        lock = self._locks.get(identity)
        if lock is None:
            lock = self._locks[identity] = asyncio.Lock()
        self._users[identity] = self._users.get(identity, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[identity] -= 1
            if self._users[identity] == 0:
                del self._users[identity]
                del self._locks[identity]

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, identity: str) -> bool:
        return identity in self._locks
