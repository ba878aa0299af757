"""
Redis-based distributed lock.

Serialises the slot-conflict check and the write that follows it, per
vehicle (key ``booking:vehicle:<id>``): booking creation and the move of a
booking into confirmed / started.  Two concurrent requests for the same
vehicle cannot both pass the conflict query.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import redis.asyncio as aioredis

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquired(RuntimeError):
    """Raised by the context manager when the wait budget runs out."""


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 30,
        wait_seconds: float = 0.0,
        poll_interval: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.wait = wait_seconds
        self.poll_interval = poll_interval
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire, polling for up to ``wait_seconds``. True on success."""
        deadline = time.monotonic() + self.wait
        while True:
            if await self.redis.set(self.key, self.token, nx=True, ex=self.ttl):
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        acquired = await self.acquire()
        if not acquired:
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()


def vehicle_booking_lock(
    client: aioredis.Redis, vehicle_id: int, ttl_seconds: int, wait_seconds: float
) -> DistributedLock:
    return DistributedLock(
        client,
        f"booking:vehicle:{vehicle_id}",
        ttl_seconds=ttl_seconds,
        wait_seconds=wait_seconds,
    )
