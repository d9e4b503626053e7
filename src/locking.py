"""
Provisioning Lock - Serializes alerting writes per backend organization.

The backend does not tolerate concurrent provisioning writes to alerting
configuration, so every contact point and mute timing operation runs
inside ``alerting_mutex`` for its client's lock key.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)

# One lock per backend organization, created lazily
_locks: Dict[str, asyncio.Lock] = {}


def get_alerting_lock(key: str) -> asyncio.Lock:
    """Get (or create) the provisioning lock for a key."""
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


@asynccontextmanager
async def alerting_mutex(key: str) -> AsyncIterator[None]:
    """
    Hold the provisioning lock for ``key`` for the duration of the block.

    The lock is released on every exit path, including errors.
    """
    lock = get_alerting_lock(key)
    if lock.locked():
        logger.debug(f"Waiting for alerting lock {key}")
    async with lock:
        yield


def reset_locks() -> None:
    """Forget all locks (mainly for testing)."""
    _locks.clear()
