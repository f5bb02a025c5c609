"""Non-blocking restore guard"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from gofr_dr.exceptions import ConflictError


class NonBlockingLock:
    """Single-holder async lock that refuses instead of waiting.

    ``hold()`` raises ConflictError when the lock is taken and releases on
    every exit path. It is not reentrant: a holder calling ``hold()`` again
    is refused like anyone else.
    """

    def __init__(self, message: str = "Restore operation already in progress"):
        self._lock = asyncio.Lock()
        self._message = message

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        if self._lock.locked():
            raise ConflictError(self._message)
        # Uncontended acquire completes without suspending
        await self._lock.acquire()
        try:
            yield
        finally:
            self._lock.release()
