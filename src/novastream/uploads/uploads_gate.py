"""Bound on concurrently buffered uploads."""

from __future__ import annotations

import asyncio


class UploadGate:
    """Admit at most ``limit`` in-flight uploads; callers check :meth:`saturated` first.

    Each admitted upload may hold up to ``MAX_UPLOAD_BYTES`` in memory, so the
    limit caps worst-case memory at ``limit * MAX_UPLOAD_BYTES``.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be positive")
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)

    def saturated(self) -> bool:
        return self._semaphore.locked()

    async def __aenter__(self) -> "UploadGate":
        await self._semaphore.acquire()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self._semaphore.release()


__all__ = ["UploadGate"]
