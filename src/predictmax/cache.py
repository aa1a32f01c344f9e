"""In-process TTL cache for expensive lookups (trending lists, reference data)."""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class TTLCache:
    """get/set/wrap with per-entry TTL in seconds. No locking; staleness up to TTL is tolerated."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_sec: float) -> None:
        self._entries[key] = (value, self._clock() + ttl_sec)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        log.info("cache_cleared")

    def cleanup(self) -> int:
        """Drop expired entries; return how many were removed."""
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if now > exp]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def stats(self) -> dict[str, int]:
        now = self._clock()
        valid = sum(1 for _, exp in self._entries.values() if now <= exp)
        return {"total": len(self._entries), "valid": valid, "expired": len(self._entries) - valid}

    async def wrap(self, key: str, ttl_sec: float, factory: Callable[[], Awaitable[T]]) -> T:
        """Return cached value for key, or await factory() and cache its result."""
        cached = self.get(key)
        if cached is not None:
            log.debug("cache_hit", key=key)
            return cached
        value = await factory()
        self.set(key, value, ttl_sec)
        return value
