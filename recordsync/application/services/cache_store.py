"""Cache Store — owner-scoped, bounded-lifetime snapshots of record collections."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from recordsync.domain.entities import CacheEntry, ConnectivityState

logger = logging.getLogger(__name__)

# Sweep interval in seconds
SWEEP_INTERVAL = 10 * 60


@dataclass(frozen=True)
class CacheStats:
    size: int
    keys: list[str]


class CacheStore:
    """Explicit keyed store with a single mutation surface.

    Entries are only returned to the owner that wrote them. The maximum age
    of a readable entry depends on the connectivity state: longer while
    offline so something can still be shown, shorter while online to force
    freshness. Reads and writes are single synchronous steps.
    """

    def __init__(
        self,
        *,
        online_ttl: float = 5 * 60,
        offline_ttl: float = 30 * 60,
        connectivity: Callable[[], ConnectivityState] = lambda: ConnectivityState.ONLINE,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = SWEEP_INTERVAL,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._online_ttl = online_ttl
        self._offline_ttl = offline_ttl
        self._connectivity = connectivity
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._version = 0
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def max_ttl(self) -> float:
        return max(self._online_ttl, self._offline_ttl)

    def ttl_for(self, state: ConnectivityState) -> float:
        # Reconnecting keeps the offline lifetime until a probe confirms.
        if state is ConnectivityState.ONLINE:
            return self._online_ttl
        return self._offline_ttl

    def set(self, key: str, data: Any, owner_id: str) -> CacheEntry:
        """Overwrite ``key`` with a fresh timestamp and the next version."""
        self._version += 1
        entry = CacheEntry(
            key=key,
            data=data,
            timestamp=self._clock(),
            owner_id=owner_id,
            version=self._version,
        )
        self._entries[key] = entry
        logger.debug("Cache set %s (owner=%s, v%d)", key, owner_id, entry.version)
        return entry

    def get(self, key: str, owner_id: str) -> Any | None:
        """Return the data for ``key`` if it belongs to ``owner_id`` and is fresh."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.owner_id != owner_id:
            del self._entries[key]
            logger.warning("Cache entry %s requested by a different owner — purged", key)
            return None

        ttl = self.ttl_for(self._connectivity())
        if entry.age(self._clock()) > ttl:
            del self._entries[key]
            logger.debug("Cache entry %s expired (ttl=%.0fs)", key, ttl)
            return None

        return entry.data

    def peek(self, key: str, owner_id: str) -> CacheEntry | None:
        """Owner-checked read that ignores the TTL and never purges."""
        entry = self._entries.get(key)
        if entry is None or entry.owner_id != owner_id:
            return None
        return entry

    def invalidate(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def invalidate_owner(self, owner_id: str) -> int:
        """Drop every entry written by ``owner_id``. Returns the number removed."""
        keys = [k for k, e in self._entries.items() if e.owner_id == owner_id]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info("Invalidated %d cache entries for owner %s", len(keys), owner_id)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), keys=list(self._entries))

    def sweep(self) -> int:
        """Remove entries older than the longest possible TTL."""
        now = self._clock()
        max_age = self.max_ttl
        stale = [k for k, e in self._entries.items() if e.age(now) > max_age]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("Cache sweep removed %d entries", len(stale))
        return len(stale)

    # ── Background sweep ─────────────────────────────────────────────

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("CacheStore sweep started (every %.0fs)", self._sweep_interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("CacheStore sweep stopped")

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("CacheStore sweep error")
