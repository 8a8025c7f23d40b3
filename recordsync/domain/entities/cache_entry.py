"""Domain entity for a cached collection snapshot."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """One owner-scoped cache slot.

    ``timestamp`` comes from the cache's clock (monotonic seconds by default),
    ``version`` grows with every write to the store.
    """

    key: str
    data: Any
    timestamp: float
    owner_id: str
    version: int

    def age(self, now: float) -> float:
        return now - self.timestamp
