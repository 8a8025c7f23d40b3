"""Result objects returned by the read operations of the synced store.

Reads never block the caller on a failure: they return whatever data is
available together with the classified error.
"""

from dataclasses import dataclass, field
from enum import Enum

from .record import Record
from recordsync.domain.exceptions import SyncError


class DataSource(str, Enum):
    """Where the records of a result came from."""

    REMOTE = "remote"
    CACHE = "cache"
    OFFLINE_CACHE = "offline-cache"
    LOCAL = "local"
    NONE = "none"


@dataclass(frozen=True)
class LoadResult:
    records: tuple[Record, ...]
    source: DataSource
    error: SyncError | None = None

    @property
    def stale(self) -> bool:
        """True when the data was served from cache without a fresh fetch."""
        return self.source is DataSource.OFFLINE_CACHE or self.error is not None


@dataclass(frozen=True)
class SearchResult:
    records: tuple[Record, ...]
    source: DataSource
    partial: bool = False
    error: SyncError | None = None


@dataclass(frozen=True)
class RecordStatistics:
    """Aggregate counts for one owner's collection.

    ``breakdown`` maps a payload field name to per-value counts,
    e.g. ``{"status": {"healthy": 3, "lost": 1}}``.
    """

    total: int
    breakdown: dict[str, dict[str, int]] = field(default_factory=dict)
    source: DataSource = DataSource.REMOTE
    partial: bool = False
    error: SyncError | None = None
