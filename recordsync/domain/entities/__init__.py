from .record import Record, RecordStatus, new_temp_id, TEMP_ID_PREFIX
from .connectivity import ConnectivityState
from .cache_entry import CacheEntry
from .sync_result import DataSource, LoadResult, SearchResult, RecordStatistics
from .error_report import ErrorReport

__all__ = [
    "Record",
    "RecordStatus",
    "new_temp_id",
    "TEMP_ID_PREFIX",
    "ConnectivityState",
    "CacheEntry",
    "DataSource",
    "LoadResult",
    "SearchResult",
    "RecordStatistics",
    "ErrorReport",
]
