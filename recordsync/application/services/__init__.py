from .connectivity_monitor import ConnectivityMonitor
from .cache_store import CacheStore, CacheStats
from .retry_coordinator import RetryCoordinator, RetryPolicy, ErrorClass, classify_error
from .error_log import ErrorLog
from .synced_collection_store import (
    SyncedCollectionStore,
    SyncCapabilities,
    StoreState,
)

__all__ = [
    "ConnectivityMonitor",
    "CacheStore",
    "CacheStats",
    "RetryCoordinator",
    "RetryPolicy",
    "ErrorClass",
    "classify_error",
    "ErrorLog",
    "SyncedCollectionStore",
    "SyncCapabilities",
    "StoreState",
]
