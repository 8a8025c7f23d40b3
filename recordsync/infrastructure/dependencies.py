"""Dependency wiring — builds the sync layer and exposes it to FastAPI.

Every component is an explicitly constructed instance held by a
SyncContainer on ``app.state``.
"""

from dataclasses import dataclass

from fastapi import Request

from recordsync.config import Settings, get_settings
from recordsync.application.interfaces import (
    ReachabilityProbe,
    RecordGateway,
    SessionProvider,
)
from recordsync.application.services import (
    CacheStore,
    ConnectivityMonitor,
    ErrorLog,
    RetryCoordinator,
    RetryPolicy,
    SyncCapabilities,
    SyncedCollectionStore,
)
from recordsync.infrastructure.connectivity import (
    HttpReachabilityProbe,
    default_route_available,
)
from recordsync.infrastructure.gateways import InMemoryRecordGateway
from recordsync.infrastructure.session import StaticSessionProvider


@dataclass
class SyncContainer:
    monitor: ConnectivityMonitor
    cache: CacheStore
    retry: RetryCoordinator
    store: SyncedCollectionStore
    session: SessionProvider
    gateway: RecordGateway

    async def start(self) -> None:
        """Start the background loops (connectivity polling, cache sweep)."""
        await self.monitor.start()
        await self.cache.start()

    async def stop(self) -> None:
        await self.cache.stop()
        await self.monitor.stop()
        self.store.close()


def build_container(
    settings: Settings | None = None,
    *,
    gateway: RecordGateway | None = None,
    session: SessionProvider | None = None,
    probe: ReachabilityProbe | None = None,
) -> SyncContainer:
    """Wire monitor → cache → retry → store from settings.

    Without explicit collaborators the development adapters are used: the
    in-memory gateway and a static session for ``session_owner_id``.
    """
    settings = settings or get_settings()

    monitor = ConnectivityMonitor(
        probe=probe or HttpReachabilityProbe(),
        endpoints=settings.connectivity_probe_endpoints,
        timeout=settings.connectivity_probe_timeout,
        os_online=default_route_available,
        poll_interval=settings.connectivity_poll_interval,
    )
    cache = CacheStore(
        online_ttl=settings.cache_ttl_online,
        offline_ttl=settings.cache_ttl_offline,
        connectivity=monitor.get_state,
        sweep_interval=settings.cache_sweep_interval,
    )
    retry = RetryCoordinator(
        monitor,
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
        ),
    )

    gateway = gateway or InMemoryRecordGateway()
    session = session or StaticSessionProvider(settings.session_owner_id)

    store = SyncedCollectionStore(
        gateway=gateway,
        session=session,
        monitor=monitor,
        cache=cache,
        retry=retry,
        capabilities=SyncCapabilities(
            can_create=settings.can_create,
            can_update=settings.can_update,
            can_delete=settings.can_delete,
        ),
        search_include_pending=settings.search_include_pending,
        statistics_fields=settings.statistics_fields,
        error_log=ErrorLog(max_size=settings.error_log_size),
    )
    return SyncContainer(
        monitor=monitor,
        cache=cache,
        retry=retry,
        store=store,
        session=session,
        gateway=gateway,
    )


def get_container(request: Request) -> SyncContainer:
    """Provides the SyncContainer attached to the running application."""
    return request.app.state.sync


def get_synced_store(request: Request) -> SyncedCollectionStore:
    """Provides the SyncedCollectionStore attached to the running application."""
    return request.app.state.sync.store
