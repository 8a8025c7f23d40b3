"""Sync diagnostics endpoints — connectivity, pending work and the error log."""

from fastapi import APIRouter, Depends, Query

from recordsync.application.schemas.record import SyncErrorResponse
from recordsync.application.schemas.sync import (
    ErrorReportResponse,
    ProbeResponse,
    SyncStatusResponse,
)
from recordsync.infrastructure.dependencies import SyncContainer, get_container

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    container: SyncContainer = Depends(get_container),
) -> SyncStatusResponse:
    """Current connectivity state, pending mutations and cache size."""
    store = container.store
    return SyncStatusResponse(
        connectivity=container.monitor.get_state().value,
        is_offline=store.is_offline,
        is_loading=store.is_loading,
        pending=store.pending_count,
        cache_size=container.cache.stats().size,
        last_error=SyncErrorResponse.from_error(store.last_error),
    )


@router.post("/probe", response_model=ProbeResponse)
async def probe_connectivity(
    container: SyncContainer = Depends(get_container),
) -> ProbeResponse:
    """Run a reachability probe now instead of waiting for the next poll."""
    reachable = await container.monitor.probe()
    return ProbeResponse(
        reachable=reachable,
        connectivity=container.monitor.get_state().value,
    )


@router.get("/errors", response_model=list[ErrorReportResponse])
async def list_errors(
    operation: str | None = Query(None, description="Filter by operation name"),
    container: SyncContainer = Depends(get_container),
) -> list[ErrorReportResponse]:
    """Recent classified sync failures, newest first."""
    log = container.store.error_log
    reports = log.by_operation(operation) if operation else log.entries()
    return [ErrorReportResponse.model_validate(r) for r in reports]


@router.delete("/errors", status_code=204)
async def clear_errors(
    container: SyncContainer = Depends(get_container),
) -> None:
    """Clear the error log and the store's last error."""
    container.store.error_log.clear()
    container.store.clear_error()
