"""Synced record endpoints — optimistic CRUD over the working set."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from recordsync.application.schemas.record import (
    LoadResponse,
    RecordCreate,
    RecordResponse,
    RecordUpdate,
    SearchResponse,
    StatisticsResponse,
    SyncErrorResponse,
)
from recordsync.application.services import SyncedCollectionStore
from recordsync.domain.exceptions import (
    ConnectivityError,
    EntityNotFoundError,
    ErrorCode,
    SyncError,
)
from recordsync.infrastructure.dependencies import get_synced_store

router = APIRouter(prefix="/records", tags=["Records"])

_STATUS_BY_CODE = {
    ErrorCode.AUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.VALIDATION: 422,
}


def _http_error(error: SyncError) -> HTTPException:
    """Translate a sync error into an HTTP error with a structured detail."""
    if isinstance(error, ConnectivityError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = _STATUS_BY_CODE.get(error.code, status.HTTP_502_BAD_GATEWAY)

    detail = SyncErrorResponse.from_error(error).model_dump()
    detail["queued"] = isinstance(error, ConnectivityError) and error.reverted is None
    detail["reverted"] = (
        RecordResponse.from_record(error.reverted).model_dump()
        if error.reverted is not None
        else None
    )
    return HTTPException(status_code=status_code, detail=detail)


@router.get("", response_model=LoadResponse)
async def load_records(
    force_refresh: bool = Query(False, description="Bypass a fresh cache entry"),
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> LoadResponse:
    """Load the owner's collection from the cache or the remote store."""
    try:
        result = await store.load(force_refresh=force_refresh)
    except SyncError as e:
        raise _http_error(e)
    return LoadResponse(
        records=[RecordResponse.from_record(r) for r in result.records],
        source=result.source.value,
        stale=result.stale,
        error=SyncErrorResponse.from_error(result.error),
    )


@router.get("/search", response_model=SearchResponse)
async def search_records(
    q: str = Query("", description="Case-insensitive search term"),
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> SearchResponse:
    """Search the collection — remote when online, cached (partial) when offline."""
    try:
        result = await store.search(q)
    except SyncError as e:
        raise _http_error(e)
    return SearchResponse(
        records=[RecordResponse.from_record(r) for r in result.records],
        source=result.source.value,
        partial=result.partial,
        error=SyncErrorResponse.from_error(result.error),
    )


@router.get("/statistics", response_model=StatisticsResponse)
async def record_statistics(
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> StatisticsResponse:
    """Get aggregate counts for the collection."""
    try:
        stats = await store.statistics()
    except SyncError as e:
        raise _http_error(e)
    return StatisticsResponse(
        total=stats.total,
        breakdown=stats.breakdown,
        source=stats.source.value,
        partial=stats.partial,
        error=SyncErrorResponse.from_error(stats.error),
    )


@router.get("/{record_id}", response_model=RecordResponse)
async def get_record(
    record_id: str,
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> RecordResponse:
    """Retrieve a single record by ID."""
    try:
        record = await store.fetch_record(record_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SyncError as e:
        raise _http_error(e)
    return RecordResponse.from_record(record)


@router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    data: RecordCreate,
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> RecordResponse:
    """Create a new record."""
    try:
        record = await store.create(data.payload)
    except SyncError as e:
        raise _http_error(e)
    return RecordResponse.from_record(record)


@router.put("/{record_id}", response_model=RecordResponse)
async def update_record(
    record_id: str,
    data: RecordUpdate,
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> RecordResponse:
    """Update an existing record — only the given payload fields change."""
    try:
        record = await store.update(record_id, data.payload)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SyncError as e:
        raise _http_error(e)
    return RecordResponse.from_record(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: str,
    store: SyncedCollectionStore = Depends(get_synced_store),
) -> None:
    """Delete a record by ID."""
    try:
        await store.delete(record_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SyncError as e:
        raise _http_error(e)
