"""Pydantic DTOs (Data Transfer Objects) for the synced record feature."""

from typing import Any

from pydantic import BaseModel, Field

from recordsync.domain.entities import Record
from recordsync.domain.exceptions import SyncError


class RecordCreate(BaseModel):
    """Schema for creating a new record."""

    payload: dict[str, Any] = Field(
        ..., examples=[{"name": "Max", "type": "dog", "status": "healthy"}],
    )


class RecordUpdate(BaseModel):
    """Schema for updating a record — only the given fields change."""

    payload: dict[str, Any] = Field(..., examples=[{"age": 5}])


class RecordResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    owner_id: str
    payload: dict[str, Any]
    status: str

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        return cls(
            id=record.id,
            owner_id=record.owner_id,
            payload=record.payload,
            status=record.status.value,
        )


class SyncErrorResponse(BaseModel):
    type: str
    code: str
    message: str
    retryable: bool

    @classmethod
    def from_error(cls, error: SyncError | None) -> "SyncErrorResponse | None":
        if error is None:
            return None
        return cls(
            type=type(error).__name__,
            code=error.code.value,
            message=error.message,
            retryable=error.retryable,
        )


class LoadResponse(BaseModel):
    records: list[RecordResponse]
    source: str
    stale: bool
    error: SyncErrorResponse | None = None


class SearchResponse(BaseModel):
    records: list[RecordResponse]
    source: str
    partial: bool
    error: SyncErrorResponse | None = None


class StatisticsResponse(BaseModel):
    total: int
    breakdown: dict[str, dict[str, int]]
    source: str
    partial: bool
    error: SyncErrorResponse | None = None
