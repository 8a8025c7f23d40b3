"""Pydantic DTOs for sync status and diagnostics."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from .record import SyncErrorResponse


class SyncStatusResponse(BaseModel):
    connectivity: str
    is_offline: bool
    is_loading: bool
    pending: int
    cache_size: int
    last_error: SyncErrorResponse | None = None


class ProbeResponse(BaseModel):
    reachable: bool
    connectivity: str


class ErrorReportResponse(BaseModel):
    message: str
    code: str
    retryable: bool
    operation: str
    timestamp: datetime
    context: dict[str, Any]

    model_config = {"from_attributes": True}
