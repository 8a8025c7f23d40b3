from .record import (
    RecordCreate,
    RecordUpdate,
    RecordResponse,
    SyncErrorResponse,
    LoadResponse,
    SearchResponse,
    StatisticsResponse,
)
from .sync import SyncStatusResponse, ProbeResponse, ErrorReportResponse

__all__ = [
    "RecordCreate",
    "RecordUpdate",
    "RecordResponse",
    "SyncErrorResponse",
    "LoadResponse",
    "SearchResponse",
    "StatisticsResponse",
    "SyncStatusResponse",
    "ProbeResponse",
    "ErrorReportResponse",
]
