"""Unit tests for the ErrorLog."""

from recordsync.application.services import ErrorLog
from recordsync.domain.exceptions import (
    CacheMiss,
    ErrorCode,
    RemoteGatewayError,
    TerminalRemoteError,
)


def test_records_newest_first():
    log = ErrorLog()
    log.record(CacheMiss("nothing cached"), "load")
    log.record(RemoteGatewayError(ErrorCode.CONFLICT, "duplicate"), "create", record_id="temp_1")

    entries = log.entries()
    assert [e.operation for e in entries] == ["create", "load"]
    assert entries[0].code == "conflict"
    assert entries[0].retryable is False
    assert entries[0].message == "duplicate"
    assert entries[0].context == {"record_id": "temp_1"}


def test_bounded_size_drops_oldest():
    log = ErrorLog(max_size=3)
    for i in range(5):
        log.record(RuntimeError(f"boom {i}"), "load")

    assert len(log) == 3
    assert [e.message for e in log.entries()] == ["boom 4", "boom 3", "boom 2"]


def test_plain_exceptions_are_unknown_and_retryable():
    log = ErrorLog()
    report = log.record(ValueError("bad json"), "search")

    assert report.code == "unknown"
    assert report.retryable is True


def test_by_operation_and_clear():
    log = ErrorLog()
    log.record(TerminalRemoteError("forbidden", ErrorCode.PERMISSION), "delete")
    log.record(CacheMiss("nothing cached"), "load")

    assert [e.code for e in log.by_operation("delete")] == ["permission"]

    log.clear()
    assert log.entries() == []
