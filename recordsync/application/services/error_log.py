"""Error Log — bounded in-memory history of classified sync failures."""

from typing import Any

from recordsync.application.services.retry_coordinator import error_code_of
from recordsync.domain.entities import ErrorReport

# Default number of reports kept
MAX_LOG_SIZE = 100


class ErrorLog:
    """Keeps the most recent failures, newest first."""

    def __init__(self, max_size: int = MAX_LOG_SIZE) -> None:
        self._max_size = max_size
        self._reports: list[ErrorReport] = []

    def record(self, error: BaseException, operation: str, **context: Any) -> ErrorReport:
        code = error_code_of(error)
        report = ErrorReport(
            message=getattr(error, "message", None) or str(error),
            code=code.value,
            retryable=not code.is_terminal,
            operation=operation,
            context=context,
        )
        self._reports.insert(0, report)
        del self._reports[self._max_size:]
        return report

    def entries(self) -> list[ErrorReport]:
        return list(self._reports)

    def by_operation(self, operation: str) -> list[ErrorReport]:
        return [r for r in self._reports if r.operation == operation]

    def clear(self) -> None:
        self._reports.clear()

    def __len__(self) -> int:
        return len(self._reports)
