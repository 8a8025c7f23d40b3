"""Colored sync logger — ANSI-colored console logging for optimistic mutations.

Provides a SyncLogger with color-coded output per sync stage, making it
easy to follow a record from its optimistic write to confirmation or
rollback in the terminal.

Color scheme:
    🟡 Yellow  — Optimistic write
    🟢 Green   — Confirmed by the remote store
    🔴 Red     — Rollback / errors
    🔵 Blue    — Full load
    🟣 Magenta — Queued while offline
    🟠 Cyan    — Cache writes
    ⚪ Gray    — Timing / Stats
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Sync Stage Definitions ───────────────────────────────────────────

class SyncStage:
    """Predefined sync stages with colors and icons."""

    OPTIMISTIC = ("OPTIMISTIC", _Colors.YELLOW, "✏️")
    CONFIRM = ("CONFIRM", _Colors.GREEN, "✅")
    ROLLBACK = ("ROLLBACK", _Colors.RED, "↩️")
    LOAD = ("LOAD", _Colors.BLUE, "📥")
    QUEUE = ("QUEUE", _Colors.MAGENTA, "⏸️")
    CACHE = ("CACHE", _Colors.CYAN, "💾")
    ERROR = ("ERROR", _Colors.RED, "❌")


# ── SyncLogger ───────────────────────────────────────────────────────

class SyncLogger:
    """Color-coded logger for the synced collection store.

    Usage:
        log = SyncLogger("SyncedCollectionStore")
        log.step_start(SyncStage.OPTIMISTIC, "update", record_id="p1")
        log.step_complete(SyncStage.CONFIRM, "update", record_id="p1")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the start of a sync step with its stage color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        self._logger.info(formatted + self._details(kwargs))

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the successful completion of a sync step."""
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        self._logger.info(formatted + self._details(kwargs))

    def step_error(
        self,
        stage: tuple[str, str, str],
        message: str,
        error: Exception | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a failed sync step in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.warning(formatted + self._details(kwargs))

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed) at debug level."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        self._logger.debug(formatted + self._details(kwargs))

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(SyncStage.LOAD, "Fetching records"):
                records = await gateway.fetch_all(owner_id)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)

    @staticmethod
    def _details(kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {_Colors.GRAY}({details}){_Colors.RESET}"
