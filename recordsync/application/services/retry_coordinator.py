"""Retry Coordinator — bounded exponential backoff with error classification."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from recordsync.application.services.connectivity_monitor import ConnectivityMonitor
from recordsync.domain.exceptions import (
    ConnectivityError,
    ErrorCode,
    RemoteGatewayError,
    SyncError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorClass(str, Enum):
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def error_code_of(error: BaseException) -> ErrorCode:
    """Map any failure raised by a gateway call onto the shared ErrorCode table."""
    if isinstance(error, (RemoteGatewayError, SyncError)):
        return error.code
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCode.NETWORK
    return ErrorCode.UNKNOWN


def classify_error(error: BaseException) -> ErrorClass:
    if error_code_of(error).is_terminal:
        return ErrorClass.TERMINAL
    return ErrorClass.RETRYABLE


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    classify: Callable[[BaseException], ErrorClass] = field(default=classify_error)

    def delay_before(self, attempt: int) -> float:
        """Backoff before ``attempt`` (1-based); the first attempt never waits."""
        if attempt <= 1:
            return 0.0
        return self.base_delay * 2 ** (attempt - 2)


class RetryCoordinator:
    """Runs remote operations under a RetryPolicy.

    Terminal errors are raised after a single attempt. Before every retry
    the coordinator sleeps, then re-probes connectivity and fails fast with
    ConnectivityError instead of burning attempts against a dead network.
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._monitor = monitor
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def classify(self, error: BaseException) -> ErrorClass:
        return self._policy.classify(error)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "operation",
    ) -> T:
        max_attempts = max(1, self._policy.max_attempts)
        attempt = 1

        while True:
            try:
                return await operation()
            except Exception as exc:
                if self.classify(exc) is ErrorClass.TERMINAL:
                    logger.info("%s failed with terminal error: %s", description, exc)
                    raise
                logger.warning(
                    "%s attempt %d/%d failed: %s", description, attempt, max_attempts, exc
                )
                if attempt >= max_attempts:
                    raise
                last_error = exc

            attempt += 1
            await self._sleep(self._policy.delay_before(attempt))
            if not await self._monitor.probe():
                raise ConnectivityError(
                    f"{description}: no network connectivity before attempt {attempt}"
                ) from last_error
