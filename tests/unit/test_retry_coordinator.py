"""Unit tests for the RetryCoordinator and the shared retry policy."""

import asyncio

import pytest

from recordsync.application.interfaces import ReachabilityProbe
from recordsync.application.services import (
    ConnectivityMonitor,
    ErrorClass,
    RetryCoordinator,
    RetryPolicy,
    classify_error,
)
from recordsync.domain.exceptions import (
    ConnectivityError,
    ErrorCode,
    RemoteGatewayError,
)


# ── Fakes ──


class StubProbe(ReachabilityProbe):
    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.calls = 0

    async def check(self, url: str, timeout: float) -> bool | None:
        self.calls += 1
        return self.reachable


class FlakyOperation:
    """Raises the scripted errors in order, then returns ``result``."""

    def __init__(self, *errors: Exception, result: str = "ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def _make_coordinator(reachable: bool = True, **policy):
    probe = StubProbe(reachable)
    monitor = ConnectivityMonitor(probe, ["https://probe.test"])
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    coordinator = RetryCoordinator(monitor, RetryPolicy(**policy), sleep=fake_sleep)
    return coordinator, probe, delays


def _server_error() -> RemoteGatewayError:
    return RemoteGatewayError(ErrorCode.SERVER, "503 upstream unavailable")


# ── Tests ──


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_wait():
    coordinator, probe, delays = _make_coordinator()
    operation = FlakyOperation()

    assert await coordinator.run(operation) == "ok"
    assert operation.calls == 1
    assert delays == []
    assert probe.calls == 0


@pytest.mark.asyncio
async def test_transient_errors_back_off_exponentially():
    coordinator, probe, delays = _make_coordinator(base_delay=1.0)
    operation = FlakyOperation(_server_error(), asyncio.TimeoutError())

    assert await coordinator.run(operation) == "ok"
    assert operation.calls == 3
    assert delays == [1.0, 2.0]
    # connectivity is re-checked before every retry
    assert probe.calls == 2


@pytest.mark.asyncio
async def test_terminal_error_is_attempted_once():
    coordinator, _, delays = _make_coordinator()
    error = RemoteGatewayError(ErrorCode.VALIDATION, "name is required")
    operation = FlakyOperation(error)

    with pytest.raises(RemoteGatewayError) as exc_info:
        await coordinator.run(operation)

    assert exc_info.value is error
    assert operation.calls == 1
    assert delays == []


@pytest.mark.asyncio
async def test_exhausted_retries_raise_last_error():
    coordinator, _, delays = _make_coordinator(max_attempts=3)
    last = _server_error()
    operation = FlakyOperation(_server_error(), _server_error(), last)

    with pytest.raises(RemoteGatewayError) as exc_info:
        await coordinator.run(operation)

    assert exc_info.value is last
    assert operation.calls == 3
    assert len(delays) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("max_attempts", [1, 0])
async def test_single_attempt_policy_raises_without_waiting(max_attempts):
    coordinator, reachability, delays = _make_coordinator(max_attempts=max_attempts)
    error = _server_error()
    operation = FlakyOperation(error)

    with pytest.raises(RemoteGatewayError) as exc_info:
        await coordinator.run(operation)

    assert exc_info.value is error
    assert operation.calls == 1
    assert delays == []
    assert reachability.calls == 0


@pytest.mark.asyncio
async def test_fails_fast_when_connectivity_is_lost():
    coordinator, _, _ = _make_coordinator(reachable=False)
    first = _server_error()
    operation = FlakyOperation(first, _server_error())

    with pytest.raises(ConnectivityError) as exc_info:
        await coordinator.run(operation, description="fetch_all")

    assert operation.calls == 1
    assert exc_info.value.__cause__ is first
    assert "fetch_all" in str(exc_info.value)


@pytest.mark.asyncio
async def test_custom_classifier_overrides_default():
    coordinator, _, _ = _make_coordinator(classify=lambda _e: ErrorClass.TERMINAL)
    operation = FlakyOperation(_server_error())

    with pytest.raises(RemoteGatewayError):
        await coordinator.run(operation)
    assert operation.calls == 1


def test_delay_schedule():
    policy = RetryPolicy(base_delay=0.5)

    assert policy.delay_before(1) == 0.0
    assert policy.delay_before(2) == 0.5
    assert policy.delay_before(3) == 1.0
    assert policy.delay_before(4) == 2.0


@pytest.mark.parametrize(
    "code",
    [ErrorCode.AUTH, ErrorCode.PERMISSION, ErrorCode.NOT_FOUND,
     ErrorCode.CONFLICT, ErrorCode.VALIDATION],
)
def test_terminal_codes(code):
    assert classify_error(RemoteGatewayError(code, "rejected")) is ErrorClass.TERMINAL


@pytest.mark.parametrize(
    "error",
    [
        RemoteGatewayError(ErrorCode.SERVER, "500"),
        RemoteGatewayError(ErrorCode.TIMEOUT, "slow"),
        TimeoutError(),
        ConnectionResetError(),
        ValueError("unexpected payload"),
    ],
)
def test_retryable_errors(error):
    assert classify_error(error) is ErrorClass.RETRYABLE
