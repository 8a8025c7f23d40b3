"""Unit tests for the HttpReachabilityProbe."""

import httpx
import pytest

from recordsync.infrastructure.connectivity import HttpReachabilityProbe


# ── Helpers ──


def _make_probe(handler) -> HttpReachabilityProbe:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpReachabilityProbe(http_client=client)


def _raising(exc_type):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("probe failed", request=request)

    return handler


# ── Tests ──


@pytest.mark.asyncio
async def test_any_response_means_reachable():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(503)

    probe = _make_probe(handler)

    assert await probe.check("https://probe.test/favicon.ico", 5.0) is True
    assert seen[0].method == "HEAD"
    assert seen[0].headers["cache-control"] == "no-cache"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [407, 451])
async def test_middlebox_responses_are_inconclusive(status_code):
    probe = _make_probe(lambda request: httpx.Response(status_code))

    assert await probe.check("https://probe.test", 5.0) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("exc_type", [httpx.ConnectTimeout, httpx.ReadTimeout, httpx.ConnectError])
async def test_timeouts_and_network_errors_are_unreachable(exc_type):
    probe = _make_probe(_raising(exc_type))

    assert await probe.check("https://probe.test", 5.0) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("exc_type", [httpx.ProxyError, httpx.UnsupportedProtocol, httpx.RemoteProtocolError])
async def test_proxy_and_protocol_errors_are_inconclusive(exc_type):
    probe = _make_probe(_raising(exc_type))

    assert await probe.check("https://probe.test", 5.0) is None


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    probe = HttpReachabilityProbe(http_client=client)

    await probe.check("https://probe.test", 5.0)

    assert not client.is_closed
    await client.aclose()
