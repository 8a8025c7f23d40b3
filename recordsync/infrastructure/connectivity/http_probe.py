"""HTTP reachability probe — implements the ReachabilityProbe interface.

Issues a single HEAD request with httpx. Any HTTP answer proves a network
path exists; answers that only prove a middlebox (proxy authentication,
legal block) are reported as inconclusive.
"""

import logging

import httpx

from recordsync.application.interfaces.reachability_probe import ReachabilityProbe

logger = logging.getLogger(__name__)

# Responses produced by a proxy or filter rather than the probed host
_INCONCLUSIVE_STATUSES = frozenset({407, 451})


class HttpReachabilityProbe(ReachabilityProbe):
    """Infrastructure adapter — probes endpoints over HTTP(S)."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._http_client = http_client

    async def _get_client(self, timeout: float) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=timeout)

    async def check(self, url: str, timeout: float) -> bool | None:
        client = await self._get_client(timeout)
        should_close = self._http_client is None

        try:
            response = await client.head(
                url,
                timeout=timeout,
                headers={"Cache-Control": "no-cache"},
            )
        except httpx.TimeoutException:
            logger.debug("Probe %s timed out after %.1fs", url, timeout)
            return False
        except (httpx.ProxyError, httpx.UnsupportedProtocol) as exc:
            logger.debug("Probe %s inconclusive: %s", url, exc)
            return None
        except httpx.NetworkError as exc:
            logger.debug("Probe %s unreachable: %s", url, exc)
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Probe %s inconclusive: %s", url, exc)
            return None
        finally:
            if should_close:
                await client.aclose()

        if response.status_code in _INCONCLUSIVE_STATUSES:
            return None
        return True
