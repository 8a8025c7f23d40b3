"""Connectivity Monitor — one authoritative reachability state for the process."""

import asyncio
import logging
from collections.abc import Callable, Sequence

from recordsync.application.interfaces import ReachabilityProbe
from recordsync.domain.entities import ConnectivityState

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[ConnectivityState], None]

# Default polling interval in seconds
POLL_INTERVAL = 30.0


class ConnectivityMonitor:
    """Combines passive OS signals with active endpoint probing.

    State only changes on an explicit probe result or an explicit OS
    signal. Listeners fire once per distinct transition.
    """

    def __init__(
        self,
        probe: ReachabilityProbe,
        endpoints: Sequence[str],
        *,
        timeout: float = 5.0,
        os_online: Callable[[], bool] = lambda: True,
        initial_state: ConnectivityState = ConnectivityState.ONLINE,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._probe = probe
        self._endpoints = tuple(endpoints)
        self._timeout = timeout
        self._os_online = os_online
        self._state = initial_state
        self._poll_interval = poll_interval
        self._listeners: list[ConnectivityListener] = []
        self._last_os_flag: bool | None = None
        self._running = False
        self._task: asyncio.Task | None = None

    # ── State ────────────────────────────────────────────────────────

    def get_state(self) -> ConnectivityState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state is ConnectivityState.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state is ConnectivityState.OFFLINE

    @property
    def is_reconnecting(self) -> bool:
        return self._state is ConnectivityState.RECONNECTING

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a transition listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: ConnectivityState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.info("Connectivity %s → %s", previous.value, state.value)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connectivity listener failed")

    # ── Probing ──────────────────────────────────────────────────────

    async def probe(self) -> bool:
        """Check the configured endpoints concurrently and update the state.

        Reachable if any endpoint answers. When every endpoint is
        inconclusive the OS-reported flag decides, so an ambiguous
        environment is never declared offline on its own.
        """
        results = await asyncio.gather(
            *(self._check(url) for url in self._endpoints)
        )
        if any(result is True for result in results):
            reachable = True
        elif all(result is None for result in results):
            reachable = self._read_os_flag()
            logger.debug(
                "All %d probes inconclusive — using OS flag (%s)",
                len(results),
                reachable,
            )
        else:
            reachable = False

        self._set_state(
            ConnectivityState.ONLINE if reachable else ConnectivityState.OFFLINE
        )
        return reachable

    async def _check(self, url: str) -> bool | None:
        try:
            return await self._probe.check(url, self._timeout)
        except asyncio.TimeoutError:
            return False
        except Exception as exc:
            logger.debug("Probe of %s raised %s — treating as inconclusive", url, exc)
            return None

    def _read_os_flag(self) -> bool:
        try:
            return bool(self._os_online())
        except Exception:
            logger.exception("OS online flag could not be read")
            return True

    # ── OS signals ───────────────────────────────────────────────────

    async def handle_os_online(self) -> bool:
        """OS reports the network is back: reconnecting until a probe decides."""
        self._set_state(ConnectivityState.RECONNECTING)
        return await self.probe()

    def handle_os_offline(self) -> None:
        """OS reports no network interface: offline without probing."""
        self._set_state(ConnectivityState.OFFLINE)

    # ── Polling loop ─────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the periodic connectivity check loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("ConnectivityMonitor started (every %.0fs)", self._poll_interval)

    async def stop(self) -> None:
        """Gracefully stop the periodic check loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("ConnectivityMonitor stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("ConnectivityMonitor polling error")

            await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> None:
        """Turn OS flag flips into signals, otherwise run a plain probe."""
        os_flag = self._read_os_flag()
        previous, self._last_os_flag = self._last_os_flag, os_flag

        if previous is False and os_flag:
            await self.handle_os_online()
        elif previous and not os_flag:
            self.handle_os_offline()
        else:
            await self.probe()
