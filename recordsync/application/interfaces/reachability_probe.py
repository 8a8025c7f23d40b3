"""Abstract reachability probe (port) used by the connectivity monitor."""

from abc import ABC, abstractmethod


class ReachabilityProbe(ABC):
    """Checks whether one external endpoint can be reached."""

    @abstractmethod
    async def check(self, url: str, timeout: float) -> bool | None:
        """Probe ``url`` once.

        Returns:
            True if reachable, False if unreachable (timeouts included),
            None if the result is inconclusive (blocked, refused by a proxy).
        """
        ...
