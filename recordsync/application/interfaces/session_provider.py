"""Abstract identity/session provider (port)."""

from abc import ABC, abstractmethod
from collections.abc import Callable

SessionListener = Callable[[str | None], None]


class SessionProvider(ABC):
    """Port — supplies the current owner and tells the store when a session ends."""

    @abstractmethod
    def current_owner_id(self) -> str | None:
        ...

    @abstractmethod
    def is_session_valid(self) -> bool:
        ...

    @abstractmethod
    def subscribe_invalidated(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener(owner_id)`` for session invalidation.

        Returns a callable that removes the listener.
        """
        ...
