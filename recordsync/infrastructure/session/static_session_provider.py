"""Static session provider — implements the SessionProvider interface.

Holds a single owner id set at startup (or by ``establish``). Used for
development and for embedding the store where authentication happens
elsewhere.
"""

import logging
from collections.abc import Callable

from recordsync.application.interfaces.session_provider import SessionListener, SessionProvider

logger = logging.getLogger(__name__)


class StaticSessionProvider(SessionProvider):
    def __init__(self, owner_id: str | None = None):
        self._owner_id = owner_id
        self._valid = owner_id is not None
        self._listeners: list[SessionListener] = []

    def current_owner_id(self) -> str | None:
        return self._owner_id

    def is_session_valid(self) -> bool:
        return self._valid

    def subscribe_invalidated(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def establish(self, owner_id: str) -> None:
        """Start a session for ``owner_id``."""
        self._owner_id = owner_id
        self._valid = True
        logger.info("Session established for owner %s", owner_id)

    def invalidate(self) -> None:
        """End the current session and notify subscribers (logout, expiry)."""
        owner_id = self._owner_id
        self._owner_id = None
        self._valid = False
        logger.info("Session invalidated for owner %s", owner_id)
        for listener in list(self._listeners):
            try:
                listener(owner_id)
            except Exception:
                logger.exception("Session listener failed")
