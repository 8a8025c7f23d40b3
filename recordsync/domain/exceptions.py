"""Domain-specific exceptions — framework-independent.

Holds the sync error taxonomy and the single retry-eligibility table that
both gateways and the retry coordinator read from.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Classified failure codes reported by a record gateway."""

    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_CODES


# Retrying cannot change the outcome for these; everything else is retried.
_TERMINAL_CODES = frozenset({
    ErrorCode.AUTH,
    ErrorCode.PERMISSION,
    ErrorCode.NOT_FOUND,
    ErrorCode.CONFLICT,
    ErrorCode.VALIDATION,
})


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist in the working set."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class RemoteGatewayError(Exception):
    """Raised by a gateway adapter when the remote store rejects or fails a call."""

    def __init__(self, code: ErrorCode | str, message: str):
        self.code = ErrorCode(code)
        self.message = message
        super().__init__(f"[{self.code.value}] {message}")

    @property
    def retryable(self) -> bool:
        return not self.code.is_terminal


class SyncError(Exception):
    """Base of the errors surfaced by the synchronization layer."""

    default_code = ErrorCode.UNKNOWN

    def __init__(self, message: str, code: ErrorCode | None = None):
        self.message = message
        self.code = code or self.default_code
        # Optimistic version discarded by a rollback, if any
        self.reverted = None
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return not self.code.is_terminal


class ConnectivityError(SyncError):
    """No viable network path to the remote store."""

    default_code = ErrorCode.NETWORK


class TransientRemoteError(ConnectivityError):
    """A retryable remote failure that persisted through every attempt."""

    default_code = ErrorCode.SERVER

    def __init__(self, message: str, code: ErrorCode | None = None, attempts: int = 0):
        super().__init__(message, code)
        self.attempts = attempts


class TerminalRemoteError(SyncError):
    """The remote store rejected the call (auth, permission, validation, conflict)."""


class CacheMiss(SyncError):
    """No usable cached data while offline."""

    default_code = ErrorCode.NETWORK


class SessionInvalidError(SyncError):
    """No established identity — operations are blocked."""

    default_code = ErrorCode.AUTH


class OperationNotPermittedError(SyncError):
    """The store was not granted the capability for this mutation."""

    default_code = ErrorCode.PERMISSION
