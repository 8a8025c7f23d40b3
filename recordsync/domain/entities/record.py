"""Domain entity — an owned record mirrored from the remote store."""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
from uuid import uuid4

TEMP_ID_PREFIX = "temp_"


class RecordStatus(str, Enum):
    """Synchronization state of a record in the local working set."""

    CONFIRMED = "confirmed"
    PENDING_CREATE = "pending-create"
    PENDING_UPDATE = "pending-update"
    PENDING_DELETE = "pending-delete"
    REVERTED = "reverted"

    @property
    def is_pending(self) -> bool:
        return self in (
            RecordStatus.PENDING_CREATE,
            RecordStatus.PENDING_UPDATE,
            RecordStatus.PENDING_DELETE,
        )


def new_temp_id() -> str:
    """Client-side id used until the remote store assigns the real one."""
    return f"{TEMP_ID_PREFIX}{uuid4().hex}"


@dataclass
class Record:
    """A single owned record.

    ``payload`` holds the record-type specific fields; the sync layer never
    interprets them beyond substring search and statistics grouping.
    """

    id: str
    owner_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    status: RecordStatus = RecordStatus.CONFIRMED

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_ID_PREFIX)

    def copy(self) -> "Record":
        """Deep copy, so snapshots never share payload dicts with live records."""
        return replace(self, payload=copy.deepcopy(self.payload))

    def with_changes(
        self,
        payload: dict[str, Any] | None = None,
        status: RecordStatus | None = None,
    ) -> "Record":
        """Return a copy with ``payload`` merged over the current fields."""
        merged = copy.deepcopy(self.payload)
        if payload:
            merged.update(copy.deepcopy(payload))
        return replace(self, payload=merged, status=status or self.status)

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over the textual payload values."""
        needle = term.strip().lower()
        if not needle:
            return True
        return any(
            needle in str(value).lower()
            for value in self.payload.values()
            if isinstance(value, (str, int, float))
        )
