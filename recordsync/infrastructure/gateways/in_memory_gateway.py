"""In-memory record gateway — implements the RecordGateway interface.

Stands in for the remote store during development and demos. Records are
scoped by owner, ids are server-assigned UUIDs, and optional unique fields
reproduce the remote store's uniqueness constraint.
"""

import copy
import logging
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from recordsync.application.interfaces.record_gateway import RecordGateway
from recordsync.domain.entities import DataSource, Record, RecordStatistics, RecordStatus
from recordsync.domain.exceptions import ErrorCode, RemoteGatewayError

logger = logging.getLogger(__name__)


class InMemoryRecordGateway(RecordGateway):
    """Dict-backed gateway. Newest records come first, like the remote store."""

    def __init__(self, unique_fields: Iterable[str] = ()):
        self._records: dict[str, Record] = {}
        self._unique_fields = tuple(unique_fields)

    def _owned(self, owner_id: str) -> list[Record]:
        owned = [r for r in self._records.values() if r.owner_id == owner_id]
        return list(reversed(owned))

    def _get_owned(self, record_id: str, owner_id: str) -> Record:
        record = self._records.get(record_id)
        if record is None or record.owner_id != owner_id:
            raise RemoteGatewayError(ErrorCode.NOT_FOUND, f"Record '{record_id}' not found")
        return record

    def _check_unique(self, payload: dict[str, Any], owner_id: str, exclude: str | None = None) -> None:
        for field_name in self._unique_fields:
            value = payload.get(field_name)
            if value is None:
                continue
            for record in self._owned(owner_id):
                if record.id != exclude and record.payload.get(field_name) == value:
                    raise RemoteGatewayError(
                        ErrorCode.CONFLICT,
                        f"A record with {field_name}='{value}' already exists",
                    )

    async def fetch_all(self, owner_id: str) -> list[Record]:
        return [r.copy() for r in self._owned(owner_id)]

    async def fetch_one(self, record_id: str, owner_id: str) -> Record:
        return self._get_owned(record_id, owner_id).copy()

    async def search(self, term: str, owner_id: str) -> list[Record]:
        return [r.copy() for r in self._owned(owner_id) if r.matches(term)]

    async def create(self, payload: dict[str, Any], owner_id: str) -> Record:
        self._check_unique(payload, owner_id)
        record = Record(
            id=str(uuid4()),
            owner_id=owner_id,
            payload=copy.deepcopy(payload),
            status=RecordStatus.CONFIRMED,
        )
        self._records[record.id] = record
        logger.debug("Created record %s for owner %s", record.id, owner_id)
        return record.copy()

    async def update(self, record_id: str, payload: dict[str, Any], owner_id: str) -> Record:
        existing = self._get_owned(record_id, owner_id)
        self._check_unique(payload, owner_id, exclude=record_id)
        updated = Record(
            id=existing.id,
            owner_id=owner_id,
            payload=copy.deepcopy(payload),
            status=RecordStatus.CONFIRMED,
        )
        self._records[record_id] = updated
        return updated.copy()

    async def delete(self, record_id: str, owner_id: str) -> None:
        self._get_owned(record_id, owner_id)
        del self._records[record_id]

    async def statistics(self, owner_id: str, fields: tuple[str, ...]) -> RecordStatistics:
        owned = self._owned(owner_id)
        breakdown: dict[str, dict[str, int]] = {f: {} for f in fields}
        for record in owned:
            for field_name in fields:
                value = str(record.payload.get(field_name, "unknown"))
                breakdown[field_name][value] = breakdown[field_name].get(value, 0) + 1
        return RecordStatistics(total=len(owned), breakdown=breakdown, source=DataSource.REMOTE)
