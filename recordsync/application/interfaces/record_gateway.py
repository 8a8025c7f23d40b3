"""Abstract remote data gateway (port) for owned records."""

from abc import ABC, abstractmethod
from typing import Any

from recordsync.domain.entities import Record, RecordStatistics


class RecordGateway(ABC):
    """Port for the remote record store — implemented in the infrastructure layer.

    Every method either returns confirmed records or raises
    ``RemoteGatewayError`` carrying a classified ``ErrorCode``. Transport
    level failures may also surface as ``TimeoutError`` / ``OSError``.
    """

    @abstractmethod
    async def fetch_all(self, owner_id: str) -> list[Record]:
        """Retrieve every record owned by ``owner_id``, newest first."""
        ...

    @abstractmethod
    async def fetch_one(self, record_id: str, owner_id: str) -> Record:
        """Retrieve a single record by its server id."""
        ...

    @abstractmethod
    async def search(self, term: str, owner_id: str) -> list[Record]:
        """Server-side search over the owner's complete collection."""
        ...

    @abstractmethod
    async def create(self, payload: dict[str, Any], owner_id: str) -> Record:
        """Persist a new record and return it with its server id."""
        ...

    @abstractmethod
    async def update(
        self, record_id: str, payload: dict[str, Any], owner_id: str
    ) -> Record:
        """Replace the payload of an existing record."""
        ...

    @abstractmethod
    async def delete(self, record_id: str, owner_id: str) -> None:
        """Delete a record."""
        ...

    @abstractmethod
    async def statistics(self, owner_id: str, fields: tuple[str, ...]) -> RecordStatistics:
        """Aggregate counts computed by the remote store, grouped by ``fields``."""
        ...
