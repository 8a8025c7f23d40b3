"""Unit tests for the InMemoryRecordGateway."""

import pytest

from recordsync.domain.entities import RecordStatus
from recordsync.domain.exceptions import ErrorCode, RemoteGatewayError
from recordsync.infrastructure.gateways import InMemoryRecordGateway


@pytest.mark.asyncio
async def test_create_assigns_server_id_and_lists_newest_first():
    gateway = InMemoryRecordGateway()
    first = await gateway.create({"name": "Max"}, "alice")
    second = await gateway.create({"name": "Luna"}, "alice")

    records = await gateway.fetch_all("alice")

    assert [r.id for r in records] == [second.id, first.id]
    assert not first.is_temporary
    assert all(r.status is RecordStatus.CONFIRMED for r in records)


@pytest.mark.asyncio
async def test_records_are_scoped_by_owner():
    gateway = InMemoryRecordGateway()
    record = await gateway.create({"name": "Max"}, "alice")

    assert await gateway.fetch_all("bob") == []
    with pytest.raises(RemoteGatewayError) as exc_info:
        await gateway.fetch_one(record.id, "bob")
    assert exc_info.value.code is ErrorCode.NOT_FOUND
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_unique_fields_raise_conflict():
    gateway = InMemoryRecordGateway(unique_fields=("tag",))
    await gateway.create({"tag": "A-1"}, "alice")

    with pytest.raises(RemoteGatewayError) as exc_info:
        await gateway.create({"tag": "A-1"}, "alice")
    assert exc_info.value.code is ErrorCode.CONFLICT

    # another owner may reuse the value
    await gateway.create({"tag": "A-1"}, "bob")


@pytest.mark.asyncio
async def test_update_and_delete():
    gateway = InMemoryRecordGateway(unique_fields=("tag",))
    record = await gateway.create({"tag": "A-1", "age": 3}, "alice")

    updated = await gateway.update(record.id, {"tag": "A-1", "age": 4}, "alice")
    assert updated.payload == {"tag": "A-1", "age": 4}

    await gateway.delete(record.id, "alice")
    assert await gateway.fetch_all("alice") == []
    with pytest.raises(RemoteGatewayError):
        await gateway.delete(record.id, "alice")


@pytest.mark.asyncio
async def test_search_and_statistics():
    gateway = InMemoryRecordGateway()
    await gateway.create({"name": "Max", "type": "dog", "status": "healthy"}, "alice")
    await gateway.create({"name": "Maxine", "type": "cat"}, "alice")
    await gateway.create({"name": "Luna", "type": "dog", "status": "lost"}, "alice")

    found = await gateway.search("max", "alice")
    assert sorted(r.payload["name"] for r in found) == ["Max", "Maxine"]

    stats = await gateway.statistics("alice", ("type", "status"))
    assert stats.total == 3
    assert stats.breakdown["type"] == {"dog": 2, "cat": 1}
    assert stats.breakdown["status"] == {"healthy": 1, "lost": 1, "unknown": 1}
