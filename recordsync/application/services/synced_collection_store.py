"""Synced Collection Store — optimistic working set kept consistent with the remote store.

Every mutation is applied to the local working set before the remote call
and is then either confirmed (server record swapped in) or reverted (the
record restored to its state just before that mutation). Mutations on the
same record are serialized through a per-record asyncio.Lock, released once
the record settles; mutations on different records proceed independently.

Mutations issued while offline are not sent: they stay pending in the
working set and are replayed by the next online ``load()``.
"""

import asyncio
import copy
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Any

from recordsync.application.interfaces import RecordGateway, SessionProvider
from recordsync.application.services.cache_store import CacheStore
from recordsync.application.services.connectivity_monitor import ConnectivityMonitor
from recordsync.application.services.error_log import ErrorLog
from recordsync.application.services.retry_coordinator import (
    RetryCoordinator,
    error_code_of,
)
from recordsync.domain.entities import (
    DataSource,
    LoadResult,
    Record,
    RecordStatistics,
    RecordStatus,
    SearchResult,
    new_temp_id,
)
from recordsync.domain.exceptions import (
    CacheMiss,
    ConnectivityError,
    EntityNotFoundError,
    ErrorCode,
    OperationNotPermittedError,
    SessionInvalidError,
    SyncError,
    TerminalRemoteError,
    TransientRemoteError,
)
from recordsync.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
plog = SyncLogger("SyncedCollectionStore")

CACHE_KEY_PREFIX = "records"


@dataclass(frozen=True)
class SyncCapabilities:
    """Mutations this store may issue for the current account."""

    can_create: bool = True
    can_update: bool = True
    can_delete: bool = True


@dataclass(frozen=True)
class StoreState:
    """Read-only view handed to store listeners."""

    records: tuple[Record, ...]
    is_loading: bool
    last_error: SyncError | None
    is_offline: bool


StoreListener = Callable[[StoreState], None]


@dataclass
class _RecordLock:
    """Serialises mutations of one record; dropped once nobody holds or awaits it."""

    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class SyncedCollectionStore:
    """Orchestrates load, optimistic mutation, reconciliation and rollback."""

    def __init__(
        self,
        gateway: RecordGateway,
        session: SessionProvider,
        monitor: ConnectivityMonitor,
        cache: CacheStore,
        retry: RetryCoordinator,
        *,
        capabilities: SyncCapabilities | None = None,
        search_include_pending: bool = True,
        statistics_fields: Iterable[str] = ("status", "type"),
        error_log: ErrorLog | None = None,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._monitor = monitor
        self._cache = cache
        self._retry = retry
        self._capabilities = capabilities or SyncCapabilities()
        self._search_include_pending = search_include_pending
        self._statistics_fields = tuple(statistics_fields)
        self._error_log = error_log or ErrorLog()

        self._records: list[Record] = []
        # Last confirmed value of every record with a pending update/delete
        self._snapshots: dict[str, Record] = {}
        # Temporary id → server id, once a create is confirmed
        self._aliases: dict[str, str] = {}
        self._locks: dict[str, _RecordLock] = {}
        self._owner_id: str | None = None
        # Bumped whenever the working set is discarded; settling calls
        # from an older epoch must not touch the new state.
        self._epoch = 0
        self._blocked = False
        # Owner whose token the remote store rejected; cleared by a new session
        self._rejected_owner: str | None = None
        self._is_loading = False
        self._last_error: SyncError | None = None
        self._listeners: list[StoreListener] = []

        self._unsubscribe_session = session.subscribe_invalidated(self._on_session_invalidated)
        self._unsubscribe_monitor = monitor.subscribe(lambda _state: self._notify())

    def close(self) -> None:
        """Detach from the session provider and the connectivity monitor."""
        self._unsubscribe_session()
        self._unsubscribe_monitor()

    # ── Observables ──────────────────────────────────────────────────

    @property
    def current_records(self) -> tuple[Record, ...]:
        return tuple(
            r.copy() for r in self._records if r.status is not RecordStatus.PENDING_DELETE
        )

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> SyncError | None:
        return self._last_error

    @property
    def is_offline(self) -> bool:
        return self._monitor.is_offline

    @property
    def pending_count(self) -> int:
        return sum(1 for r in self._records if r.status.is_pending)

    @property
    def in_flight_count(self) -> int:
        """Records with a mutation running or waiting for its turn."""
        return len({id(entry) for entry in self._locks.values()})

    @property
    def error_log(self) -> ErrorLog:
        return self._error_log

    def state(self) -> StoreState:
        return StoreState(
            records=self.current_records,
            is_loading=self._is_loading,
            last_error=self._last_error,
            is_offline=self.is_offline,
        )

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Store listener failed")

    def clear_error(self) -> None:
        self._set_error(None)

    def cache_key(self, owner_id: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{owner_id}"

    def has_cache(self) -> bool:
        owner_id = self._session.current_owner_id()
        if not owner_id:
            return False
        return self._cache.peek(self.cache_key(owner_id), owner_id) is not None

    # ── Load ─────────────────────────────────────────────────────────

    async def load(self, force_refresh: bool = False) -> LoadResult:
        """Bring the working set up to date.

        While offline the gateway is never called: any cached entry is served
        regardless of age, or CacheMiss when there is none. Online, a fresh
        cache entry wins unless ``force_refresh``, then the remote store.
        """
        owner_id = self._require_owner()
        key = self.cache_key(owner_id)

        # Offline reads go through peek(): get() would purge an expired entry
        if self._monitor.is_offline:
            return self._load_offline(owner_id)

        if not force_refresh:
            cached = self._cache.get(key, owner_id)
            if cached is not None:
                self._adopt(cached)
                self._set_error(None)
                return LoadResult(self.current_records, DataSource.CACHE)

        epoch = self._epoch
        self._set_loading(True)
        try:
            await self._replay_pending(owner_id)
            with plog.timed_step(SyncStage.LOAD, "Fetching records", owner=owner_id):
                records = await self._retry.run(
                    lambda: self._gateway.fetch_all(owner_id),
                    description="fetch_all",
                )
        except Exception as exc:
            error = self._classify(exc, "load", owner=owner_id)
            if epoch != self._epoch:
                return LoadResult((), DataSource.NONE, error)
            if error.code is ErrorCode.AUTH:
                self._on_session_invalidated(owner_id)
                self._rejected_owner = owner_id
                self._set_error(error)
                return LoadResult((), DataSource.NONE, error)

            entry = self._cache.peek(key, owner_id)
            if entry is not None:
                self._adopt(entry.data)
                source = DataSource.CACHE
            else:
                source = DataSource.LOCAL if self._records else DataSource.NONE
            self._set_error(error)
            return LoadResult(self.current_records, source, error)
        finally:
            self._set_loading(False)

        if epoch != self._epoch:
            error = SessionInvalidError("Session changed while loading")
            return LoadResult((), DataSource.NONE, error)

        self._adopt(records)
        self._refresh_cache(owner_id)
        self._set_error(None)
        return LoadResult(self.current_records, DataSource.REMOTE)

    async def refetch(self) -> LoadResult:
        return await self.load(force_refresh=True)

    def _load_offline(self, owner_id: str) -> LoadResult:
        entry = self._cache.peek(self.cache_key(owner_id), owner_id)
        if entry is None:
            error = CacheMiss("No data available offline")
            self._error_log.record(error, "load", owner=owner_id)
            self._set_error(error)
            return LoadResult(self.current_records, DataSource.NONE, error)

        self._adopt(entry.data)
        self._notify()
        return LoadResult(self.current_records, DataSource.OFFLINE_CACHE)

    def _adopt(self, confirmed: Iterable[Record]) -> None:
        """Replace the working set with confirmed records, keeping pending local work."""
        pending = {r.id: r for r in self._records if r.status.is_pending}
        merged: list[Record] = []
        for record in confirmed:
            local = pending.pop(record.id, None)
            if local is None:
                merged.append(record.copy())
            else:
                # Rollback now restores the freshest confirmed value
                if local.status is not RecordStatus.PENDING_CREATE:
                    self._snapshots[record.id] = record.copy()
                merged.append(local)

        creates = [r for r in pending.values() if r.status is RecordStatus.PENDING_CREATE]
        for record in pending.values():
            if record.status is not RecordStatus.PENDING_CREATE:
                # Gone remotely; a settling call for it becomes a no-op
                self._snapshots.pop(record.id, None)
                logger.info("Dropped pending %s for %s — no longer on the server",
                            record.status.value, record.id)

        self._records = creates + merged

    # ── Mutations ────────────────────────────────────────────────────

    async def create(self, payload: dict[str, Any]) -> Record:
        """Insert a pending record immediately, then confirm it remotely."""
        owner_id = self._require_owner()
        self._require_capability(self._capabilities.can_create, "create")

        record = Record(
            id=new_temp_id(),
            owner_id=owner_id,
            payload=copy.deepcopy(payload),
            status=RecordStatus.PENDING_CREATE,
        )
        self._records.insert(0, record)
        plog.step_start(SyncStage.OPTIMISTIC, "create", record_id=record.id)
        self._notify()

        async with self._record_lock(record.id):
            return await self._push(owner_id, record.id, "create")

    async def update(self, record_id: str, payload: dict[str, Any]) -> Record:
        """Merge ``payload`` into the record optimistically, then confirm it."""
        owner_id = self._require_owner()
        self._require_capability(self._capabilities.can_update, "update")

        async with self._record_lock(record_id):
            record_id = self._resolve(record_id)
            current = self._find(record_id)
            if current is None or current.status is RecordStatus.PENDING_DELETE:
                raise EntityNotFoundError("Record", record_id)

            previous = current.copy()
            if not current.status.is_pending:
                self._snapshots[record_id] = current.copy()
            # An update on an unsent create is folded into that create
            status = (
                RecordStatus.PENDING_CREATE
                if current.status is RecordStatus.PENDING_CREATE
                else RecordStatus.PENDING_UPDATE
            )
            self._replace(record_id, current.with_changes(payload, status))
            plog.step_start(SyncStage.OPTIMISTIC, "update", record_id=record_id)
            self._notify()

            return await self._push(owner_id, record_id, "update", previous=previous)

    async def delete(self, record_id: str) -> None:
        """Hide the record immediately, then delete it remotely.

        The record stays in the working set as a hidden tombstone until the
        delete settles, so a rollback puts it back at its original position.
        """
        owner_id = self._require_owner()
        self._require_capability(self._capabilities.can_delete, "delete")

        async with self._record_lock(record_id):
            record_id = self._resolve(record_id)
            current = self._find(record_id)
            if current is None or current.status is RecordStatus.PENDING_DELETE:
                raise EntityNotFoundError("Record", record_id)

            if current.status is RecordStatus.PENDING_CREATE:
                # Never reached the remote store
                self._remove(record_id)
                plog.step_complete(SyncStage.CONFIRM, "delete (local only)", record_id=record_id)
                self._notify()
                return

            previous = current.copy()
            if not current.status.is_pending:
                self._snapshots[record_id] = current.copy()
            self._replace(record_id, current.with_changes(status=RecordStatus.PENDING_DELETE))
            plog.step_start(SyncStage.OPTIMISTIC, "delete", record_id=record_id)
            self._notify()

            await self._push(owner_id, record_id, "delete", previous=previous)

    async def _push(
        self,
        owner_id: str,
        record_id: str,
        operation: str,
        *,
        queued: bool = False,
        previous: Record | None = None,
    ) -> Record | None:
        """Send the net pending change of one record and settle it.

        The caller holds the record's lock. With ``queued`` (replay of
        offline work) a connectivity failure leaves the change pending
        instead of reverting it. ``previous`` is the record as it was
        before the mutation being pushed; a failure restores it.
        """
        record = self._find(record_id)
        if record is None or not record.status.is_pending:
            return record

        if self._monitor.is_offline:
            error = ConnectivityError(f"{operation} queued until connectivity returns")
            plog.step_start(SyncStage.QUEUE, operation, record_id=record_id)
            self._error_log.record(error, operation, record_id=record_id)
            self._set_error(error)
            raise error

        epoch = self._epoch
        try:
            confirmed = await self._send(owner_id, record)
        except Exception as exc:
            error = self._classify(exc, operation, record_id=record_id)
            if epoch == self._epoch:
                if queued and isinstance(error, ConnectivityError):
                    plog.step_error(SyncStage.QUEUE, f"{operation} still pending", error=error)
                else:
                    error.reverted = self._revert(record_id, previous)
                self._set_error(error)
            if error is exc:
                raise
            raise error from exc

        if epoch != self._epoch:
            return confirmed
        return self._confirm(owner_id, record_id, confirmed)

    async def _send(self, owner_id: str, record: Record) -> Record | None:
        record_id = record.id
        payload = copy.deepcopy(record.payload)

        if record.status is RecordStatus.PENDING_CREATE:
            return await self._retry.run(
                lambda: self._gateway.create(payload, owner_id),
                description=f"create {record_id}",
            )
        if record.status is RecordStatus.PENDING_UPDATE:
            return await self._retry.run(
                lambda: self._gateway.update(record_id, payload, owner_id),
                description=f"update {record_id}",
            )
        await self._retry.run(
            lambda: self._gateway.delete(record_id, owner_id),
            description=f"delete {record_id}",
        )
        return None

    def _confirm(self, owner_id: str, record_id: str, confirmed: Record | None) -> Record | None:
        current = self._find(record_id)
        if current is None:
            logger.info("Record %s disappeared before its confirmation — ignored", record_id)
            return confirmed

        self._snapshots.pop(record_id, None)
        if current.status is RecordStatus.PENDING_DELETE or confirmed is None:
            self._remove(record_id)
        else:
            confirmed = replace(confirmed.copy(), status=RecordStatus.CONFIRMED)
            self._replace(record_id, confirmed)
            if confirmed.id != record_id:
                self._aliases[record_id] = confirmed.id
                entry = self._locks.get(record_id)
                if entry is not None:
                    self._locks[confirmed.id] = entry

        self._refresh_cache(owner_id)
        plog.step_complete(SyncStage.CONFIRM, "confirmed", record_id=record_id,
                           server_id=confirmed.id if confirmed else None)
        self._set_error(None)
        return confirmed

    def _revert(self, record_id: str, previous: Record | None = None) -> Record | None:
        """Undo a failed change of one record. Returns the discarded version.

        With ``previous`` the record goes back to its state just before the
        failed mutation, so earlier queued changes stay pending. Without it
        (replay of queued work) the record falls back to its last confirmed
        value, or disappears if it never reached the remote store.
        """
        current = self._find(record_id)
        if current is None:
            return None

        discarded = replace(current.copy(), status=RecordStatus.REVERTED)
        if previous is not None:
            self._replace(record_id, previous)
            if not previous.status.is_pending:
                self._snapshots.pop(record_id, None)
        else:
            snapshot = self._snapshots.pop(record_id, None)
            if current.status is RecordStatus.PENDING_CREATE or snapshot is None:
                self._remove(record_id)
            else:
                self._replace(record_id, snapshot)
        plog.step_error(SyncStage.ROLLBACK, f"{current.status.value} reverted", record_id=record_id)
        self._notify()
        return discarded

    async def _replay_pending(self, owner_id: str) -> None:
        """Send mutations that were queued while offline, in working-set order."""
        pending_ids = [r.id for r in self._records if r.status.is_pending]
        if pending_ids:
            plog.step_start(SyncStage.QUEUE, "Replaying offline changes", count=len(pending_ids))

        for record_id in pending_ids:
            entry = self._locks.get(self._resolve(record_id))
            if entry is not None and entry.users:
                # An in-flight mutation owns this record and will settle it
                continue
            async with self._record_lock(record_id):
                try:
                    await self._push(owner_id, self._resolve(record_id), "replay", queued=True)
                except ConnectivityError:
                    break
                except SyncError:
                    continue

    # ── Reads ────────────────────────────────────────────────────────

    async def fetch_record(self, record_id: str) -> Record:
        """Return one record, refreshed from the remote store when possible."""
        owner_id = self._require_owner()
        record_id = self._resolve(record_id)
        local = self._find(record_id)
        if local is not None and local.status is RecordStatus.PENDING_DELETE:
            raise EntityNotFoundError("Record", record_id)

        if self._monitor.is_offline or (local is not None and local.status.is_pending):
            if local is None:
                raise EntityNotFoundError("Record", record_id)
            return local.copy()

        try:
            remote = await self._retry.run(
                lambda: self._gateway.fetch_one(record_id, owner_id),
                description=f"fetch_one {record_id}",
            )
        except Exception as exc:
            error = self._classify(exc, "fetch_record", record_id=record_id)
            if local is not None and not isinstance(error, TerminalRemoteError):
                return local.copy()
            if error is exc:
                raise
            raise error from exc

        current = self._find(record_id)
        if current is not None and not current.status.is_pending:
            self._replace(record_id, remote.copy())
            self._notify()
        return remote.copy()

    async def search(self, term: str) -> SearchResult:
        """Search the owner's collection.

        Online the remote store's search is authoritative, since the local
        set cannot be assumed complete. Offline the cached snapshot is
        matched locally and the result is flagged partial.
        """
        owner_id = self._require_owner()
        if not term.strip():
            return SearchResult(self.current_records, DataSource.LOCAL)

        pending = self._pending_matches(term)
        if self._monitor.is_offline:
            return self._search_cached(owner_id, term, pending, DataSource.OFFLINE_CACHE)

        try:
            records = await self._retry.run(
                lambda: self._gateway.search(term, owner_id),
                description="search",
            )
        except Exception as exc:
            error = self._classify(exc, "search", term=term)
            fallback = self._search_cached(owner_id, term, pending, DataSource.CACHE)
            return replace(fallback, error=fallback.error or error)

        return SearchResult(pending + tuple(r.copy() for r in records), DataSource.REMOTE)

    def _pending_matches(self, term: str) -> tuple[Record, ...]:
        if not self._search_include_pending:
            return ()
        return tuple(
            r.copy()
            for r in self._records
            if r.status is RecordStatus.PENDING_CREATE and r.matches(term)
        )

    def _search_cached(
        self,
        owner_id: str,
        term: str,
        pending: tuple[Record, ...],
        source: DataSource,
    ) -> SearchResult:
        entry = self._cache.peek(self.cache_key(owner_id), owner_id)
        if entry is None:
            return SearchResult(
                pending, DataSource.NONE, partial=True,
                error=CacheMiss("No data available offline"),
            )
        matches = tuple(r.copy() for r in entry.data if r.matches(term))
        return SearchResult(pending + matches, source, partial=True)

    async def statistics(self) -> RecordStatistics:
        """Aggregate counts — remote when online, from the cache (partial) otherwise."""
        owner_id = self._require_owner()
        if self._monitor.is_offline:
            return self._cached_statistics(owner_id, DataSource.OFFLINE_CACHE)

        try:
            return await self._retry.run(
                lambda: self._gateway.statistics(owner_id, self._statistics_fields),
                description="statistics",
            )
        except Exception as exc:
            error = self._classify(exc, "statistics")
            stats = self._cached_statistics(owner_id, DataSource.CACHE)
            return replace(stats, error=stats.error or error)

    def _cached_statistics(self, owner_id: str, source: DataSource) -> RecordStatistics:
        entry = self._cache.peek(self.cache_key(owner_id), owner_id)
        if entry is None:
            return RecordStatistics(
                total=0, source=DataSource.NONE, partial=True,
                error=CacheMiss("No data available offline"),
            )

        breakdown: dict[str, dict[str, int]] = {f: {} for f in self._statistics_fields}
        for record in entry.data:
            for field_name in self._statistics_fields:
                value = str(record.payload.get(field_name, "unknown"))
                counts = breakdown[field_name]
                counts[value] = counts.get(value, 0) + 1
        return RecordStatistics(
            total=len(entry.data), breakdown=breakdown, source=source, partial=True,
        )

    # ── Identity ─────────────────────────────────────────────────────

    def _require_owner(self) -> str:
        owner_id = self._session.current_owner_id()
        if not owner_id or not self._session.is_session_valid():
            raise SessionInvalidError("No valid session — sign in to continue")
        if owner_id == self._rejected_owner:
            raise SessionInvalidError(
                f"Remote store rejected the session of {owner_id} — sign in again"
            )

        if self._blocked:
            logger.info("New identity established for owner %s", owner_id)
            self._blocked = False
        if owner_id != self._owner_id:
            if self._owner_id is not None:
                self._cache.invalidate_owner(self._owner_id)
            self._reset_working_set()
            self._owner_id = owner_id
        return owner_id

    def _require_capability(self, allowed: bool, operation: str) -> None:
        if not allowed:
            raise OperationNotPermittedError(f"{operation} is not permitted for this account")

    def _on_session_invalidated(self, owner_id: str | None) -> None:
        owner_id = owner_id or self._owner_id
        if owner_id:
            self._cache.invalidate_owner(owner_id)
        self._reset_working_set()
        self._owner_id = None
        self._blocked = True
        self._rejected_owner = None
        logger.info("Session invalidated for owner %s — store blocked", owner_id)
        self._notify()

    def _reset_working_set(self) -> None:
        self._epoch += 1
        self._records = []
        self._snapshots.clear()
        self._aliases.clear()
        self._locks.clear()
        self._last_error = None

    # ── Working-set helpers ──────────────────────────────────────────

    def _resolve(self, record_id: str) -> str:
        return self._aliases.get(record_id, record_id)

    @asynccontextmanager
    async def _record_lock(self, record_id: str) -> AsyncIterator[None]:
        entry = self._locks.setdefault(self._resolve(record_id), _RecordLock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                # Also drops the temporary-id key of a confirmed create
                for key in [k for k, v in self._locks.items() if v is entry]:
                    del self._locks[key]

    def _index_of(self, record_id: str) -> int | None:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def _find(self, record_id: str) -> Record | None:
        index = self._index_of(record_id)
        return None if index is None else self._records[index]

    def _replace(self, record_id: str, record: Record) -> None:
        index = self._index_of(record_id)
        if index is not None:
            self._records[index] = record

    def _remove(self, record_id: str) -> None:
        index = self._index_of(record_id)
        if index is not None:
            del self._records[index]

    def _confirmed_view(self) -> tuple[Record, ...]:
        """The working set as last confirmed by the server — pending work excluded."""
        view: list[Record] = []
        for record in self._records:
            if record.status is RecordStatus.PENDING_CREATE:
                continue
            if record.status.is_pending:
                snapshot = self._snapshots.get(record.id)
                if snapshot is not None:
                    view.append(snapshot.copy())
                continue
            view.append(replace(record.copy(), status=RecordStatus.CONFIRMED))
        return tuple(view)

    def _refresh_cache(self, owner_id: str) -> None:
        entry = self._cache.set(self.cache_key(owner_id), self._confirmed_view(), owner_id)
        plog.detail("Cache refreshed", key=entry.key, version=entry.version, size=len(entry.data))

    def _classify(self, exc: BaseException, operation: str, **context: Any) -> SyncError:
        """Map a gateway failure onto the sync error taxonomy and log it."""
        if isinstance(exc, SyncError):
            error = exc
        else:
            code = error_code_of(exc)
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            if code.is_terminal:
                error = TerminalRemoteError(message, code)
            else:
                error = TransientRemoteError(
                    message, code, attempts=self._retry.policy.max_attempts
                )
        self._error_log.record(error, operation, **context)
        return error

    def _set_loading(self, value: bool) -> None:
        self._is_loading = value
        self._notify()

    def _set_error(self, error: SyncError | None) -> None:
        self._last_error = error
        self._notify()
