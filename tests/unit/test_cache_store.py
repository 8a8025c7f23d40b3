"""Unit tests for the CacheStore."""

from recordsync.application.services import CacheStore
from recordsync.domain.entities import ConnectivityState


# ── Helpers ──


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_cache(state: ConnectivityState = ConnectivityState.ONLINE):
    clock = FakeClock()
    current = {"state": state}
    cache = CacheStore(
        online_ttl=300,
        offline_ttl=1800,
        connectivity=lambda: current["state"],
        clock=clock,
    )
    return cache, clock, current


# ── Tests ──


def test_get_returns_data_for_owner():
    cache, _, _ = _make_cache()
    cache.set("records:alice", ["a", "b"], "alice")

    assert cache.get("records:alice", "alice") == ["a", "b"]


def test_get_for_other_owner_purges_entry():
    """An entry is never handed to an owner that did not write it."""
    cache, _, _ = _make_cache()
    cache.set("records:alice", ["a"], "alice")

    assert cache.get("records:alice", "bob") is None
    assert cache.stats().size == 0


def test_online_ttl_expires_entry():
    cache, clock, _ = _make_cache()
    cache.set("k", 1, "alice")

    clock.advance(300)
    assert cache.get("k", "alice") == 1

    clock.advance(1)
    assert cache.get("k", "alice") is None
    assert cache.stats().size == 0


def test_offline_ttl_keeps_entry_longer():
    cache, clock, _ = _make_cache(ConnectivityState.OFFLINE)
    cache.set("k", 1, "alice")

    clock.advance(1200)
    assert cache.get("k", "alice") == 1

    clock.advance(601)
    assert cache.get("k", "alice") is None


def test_reconnecting_uses_offline_ttl():
    cache, _, _ = _make_cache()
    assert cache.ttl_for(ConnectivityState.RECONNECTING) == 1800
    assert cache.ttl_for(ConnectivityState.ONLINE) == 300


def test_ttl_follows_connectivity_changes():
    cache, clock, current = _make_cache(ConnectivityState.OFFLINE)
    cache.set("k", 1, "alice")
    clock.advance(600)

    current["state"] = ConnectivityState.ONLINE
    assert cache.get("k", "alice") is None


def test_set_bumps_version():
    cache, _, _ = _make_cache()
    first = cache.set("k", 1, "alice")
    second = cache.set("k", 2, "alice")

    assert second.version == first.version + 1
    assert cache.get("k", "alice") == 2


def test_peek_ignores_ttl_but_checks_owner():
    cache, clock, _ = _make_cache()
    cache.set("k", 1, "alice")
    clock.advance(5000)

    entry = cache.peek("k", "alice")
    assert entry is not None
    assert entry.data == 1
    assert cache.peek("k", "bob") is None
    # peek never purges
    assert cache.stats().size == 1


def test_invalidate_owner_removes_only_that_owner():
    cache, _, _ = _make_cache()
    cache.set("records:alice", 1, "alice")
    cache.set("stats:alice", 2, "alice")
    cache.set("records:bob", 3, "bob")

    removed = cache.invalidate_owner("alice")

    assert removed == 2
    assert cache.stats().keys == ["records:bob"]


def test_invalidate_and_clear():
    cache, _, _ = _make_cache()
    cache.set("a", 1, "alice")
    cache.set("b", 2, "alice")

    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False

    cache.clear()
    assert cache.stats().size == 0


def test_sweep_removes_entries_older_than_max_ttl():
    cache, clock, _ = _make_cache()
    cache.set("old", 1, "alice")
    clock.advance(1000)
    cache.set("new", 2, "alice")
    clock.advance(900)

    removed = cache.sweep()

    assert removed == 1
    assert cache.stats().keys == ["new"]
