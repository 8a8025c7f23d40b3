"""Unit tests for the StaticSessionProvider."""

from recordsync.infrastructure.session import StaticSessionProvider


def test_session_without_owner_is_invalid():
    session = StaticSessionProvider()

    assert session.current_owner_id() is None
    assert session.is_session_valid() is False


def test_invalidate_notifies_with_previous_owner():
    session = StaticSessionProvider("alice")
    seen: list[str | None] = []
    session.subscribe_invalidated(seen.append)

    session.invalidate()

    assert seen == ["alice"]
    assert session.is_session_valid() is False

    session.establish("bob")
    assert session.current_owner_id() == "bob"
    assert session.is_session_valid() is True


def test_unsubscribe():
    session = StaticSessionProvider("alice")
    seen: list[str | None] = []
    unsubscribe = session.subscribe_invalidated(seen.append)

    unsubscribe()
    session.invalidate()

    assert seen == []
