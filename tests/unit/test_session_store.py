"""Unit tests for the tab-scoped session store."""

import pytest_check as check

from tests.fakes import FakeClock
from wuffchat.session import SESSION_TIMEOUT, MappingStorage, SessionStore
from wuffchat.session.store import SESSION_ID_KEY, SESSION_TOKEN_KEY, TIMESTAMP_KEY


class BrokenStorage:
    """Storage whose every operation fails."""

    def get_item(self, key: str) -> None:
        raise OSError("storage unavailable")

    def set_item(self, key: str, value: object) -> None:
        raise OSError("storage unavailable")

    def remove_item(self, key: str) -> None:
        raise OSError("storage unavailable")


class TestSet:
    """Tests for storing a session."""

    def test_round_trip_without_token(self, store: SessionStore) -> None:
        """A missing token is not treated as an invalid session."""
        assert store.set("abc", None) is True

        record = store.get()

        assert record is not None
        check.equal(record.session_id, "abc")
        check.is_none(record.session_token)

    def test_round_trip_with_token(self, store: SessionStore) -> None:
        store.set("abc", "tok")

        record = store.get()

        assert record is not None
        check.equal(record.session_token, "tok")

    def test_rejects_empty_session_id(self, store: SessionStore, storage: MappingStorage) -> None:
        """Falsy ids are never written."""
        check.is_false(store.set(""))
        check.is_false(store.set(None))
        check.is_none(storage.get_item(SESSION_ID_KEY))
        check.is_none(store.get())

    def test_new_session_drops_stale_token(self, store: SessionStore) -> None:
        """Replacing a legacy session with a tokenless one removes the old token."""
        store.set("old", "old-token")
        store.set("new")

        record = store.get()

        assert record is not None
        check.equal(record.session_id, "new")
        check.is_none(record.session_token)

    def test_reports_storage_failure(self) -> None:
        store = SessionStore(BrokenStorage())

        assert store.set("abc") is False


class TestExpiry:
    """Tests for lazy expiry on read."""

    def test_valid_just_before_timeout(self, store: SessionStore, clock: FakeClock) -> None:
        store.set("abc")
        clock.advance(SESSION_TIMEOUT - 0.001)

        assert store.get() is not None

    def test_expired_at_timeout(
        self, store: SessionStore, storage: MappingStorage, clock: FakeClock
    ) -> None:
        """Reading an expired session returns None and purges every key."""
        store.set("abc", "tok")
        clock.advance(SESSION_TIMEOUT)

        assert store.get() is None
        check.is_none(storage.get_item(SESSION_ID_KEY))
        check.is_none(storage.get_item(SESSION_TOKEN_KEY))
        check.is_none(storage.get_item(TIMESTAMP_KEY))

    def test_expiry_is_idempotent(self, store: SessionStore, clock: FakeClock) -> None:
        store.set("abc")
        clock.advance(SESSION_TIMEOUT + 60)

        check.is_none(store.get())
        check.is_none(store.get())
        check.is_false(store.has_valid())

    def test_invalid_timestamp_is_treated_as_expired(
        self, store: SessionStore, storage: MappingStorage
    ) -> None:
        storage.set_item(SESSION_ID_KEY, "abc")
        storage.set_item(TIMESTAMP_KEY, "not-a-number")

        check.is_none(store.get())
        check.is_none(storage.get_item(SESSION_ID_KEY))

    def test_custom_timeout(self, storage: MappingStorage, clock: FakeClock) -> None:
        store = SessionStore(storage, timeout=10, clock=clock)
        store.set("abc")
        clock.advance(10)

        assert store.get() is None


class TestRefresh:
    """Tests for extending a session."""

    def test_refresh_extends_lifetime(self, store: SessionStore, clock: FakeClock) -> None:
        """A refreshed session stays valid a full timeout after the refresh."""
        store.set("abc", "tok")
        clock.advance(SESSION_TIMEOUT - 1)

        assert store.refresh() is True

        clock.advance(SESSION_TIMEOUT - 1)
        record = store.get()
        assert record is not None
        check.equal(record.session_id, "abc")
        check.equal(record.session_token, "tok")

    def test_refresh_without_session_fails(self, store: SessionStore) -> None:
        assert store.refresh() is False

    def test_refresh_of_expired_session_fails(
        self, store: SessionStore, storage: MappingStorage, clock: FakeClock
    ) -> None:
        """Refreshing cannot resurrect an expired session."""
        store.set("abc")
        clock.advance(SESSION_TIMEOUT)

        check.is_false(store.refresh())
        check.is_none(storage.get_item(TIMESTAMP_KEY))


class TestClear:
    """Tests for removing a session."""

    def test_clear_removes_everything(self, store: SessionStore) -> None:
        store.set("abc", "tok")

        check.is_true(store.clear())
        check.is_false(store.has_valid())

    def test_clear_is_idempotent(self, store: SessionStore) -> None:
        check.is_true(store.clear())
        check.is_true(store.clear())

    def test_clear_survives_storage_failure(self) -> None:
        assert SessionStore(BrokenStorage()).clear() is True

    def test_get_survives_storage_failure(self) -> None:
        assert SessionStore(BrokenStorage()).get() is None


def test_default_store_is_in_memory() -> None:
    """Without explicit storage the store keeps the session in memory."""
    store = SessionStore()
    store.set("abc")

    assert store.has_valid()
