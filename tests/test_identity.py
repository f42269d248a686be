"""Tests for anonymous identity generation and persistence."""

import json
import re
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from profilerelay.tracker import (
    AnonymousIdentityProvider,
    FileIdentityStore,
    MemoryIdentityStore,
    generate_anonymous_id,
)
from profilerelay.tracker.identity import DEFAULT_COOKIE_NAME

UUID4_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


class BrokenStore:
    """Store whose medium is unavailable."""

    def get(self, name: str) -> str | None:
        raise PermissionError("read-only profile")

    def set(self, name: str, value: str, expires_at: datetime) -> None:
        raise PermissionError("read-only profile")


class TestGenerateAnonymousId:
    def test_uuid4_layout(self):
        """Version nibble is 4 and variant nibble is one of 8, 9, a, b."""
        for _ in range(50):
            assert UUID4_PATTERN.match(generate_anonymous_id())

    def test_unique(self):
        assert len({generate_anonymous_id() for _ in range(100)}) == 100


class TestAnonymousIdentityProvider:
    def test_get_or_create_is_stable(self):
        """GIVEN no reset WHEN called twice SHOULD return the same token."""
        provider = AnonymousIdentityProvider()
        assert provider.get_or_create() == provider.get_or_create()

    def test_get_or_create_persists(self):
        store = MemoryIdentityStore()
        anonymous_id = AnonymousIdentityProvider(store).get_or_create()
        assert store.get(DEFAULT_COOKIE_NAME) == anonymous_id

    def test_reuses_persisted_token(self):
        """A second provider over the same store sees the same visitor."""
        store = MemoryIdentityStore()
        first = AnonymousIdentityProvider(store).get_or_create()
        assert AnonymousIdentityProvider(store).get_or_create() == first

    def test_reset_replaces_token(self):
        provider = AnonymousIdentityProvider()
        before = provider.get_or_create()

        after = provider.reset()

        assert after != before
        assert provider.get_or_create() == after
        assert provider.store.get(DEFAULT_COOKIE_NAME) == after

    def test_expiration_horizon(self):
        store = MemoryIdentityStore()
        provider = AnonymousIdentityProvider(store, expire_days=30)
        provider.get_or_create()
        _, expires_at = store._values[DEFAULT_COOKIE_NAME]
        assert timedelta(days=29) < expires_at - datetime.now(UTC) <= timedelta(days=30)

    def test_expired_token_replaced(self):
        store = MemoryIdentityStore()
        store.set(DEFAULT_COOKIE_NAME, "stale", datetime.now(UTC) - timedelta(seconds=1))
        anonymous_id = AnonymousIdentityProvider(store).get_or_create()
        assert anonymous_id != "stale"
        assert UUID4_PATTERN.match(anonymous_id)

    def test_unavailable_store_degrades_to_memory(self, caplog):
        """GIVEN a failing store SHOULD keep working in memory and log a warning."""
        provider = AnonymousIdentityProvider(BrokenStore())

        with caplog.at_level("WARNING"):
            first = provider.get_or_create()

        assert UUID4_PATTERN.match(first)
        assert provider.get_or_create() == first
        assert isinstance(provider.store, MemoryIdentityStore)
        assert "in memory only" in caplog.text

    def test_reset_on_unavailable_store(self):
        provider = AnonymousIdentityProvider(BrokenStore())
        first = provider.reset()
        second = provider.reset()
        assert first != second
        assert provider.get_or_create() == second


class TestFileIdentityStore:
    def test_round_trip_across_instances(self, tmp_path: Path):
        path = tmp_path / "identity.json"
        first = AnonymousIdentityProvider(FileIdentityStore(path)).get_or_create()
        assert AnonymousIdentityProvider(FileIdentityStore(path)).get_or_create() == first

        stored = json.loads(path.read_text())
        assert stored[DEFAULT_COOKIE_NAME]["value"] == first

    def test_missing_file(self, tmp_path: Path):
        assert FileIdentityStore(tmp_path / "absent.json").get(DEFAULT_COOKIE_NAME) is None

    def test_corrupt_file_treated_as_empty(self, tmp_path: Path):
        path = tmp_path / "identity.json"
        path.write_text("{not json")
        assert FileIdentityStore(path).get(DEFAULT_COOKIE_NAME) is None

    def test_undecodable_file_treated_as_empty(self, tmp_path: Path):
        path = tmp_path / "identity.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert FileIdentityStore(path).get(DEFAULT_COOKIE_NAME) is None

    def test_undecodable_file_does_not_break_provider(self, tmp_path: Path):
        """GIVEN a file of invalid UTF-8 SHOULD issue and persist a fresh id."""
        path = tmp_path / "identity.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        anonymous_id = AnonymousIdentityProvider(FileIdentityStore(path)).get_or_create()
        assert UUID4_PATTERN.match(anonymous_id)
        assert FileIdentityStore(path).get(DEFAULT_COOKIE_NAME) == anonymous_id

    def test_naive_expiry_treated_as_absent(self, tmp_path: Path):
        path = tmp_path / "identity.json"
        path.write_text(
            json.dumps({DEFAULT_COOKIE_NAME: {"value": "abc", "expires_at": "2099-01-01T00:00:00"}})
        )
        assert FileIdentityStore(path).get(DEFAULT_COOKIE_NAME) is None
        assert AnonymousIdentityProvider(FileIdentityStore(path)).get_or_create() != "abc"

    def test_non_string_value_treated_as_absent(self, tmp_path: Path):
        path = tmp_path / "identity.json"
        expires_at = (datetime.now(UTC) + timedelta(days=1)).isoformat()
        path.write_text(json.dumps({DEFAULT_COOKIE_NAME: {"value": 42, "expires_at": expires_at}}))
        assert FileIdentityStore(path).get(DEFAULT_COOKIE_NAME) is None

    def test_expired_entry(self, tmp_path: Path):
        store = FileIdentityStore(tmp_path / "identity.json")
        store.set(DEFAULT_COOKIE_NAME, "old", datetime.now(UTC) - timedelta(days=1))
        assert store.get(DEFAULT_COOKIE_NAME) is None

    def test_keeps_other_names(self, tmp_path: Path):
        store = FileIdentityStore(tmp_path / "identity.json")
        expires_at = datetime.now(UTC) + timedelta(days=1)
        store.set("a", "1", expires_at)
        store.set("b", "2", expires_at)
        assert (store.get("a"), store.get("b")) == ("1", "2")

    def test_unwritable_path_raises_oserror(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = FileIdentityStore(blocker / "identity.json")
        with pytest.raises(OSError):
            store.set("a", "1", datetime.now(UTC) + timedelta(days=1))
