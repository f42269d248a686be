"""Anonymous visitor identity: generation and persistence."""

import json
import logging
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Protocol

DEFAULT_COOKIE_NAME = "_profilerelay_anon_id"
DEFAULT_EXPIRE_DAYS = 365

logger = logging.getLogger(__name__)


def generate_anonymous_id() -> str:
    """Return a new random UUID-v4 string (version 4, RFC 4122 variant)."""
    return str(uuid.uuid4())


class IdentityStore(Protocol):
    """Persistent name/value storage with expiration, like a browser cookie jar."""

    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str, expires_at: datetime) -> None: ...


class MemoryIdentityStore:
    """Process-local store; values are lost when the process exits."""

    def __init__(self) -> None:
        self._values: dict[str, tuple[str, datetime]] = {}

    def get(self, name: str) -> str | None:
        entry = self._values.get(name)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= datetime.now(UTC):
            del self._values[name]
            return None
        return value

    def set(self, name: str, value: str, expires_at: datetime) -> None:
        self._values[name] = (value, expires_at)


class FileIdentityStore:
    """
    JSON file store.

    The file maps each name to ``{"value": ..., "expires_at": <iso8601>}``.
    Read and write failures surface as ``OSError``.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError
            logger.warning("Ignoring unreadable identity file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, name: str) -> str | None:
        entry = self._load().get(name)
        if not isinstance(entry, dict):
            return None
        value = entry.get("value")
        if not isinstance(value, str) or not value:
            return None
        try:
            expires_at = datetime.fromisoformat(entry["expires_at"])
        except (KeyError, TypeError, ValueError):
            return None
        if expires_at.tzinfo is None or expires_at <= datetime.now(UTC):
            return None
        return value

    def set(self, name: str, value: str, expires_at: datetime) -> None:
        data = self._load()
        data[name] = {"value": value, "expires_at": expires_at.isoformat()}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class AnonymousIdentityProvider:
    """
    Produces and persists a stable per-visitor identifier.

    The same token is returned on every call until :meth:`reset`. If the
    backing store becomes unavailable the provider falls back to an
    in-memory store for the rest of the process instead of raising.

    Usage:
        provider = AnonymousIdentityProvider(FileIdentityStore("~/.myapp/id.json"))
        anonymous_id = provider.get_or_create()
    """

    def __init__(
        self,
        store: IdentityStore | None = None,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        expire_days: int = DEFAULT_EXPIRE_DAYS,
    ) -> None:
        self.store: IdentityStore = store if store is not None else MemoryIdentityStore()
        self.cookie_name = cookie_name
        self.expire_days = expire_days
        self._current: str | None = None

    def _expires_at(self) -> datetime:
        return datetime.now(UTC) + timedelta(days=self.expire_days)

    def _degrade(self, exc: OSError) -> None:
        logger.warning(
            "Identity store unavailable (%s); keeping anonymous id in memory only",
            exc,
        )
        self.store = MemoryIdentityStore()
        if self._current:
            self.store.set(self.cookie_name, self._current, self._expires_at())

    def _persist(self, value: str) -> None:
        try:
            self.store.set(self.cookie_name, value, self._expires_at())
        except OSError as exc:
            self._degrade(exc)
            self.store.set(self.cookie_name, value, self._expires_at())

    def get_or_create(self) -> str:
        """Return the persisted anonymous id, creating and persisting one if absent."""
        try:
            value = self.store.get(self.cookie_name)
        except OSError as exc:
            self._degrade(exc)
            value = self._current
        if value:
            self._current = value
            return value
        return self.reset()

    def reset(self) -> str:
        """Replace the anonymous id with a fresh one and persist it."""
        value = generate_anonymous_id()
        while value == self._current:
            value = generate_anonymous_id()
        self._persist(value)
        self._current = value
        return value
