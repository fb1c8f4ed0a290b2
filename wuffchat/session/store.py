"""Tab-scoped session store with lazy expiry.

Keeps the backend session id, the optional legacy session token and the time
of the last successful exchange. There is no background timer: an expired
record is purged the next time it is read.
"""

import logging
import time
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

SESSION_TIMEOUT = 30 * 60  # seconds

SESSION_ID_KEY = "wuffchat_session_id"
SESSION_TOKEN_KEY = "wuffchat_session_token"
TIMESTAMP_KEY = "wuffchat_session_timestamp"

_ALL_KEYS = (SESSION_ID_KEY, SESSION_TOKEN_KEY, TIMESTAMP_KEY)


class SessionRecord(BaseModel):
    """A stored, still-valid session.

    Attributes:
        session_id: Backend session identifier.
        session_token: Legacy protocol token, None for the current protocol.
        timestamp: Creation or last refresh time (epoch seconds).
    """

    session_id: str
    session_token: str | None = None
    timestamp: float


class SessionStorage(Protocol):
    """Key/value capability the store is written against."""

    def get_item(self, key: str) -> Any | None: ...

    def set_item(self, key: str, value: Any) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MappingStorage:
    """SessionStorage over any mutable mapping.

    A plain dict keeps the session in memory; NiceGUI's ``app.storage.tab``
    scopes it to one browser tab.
    """

    def __init__(self, mapping: MutableMapping[str, Any] | None = None) -> None:
        self._mapping = mapping if mapping is not None else {}

    def get_item(self, key: str) -> Any | None:
        return self._mapping.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self._mapping[key] = value

    def remove_item(self, key: str) -> None:
        self._mapping.pop(key, None)


class SessionStore:
    """Session identity and freshness for one conversation.

    Storage failures are logged and reported through return values;
    no method raises.
    """

    def __init__(
        self,
        storage: SessionStorage | None = None,
        timeout: float = SESSION_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            storage: Backing key/value storage. In-memory if not provided.
            timeout: Session lifetime in seconds since the last refresh.
            clock: Time source returning epoch seconds.
        """
        self._storage = storage if storage is not None else MappingStorage()
        self._timeout = timeout
        self._clock = clock

    def set(self, session_id: str | None, session_token: str | None = None) -> bool:
        """Store a new session.

        Args:
            session_id: Backend session id. Falsy ids are rejected.
            session_token: Legacy token; a stale token is removed when omitted.

        Returns:
            True if the session was stored.
        """
        if not session_id:
            logger.warning("Rejected empty session id")
            return False

        try:
            self._storage.set_item(SESSION_ID_KEY, session_id)
            if session_token:
                self._storage.set_item(SESSION_TOKEN_KEY, session_token)
            else:
                self._storage.remove_item(SESSION_TOKEN_KEY)
            self._storage.set_item(TIMESTAMP_KEY, self._clock())
        except Exception as e:
            logger.error(f"Failed to store session: {e}")
            return False
        return True

    def get(self) -> SessionRecord | None:
        """Return the stored session, or None if absent or expired.

        An expired record is cleared as a side effect.
        """
        try:
            session_id = self._storage.get_item(SESSION_ID_KEY)
            session_token = self._storage.get_item(SESSION_TOKEN_KEY)
            timestamp = self._storage.get_item(TIMESTAMP_KEY)
        except Exception as e:
            logger.error(f"Failed to read session: {e}")
            return None

        if not session_id or timestamp is None:
            return None

        try:
            stored_at = float(timestamp)
        except (TypeError, ValueError):
            logger.warning(f"Discarding session with invalid timestamp: {timestamp!r}")
            self.clear()
            return None

        if self._clock() - stored_at >= self._timeout:
            logger.info("Stored session expired")
            self.clear()
            return None

        return SessionRecord(
            session_id=session_id,
            session_token=session_token or None,
            timestamp=stored_at,
        )

    def refresh(self) -> bool:
        """Extend a valid session by rewriting its timestamp.

        Returns:
            True if a valid session was refreshed.
        """
        if self.get() is None:
            return False
        try:
            self._storage.set_item(TIMESTAMP_KEY, self._clock())
        except Exception as e:
            logger.error(f"Failed to refresh session: {e}")
            return False
        return True

    def clear(self) -> bool:
        """Remove all session data. Idempotent."""
        for key in _ALL_KEYS:
            try:
                self._storage.remove_item(key)
            except Exception as e:
                logger.error(f"Failed to remove {key}: {e}")
        return True

    def has_valid(self) -> bool:
        return self.get() is not None
