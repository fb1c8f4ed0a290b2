"""Session persistence for the lifetime of one browser tab.

Responsibilities:
    - Session id and optional legacy token storage
    - Lazy 30-minute expiry on read
    - Refresh after every successful exchange

Backed by a small key/value capability so the same store runs against an
in-memory dict in tests and NiceGUI's per-tab storage in the UI.
"""

from wuffchat.session.store import (
    SESSION_TIMEOUT,
    MappingStorage,
    SessionRecord,
    SessionStorage,
    SessionStore,
)

__all__ = [
    "SESSION_TIMEOUT",
    "MappingStorage",
    "SessionRecord",
    "SessionStorage",
    "SessionStore",
]
