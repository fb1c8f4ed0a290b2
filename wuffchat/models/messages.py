"""Transcript message model and conversation states."""

import time
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Sender(str, Enum):
    """Well-known transcript roles.

    The set is open: backends may send other message types, which are
    rendered like agent messages.
    """

    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"
    ERROR = "error"
    TYPING = "typing"


class ChatState(str, Enum):
    """States of the conversation state machine."""

    INITIALIZING = "initializing"
    READY = "ready"
    SENDING = "sending"
    ERROR = "error"
    SESSION_EXPIRED = "session_expired"


_last_message_id = 0


def next_message_id() -> int:
    """Return a millisecond timestamp id, strictly increasing per process."""
    global _last_message_id
    candidate = time.time_ns() // 1_000_000
    if candidate <= _last_message_id:
        candidate = _last_message_id + 1
    _last_message_id = candidate
    return candidate


def payload_text(payload: Any) -> str:
    """Extract display text from a plain string or a structured payload.

    Mappings are read from their ``text`` field, then ``content``.
    Anything else yields an empty string.
    """
    if isinstance(payload, str):
        return payload
    if isinstance(payload, Mapping):
        text = payload.get("text") or payload.get("content") or ""
        return text if isinstance(text, str) else str(text)
    return ""


class ChatMessage(BaseModel):
    """A single entry in the visible transcript.

    Attributes:
        id: Locally unique id preserving display order.
        text: Display string.
        sender: Role of the author (see Sender).
        timestamp: Local creation time.
        metadata: Opaque backend payload kept for the debug panel.
    """

    id: int = Field(default_factory=next_message_id)
    text: str = ""
    sender: str = Sender.AGENT.value
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        sender: str = Sender.AGENT.value,
        metadata: dict[str, Any] | None = None,
    ) -> "ChatMessage":
        """Build a message from a string or a ``text``/``content`` mapping."""
        return cls(text=payload_text(payload), sender=sender, metadata=metadata)
