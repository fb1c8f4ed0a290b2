"""Wire models for the remote conversation API.

The backend speaks two protocol variants. The legacy variant (v2) returns a
list of ``messages`` plus an optional ``session_token`` and ``done`` flag; the
current variant (v3) returns a single ``message`` with ``message_type`` and
``metadata``. Both are parsed here once and normalized into ``Reply``.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from wuffchat.models.messages import Sender, payload_text


class ErrorCode(str, Enum):
    """Failure codes surfaced by the transport client.

    Non-2xx statuses without a dedicated code are reported as
    ``API_ERROR_<status>``.
    """

    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    NO_SESSION = "NO_SESSION"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ReplyFragment(BaseModel):
    """One unit of bot output within a turn.

    Attributes:
        text: Display text.
        sender: Role used for rendering.
        metadata: Optional per-fragment payload.
    """

    text: str = ""
    sender: str = Sender.AGENT.value
    metadata: dict[str, Any] | None = None


class Reply(BaseModel):
    """Canonical bot reply, independent of the protocol variant.

    Attributes:
        session_id: Session id returned by the backend, if any.
        session_token: Legacy session token, if any.
        fragments: Reply fragments in display order.
        message_type: Sender role of the reply.
        metadata: Reply metadata (phase, action type, confidence...).
        done: Legacy flag marking the end of the conversation.
        state: Legacy conversation phase.
    """

    session_id: str | None = None
    session_token: str | None = None
    fragments: list[ReplyFragment] = Field(default_factory=list)
    message_type: str = Sender.AGENT.value
    metadata: dict[str, Any] = Field(default_factory=dict)
    done: bool = False
    state: str | None = None

    @property
    def message(self) -> str:
        """Text of the first fragment, or an empty string."""
        return self.fragments[0].text if self.fragments else ""

    @property
    def phase(self) -> str | None:
        """Conversation phase reported by either protocol variant."""
        return self.metadata.get("phase") or self.state


def _none_to_empty(value: Any) -> Any:
    return {} if value is None else value


class LegacyResponse(BaseModel):
    """Response shape of the legacy (v2) protocol."""

    session_id: str | None = None
    session_token: str | None = None
    messages: list[str | dict[str, Any]] = Field(default_factory=list)
    done: bool = False
    state: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Treat an explicit null as empty metadata."""
        return _none_to_empty(v)

    def to_reply(self) -> Reply:
        fragments = []
        for item in self.messages:
            sender = Sender.AGENT.value
            metadata = None
            if isinstance(item, dict):
                sender = item.get("sender") or sender
                metadata = item.get("metadata")
            fragments.append(
                ReplyFragment(text=payload_text(item), sender=sender, metadata=metadata)
            )
        return Reply(
            session_id=self.session_id,
            session_token=self.session_token,
            fragments=fragments,
            metadata=self.metadata,
            done=self.done,
            state=self.state,
        )


class CurrentResponse(BaseModel):
    """Response shape of the current (v3) protocol.

    Older deployments answer with ``response`` instead of ``message``.
    """

    session_id: str | None = None
    message: str | None = Field(
        default=None, validation_alias=AliasChoices("message", "response")
    )
    message_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    state: str | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Treat an explicit null as empty metadata."""
        return _none_to_empty(v)

    def to_reply(self) -> Reply:
        message_type = self.message_type or Sender.AGENT.value
        fragments = []
        if self.message is not None:
            fragments.append(
                ReplyFragment(text=self.message, sender=message_type, metadata=self.metadata)
            )
        return Reply(
            session_id=self.session_id,
            fragments=fragments,
            message_type=message_type,
            metadata=self.metadata,
            state=self.state,
        )


def parse_backend_response(payload: Any) -> Reply:
    """Validate a decoded response body and normalize it into a Reply.

    Args:
        payload: Decoded JSON body.

    Returns:
        The canonical Reply.

    Raises:
        pydantic.ValidationError: If the body matches neither variant.
    """
    if isinstance(payload, Mapping) and "messages" in payload:
        return LegacyResponse.model_validate(payload).to_reply()
    return CurrentResponse.model_validate(payload).to_reply()


class ApiResult(BaseModel):
    """Uniform result of every transport client operation.

    Attributes:
        success: Whether the operation succeeded.
        reply: Normalized reply for start/message operations.
        data: Raw payload for passthrough operations (session info, health).
        error: Error code on failure.
        fallback_message: Display-ready text for the transcript on failure.
        requires_reload: Set when the session is gone and the page must reload.
    """

    success: bool
    reply: Reply | None = None
    data: dict[str, Any] | None = None
    error: str | None = None
    fallback_message: str | None = None
    requires_reload: bool = False

    @classmethod
    def ok(
        cls, reply: Reply | None = None, data: dict[str, Any] | None = None
    ) -> "ApiResult":
        return cls(success=True, reply=reply, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        fallback_message: str | None = None,
        requires_reload: bool = False,
    ) -> "ApiResult":
        if isinstance(error, Enum):
            error = error.value
        return cls(
            success=False,
            error=error,
            fallback_message=fallback_message,
            requires_reload=requires_reload,
        )
