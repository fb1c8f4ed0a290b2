"""Pydantic models shared by the conversation client.

Models:
    - ChatMessage: One entry in the visible transcript
    - Sender: Well-known transcript roles
    - ChatState: Conversation state machine states
    - Reply / ReplyFragment: Canonical bot reply after normalization
    - LegacyResponse / CurrentResponse: The two backend response shapes
    - ApiResult: Uniform success/failure result of the transport client
    - ErrorCode: Failure codes surfaced by the transport client
"""

from wuffchat.models.messages import ChatMessage, ChatState, Sender, payload_text
from wuffchat.models.schemas import (
    ApiResult,
    CurrentResponse,
    ErrorCode,
    LegacyResponse,
    Reply,
    ReplyFragment,
    parse_backend_response,
)

__all__ = [
    "ApiResult",
    "ChatMessage",
    "ChatState",
    "CurrentResponse",
    "ErrorCode",
    "LegacyResponse",
    "Reply",
    "ReplyFragment",
    "Sender",
    "parse_backend_response",
    "payload_text",
]
