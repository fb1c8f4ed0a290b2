"""Conversation orchestration on top of the transport client.

Responsibilities:
    - Session initialization (at most once per mount)
    - Message submission and reply ingestion
    - Paced playback of multi-fragment replies
    - Error recovery and session expiry handling

The controller is the sole owner of the transcript; the UI only reads it.
"""

from wuffchat.chat.controller import ChatController
from wuffchat.chat.sequencer import ReplySequencer

__all__ = ["ChatController", "ReplySequencer"]
