"""Unit tests for chat page rendering helpers and client wiring."""

import asyncio
from unittest.mock import MagicMock

import pytest_check as check

from tests.fakes import StubApiClient, expired_result
from wuffchat.chat import ChatController
from wuffchat.models import ChatState
from wuffchat.session import SessionStore
from wuffchat.ui.chat_page import (
    bind_lifetime,
    bubble_class,
    metadata_lines,
    page_reloader,
    sender_label,
)


class TestBubbleStyle:
    """Tests for sender-dependent styling."""

    def test_bubble_class_by_sender(self) -> None:
        check.equal(bubble_class("user"), "message-user")
        check.equal(bubble_class("USER"), "message-user")
        check.equal(bubble_class("error"), "message-error")
        check.equal(bubble_class("dog"), "message-agent")
        check.equal(bubble_class(""), "message-agent")

    def test_sender_label(self) -> None:
        check.equal(sender_label("system"), "🔧")
        check.equal(sender_label("Error"), "⚠️")
        check.equal(sender_label("somebody"), "❓")


class TestMetadataLines:
    """Tests for the metadata debug panel."""

    def test_known_fields(self) -> None:
        lines = metadata_lines({"action_type": "ask", "phase": "diagnosis", "confidence": 0.87})

        assert lines == ["Action: ask", "Phase: diagnosis", "Confidence: 87%"]

    def test_empty_metadata(self) -> None:
        check.equal(metadata_lines(None), [])
        check.equal(metadata_lines({"other": 1}), [])


class TestClientWiring:
    """Tests for binding a controller to one browser tab."""

    async def test_expiry_reloads_the_captured_tab(self, store: SessionStore) -> None:
        """The reload timer runs in its own task and still reaches the tab."""
        page_client = MagicMock()
        stub = StubApiClient(store)
        controller = ChatController(
            stub, store=store, on_reload=page_reloader(page_client), reload_delay=0.01
        )
        await controller.initialize()
        stub.send_results.append(expired_result())

        await controller.send_message("Hallo")
        check.equal(controller.state, ChatState.SESSION_EXPIRED)
        await asyncio.sleep(0.05)

        page_client.run_javascript.assert_called_once_with("history.go(0)")

    async def test_controller_survives_disconnect(self, store: SessionStore) -> None:
        """Only deleting the client closes the controller."""
        page_client = MagicMock()
        controller = ChatController(StubApiClient(store), store=store)

        bind_lifetime(page_client, controller)

        page_client.on_delete.assert_called_once_with(controller.aclose)
        page_client.on_disconnect.assert_not_called()
