"""Conversation state machine.

Owns the transcript and drives one conversation through its states:

    initializing -> ready       greeting received
    initializing -> error       start failed (retry via reset)
    ready/error  -> sending     message accepted
    sending      -> ready       reply played back
    sending      -> error       send failed, conversation stays usable
    sending      -> session_expired
                                backend no longer knows the session;
                                a page reload fires after RELOAD_DELAY
    any          -> initializing
                                explicit reset

All background work (network calls, reply playback, the reload timer) runs
in tasks owned by the controller and is cancelled on reset. Results that
arrive for a superseded generation are dropped.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from typing import Any, TypeVar

from wuffchat.chat.sequencer import ReplySequencer
from wuffchat.client import ApiClient
from wuffchat.models import ChatMessage, ChatState, ErrorCode, ReplyFragment, Sender
from wuffchat.session import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

RELOAD_DELAY = 2.0  # seconds

SESSION_EXPIRED_NOTICE = "Deine Sitzung ist abgelaufen. Die Seite wird neu geladen..."
GENERIC_ERROR_MESSAGE = "Ein Fehler ist aufgetreten."

_SENDABLE_STATES = (ChatState.READY, ChatState.ERROR)


class ChatController:
    """State machine for one mounted chat conversation."""

    def __init__(
        self,
        client: ApiClient,
        store: SessionStore | None = None,
        sequencer: ReplySequencer | None = None,
        on_change: Callable[[], None] | None = None,
        on_reload: Callable[[], None] | None = None,
        reload_delay: float = RELOAD_DELAY,
    ) -> None:
        """Initialize the controller.

        Args:
            client: Transport client; the controller closes it in aclose().
            store: Session store. Defaults to the client's store.
            sequencer: Reply sequencer. Defaults to standard pacing.
            on_change: Called after every observable change.
            on_reload: Called once the post-expiry reload delay elapsed.
            reload_delay: Seconds between the expiry notice and the reload.
        """
        self._client = client
        self._store = store if store is not None else client.store
        self._sequencer = sequencer or ReplySequencer()
        self._on_change = on_change
        self._on_reload = on_reload
        self._reload_delay = reload_delay

        self._state = ChatState.INITIALIZING
        self._messages: list[ChatMessage] = []
        self._session_id: str | None = None
        self._error: str | None = None
        self._metadata: dict[str, Any] = {}
        self._typing = False

        self._initializing = False
        self._initialized = False
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._reload_task: asyncio.Task | None = None

    # === Read-only projections ===

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    @property
    def is_typing(self) -> bool:
        return self._typing

    @property
    def is_ready(self) -> bool:
        return self._state == ChatState.READY

    @property
    def is_loading(self) -> bool:
        return self._state in (ChatState.INITIALIZING, ChatState.SENDING)

    @property
    def has_error(self) -> bool:
        return self._state == ChatState.ERROR

    @property
    def reload_pending(self) -> bool:
        return self._reload_task is not None and not self._reload_task.done()

    # === Internal helpers ===

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _set_state(self, state: ChatState) -> None:
        if state != self._state:
            logger.debug(f"Chat state {self._state.value} -> {state.value}")
        self._state = state
        self._notify()

    def _append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        self._notify()

    def _set_typing(self, typing: bool) -> None:
        self._typing = typing
        self._notify()

    def _spawn(self, coro: Coroutine[Any, Any, T]) -> "asyncio.Task[T]":
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _await_owned(self, coro: Coroutine[Any, Any, T]) -> T | None:
        """Run a coroutine as an owned task; None if reset cancelled it."""
        task = self._spawn(coro)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task.cancelled():
            return None
        return task.result()

    async def _cancel_tasks(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._reload_task = None

    async def _play(self, fragments: Sequence[ReplyFragment], generation: int) -> bool:
        """Play reply fragments; False if the conversation was reset meanwhile."""
        if not fragments:
            return True

        def on_fragment(fragment: ReplyFragment) -> None:
            self._typing = False
            self._append(
                ChatMessage(
                    text=fragment.text, sender=fragment.sender, metadata=fragment.metadata
                )
            )

        delivered = await self._await_owned(
            self._sequencer.play(
                fragments,
                on_fragment,
                on_typing=self._set_typing,
                is_current=lambda: generation == self._generation,
            )
        )
        return delivered is not None and generation == self._generation

    def _schedule_reload(self) -> None:
        async def reload_later() -> None:
            await asyncio.sleep(self._reload_delay)
            logger.info("Reloading after session expiry")
            if self._on_reload is None:
                return
            try:
                self._on_reload()
            except Exception as e:
                logger.exception(f"Page reload failed: {e}")

        self._reload_task = self._spawn(reload_later())

    # === Actions ===

    async def initialize(self) -> None:
        """Start (or resume) the conversation once per mount.

        Duplicate triggers while a start is running or after it finished are
        ignored until reset() releases the latch.
        """
        if self._initializing or self._initialized:
            logger.warning("Chat already initializing or initialized, ignoring duplicate trigger")
            return

        self._initializing = True
        generation = self._generation
        self._error = None
        self._typing = True
        self._set_state(ChatState.INITIALIZING)

        record = self._store.get()
        resume_id = record.session_id if record is not None else None
        result = await self._await_owned(self._client.start_conversation(resume_id))
        if result is None or generation != self._generation:
            return

        if result.error == ErrorCode.DUPLICATE_REQUEST.value:
            logger.warning("Another conversation start is in flight, ignoring")
            self._initializing = False
            self._set_typing(False)
            return

        self._typing = False
        if not result.success:
            self._initializing = False
            self._initialized = True
            self._error = result.error
            self._messages = [
                ChatMessage(
                    text=result.fallback_message or GENERIC_ERROR_MESSAGE,
                    sender=Sender.ERROR.value,
                )
            ]
            self._set_state(ChatState.ERROR)
            return

        reply = result.reply
        self._session_id = reply.session_id
        self._metadata = dict(reply.metadata)
        self._messages = []
        if not await self._play(reply.fragments, generation):
            return

        self._initializing = False
        self._initialized = True
        self._set_state(ChatState.READY)
        logger.info(f"Conversation ready (session {self._session_id})")

    async def send_message(self, text: str) -> bool:
        """Submit one user message.

        Args:
            text: Raw input. Blank input is ignored.

        Returns:
            True if the message was accepted and its reply fully played back.
        """
        if not text or not text.strip():
            return False
        if self._state not in _SENDABLE_STATES or not self._session_id:
            logger.debug(f"Message rejected in state {self._state.value}")
            return False

        message = text.strip()
        generation = self._generation
        self._error = None
        self._append(ChatMessage(text=message, sender=Sender.USER.value))
        self._typing = True
        self._set_state(ChatState.SENDING)

        result = await self._await_owned(self._client.send_message(self._session_id, message))
        if result is None or generation != self._generation:
            return False

        if result.success:
            reply = result.reply
            self._metadata = dict(reply.metadata)
            if not await self._play(reply.fragments, generation):
                return False
            if reply.done:
                logger.info("Backend ended the conversation")
                self._session_id = None
                self._store.clear()
            self._typing = False
            self._set_state(ChatState.READY)
            return True

        self._typing = False
        if result.requires_reload:
            self._session_id = None
            self._error = result.error
            self._append(ChatMessage(text=SESSION_EXPIRED_NOTICE, sender=Sender.SYSTEM.value))
            self._set_state(ChatState.SESSION_EXPIRED)
            self._schedule_reload()
        else:
            self._error = result.error
            self._append(
                ChatMessage(
                    text=result.fallback_message or GENERIC_ERROR_MESSAGE,
                    sender=Sender.ERROR.value,
                )
            )
            self._set_state(ChatState.ERROR)
        return False

    async def reset(self) -> None:
        """Drop the conversation and start a fresh one."""
        logger.info("Resetting conversation")
        self._generation += 1
        await self._cancel_tasks()

        self._messages = []
        self._session_id = None
        self._error = None
        self._metadata = {}
        self._typing = False
        self._store.clear()
        self._initializing = False
        self._initialized = False

        await self.initialize()

    async def get_session_info(self) -> dict[str, Any] | None:
        """Return backend details for the current session, if any."""
        if not self._session_id:
            return None
        result = await self._client.get_session_info(self._session_id)
        return result.data if result.success else None

    async def aclose(self) -> None:
        """Cancel pending work and close the transport client."""
        self._generation += 1
        await self._cancel_tasks()
        await self._client.aclose()
