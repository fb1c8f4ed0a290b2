"""Paced playback of multi-fragment replies.

When one turn yields several fragments they are shown one after another,
each held back by a reading delay proportional to the previous fragment's
length, so the bot reads like a live responder instead of dumping a block
of bubbles at once.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from wuffchat.models import ReplyFragment

logger = logging.getLogger(__name__)

READING_SPEED = 100  # characters per second
MIN_DELAY = 1.0  # seconds
INTER_MESSAGE_PAUSE = 1.0  # seconds


class ReplySequencer:
    """Plays reply fragments on a cumulative schedule.

    Fragment 0 is shown immediately. Fragment n shows the typing indicator
    once all earlier fragments' delays and pauses have elapsed, then appears
    one pause later.
    """

    def __init__(
        self,
        reading_speed: float = READING_SPEED,
        min_delay: float = MIN_DELAY,
        pause: float = INTER_MESSAGE_PAUSE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._reading_speed = reading_speed
        self._min_delay = min_delay
        self._pause = pause
        self._sleep = sleep

    @property
    def pause(self) -> float:
        return self._pause

    def delay_for(self, text: str) -> float:
        """Reading delay for one fragment, never below the floor."""
        return max(len(text) / self._reading_speed, self._min_delay)

    def schedule(self, fragments: Sequence[ReplyFragment]) -> list[tuple[float, float]]:
        """Compute ``(typing_at, append_at)`` offsets in seconds per fragment."""
        offsets = []
        elapsed = 0.0
        for index, fragment in enumerate(fragments):
            pause = self._pause if index > 0 else 0.0
            offsets.append((elapsed, elapsed + pause))
            elapsed += self.delay_for(fragment.text) + pause
        return offsets

    async def play(
        self,
        fragments: Sequence[ReplyFragment],
        on_fragment: Callable[[ReplyFragment], None],
        on_typing: Callable[[bool], None] | None = None,
        is_current: Callable[[], bool] | None = None,
    ) -> int:
        """Deliver fragments in order on the computed schedule.

        Args:
            fragments: Fragments to deliver.
            on_fragment: Called once per fragment when it is due.
            on_typing: Called with True when the typing indicator should
                reappear before a later fragment.
            is_current: Checked before every callback; playback stops
                silently once it returns False.

        Returns:
            Number of fragments delivered.
        """
        delivered = 0
        now = 0.0
        for (typing_at, append_at), fragment in zip(self.schedule(fragments), fragments):
            if typing_at < append_at:
                await self._sleep(typing_at - now)
                now = typing_at
                if is_current is not None and not is_current():
                    break
                if on_typing is not None:
                    on_typing(True)

            if append_at > now:
                await self._sleep(append_at - now)
                now = append_at
            if is_current is not None and not is_current():
                break

            on_fragment(fragment)
            delivered += 1

        if delivered < len(fragments):
            logger.debug(f"Playback superseded after {delivered}/{len(fragments)} fragments")
        return delivered
