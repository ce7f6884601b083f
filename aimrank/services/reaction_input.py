"""
Player reaction input.

The engine never captures clicks itself. An input collaborator implements
ReactionSource and hands over one measured latency (or a miss) per round;
the engine waits for it up to the round deadline.
"""

import asyncio
import logging
import math
from numbers import Real
from typing import Any, Optional, Protocol

from aimrank.utils import round_half_up

logger = logging.getLogger(__name__)

ROUND_TIMEOUT_MS = 5000


class ReactionSource(Protocol):
    """Supplies the player's reaction for the current round."""

    async def next_reaction(self) -> Any:
        """Return a latency in ms, or None for an explicit miss."""
        ...


def sanitize_reaction(value: Any) -> Optional[int]:
    """
    Normalise an externally measured reaction.

    Anything that is not a finite, non-negative number counts as a miss.

    Args:
        value: Raw value from the input collaborator

    Returns:
        Latency rounded to whole ms, or None for a miss
    """
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return None
    return round_half_up(value)


async def await_reaction(source: ReactionSource, timeout_ms: int = ROUND_TIMEOUT_MS) -> Optional[int]:
    """
    Wait for the next reaction or the round deadline, whichever comes first.

    A timeout is a miss. A reaction slower than the deadline is a miss too.
    """
    try:
        raw = await asyncio.wait_for(source.next_reaction(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        logger.debug(f"No reaction within {timeout_ms} ms, counting a miss")
        return None

    reaction = sanitize_reaction(raw)
    if reaction is None and raw is not None:
        logger.warning(f"Malformed reaction {raw!r}, counting a miss")
    if reaction is not None and reaction > timeout_ms:
        return None
    return reaction


class QueuedReactionSource:
    """
    Queue-backed ReactionSource.

    UI code pushes measured reactions with submit()/submit_miss(); the engine
    consumes one per round. Reactions submitted while nobody is waiting are
    kept in order.
    """

    def __init__(self, *reactions: Any):
        self._queue: asyncio.Queue = asyncio.Queue()
        for reaction in reactions:
            self._queue.put_nowait(reaction)

    def submit(self, reaction_ms: Any) -> None:
        self._queue.put_nowait(reaction_ms)

    def submit_miss(self) -> None:
        self._queue.put_nowait(None)

    def pending(self) -> int:
        return self._queue.qsize()

    async def next_reaction(self) -> Any:
        return await self._queue.get()
