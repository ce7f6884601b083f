"""
Practice mode: endless unranked targets.

Practice never touches the rating. Hits feed the reaction statistics;
misses are only reported.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from aimrank.config import Settings, settings as default_settings
from aimrank.services.match import PlayerSession, Sleep, sleep_ms
from aimrank.services.reaction_input import ReactionSource, await_reaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PracticeResult:
    """One practice target."""
    attempt: int
    reaction_ms: Optional[int]

    @property
    def hit(self) -> bool:
        return self.reaction_ms is not None


class PracticeRunner:
    """Runs the practice loop for a session until it is stopped."""

    def __init__(self, repository=None, sleep: Sleep = sleep_ms, config: Optional[Settings] = None):
        config = config or default_settings
        self.repository = repository
        self.sleep = sleep
        self.round_timeout_ms = config.round_timeout_ms
        self.pause_ms = config.practice_pause_ms

    async def start(
        self,
        session: PlayerSession,
        reactions: ReactionSource,
        on_result: Optional[Callable[[PracticeResult], None]] = None,
        max_attempts: Optional[int] = None,
    ) -> List[PracticeResult]:
        """
        Run practice targets until stop() is called.

        The stop flag is checked once per target, so the target in flight
        always completes.

        Args:
            session: Player session
            reactions: Source of the player's reactions
            on_result: Optional callback per target
            max_attempts: Optional cap on the number of targets

        Returns:
            All practice results, in order (empty if practice could not start)
        """
        if session.practice_active:
            logger.warning("Practice already running")
            return []
        if session.in_match:
            logger.warning("Cannot start practice during a ranked match")
            return []

        session.practice_active = True
        logger.info("Practice mode: hit the targets as they spawn")
        results: List[PracticeResult] = []

        try:
            while session.practice_active:
                if max_attempts is not None and len(results) >= max_attempts:
                    break
                reaction = await await_reaction(reactions, self.round_timeout_ms)
                result = PracticeResult(attempt=len(results) + 1, reaction_ms=reaction)
                results.append(result)

                if reaction is None:
                    logger.info("Missed the target, try again")
                else:
                    logger.info(f"Hit! Reaction: {reaction} ms")
                    session.stats.record_reaction(reaction)
                    if self.repository is not None:
                        await self.repository.save_stats(session.stats)

                if on_result:
                    on_result(result)
                await self.sleep(self.pause_ms)
        finally:
            session.practice_active = False
            logger.info("Practice ended")

        return results

    def stop(self, session: PlayerSession) -> None:
        """Stop practice after the current target."""
        session.practice_active = False
