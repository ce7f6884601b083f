"""
Ranked match orchestration.

A match is a fixed number of reaction rounds against one simulated
opponent. Every round moves the player's running rating (compounding from
round to round); the running rating becomes the player's rating when the
match settles.

State machine:
    IDLE -> QUEUED -> COUNTDOWN -> IN_ROUND -> INTER_ROUND_PAUSE -> IN_ROUND ...
         -> SETTLING -> COMPLETE -> IDLE
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from aimrank.config import Settings, settings as default_settings
from aimrank.services.arbiter import RoundArbiter, Winner
from aimrank.services.opponents import Opponent, OpponentSelector
from aimrank.services.rating import MIN_RATING
from aimrank.services.reaction import ReactionSimulator
from aimrank.services.reaction_input import ReactionSource, await_reaction
from aimrank.services.stats import PlayerStats

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

COUNTDOWN_TICK_MS = 1000
COUNTDOWN_GO_MS = 500
COUNTDOWN_FADE_MS = 160


async def sleep_ms(ms: float) -> None:
    """Default timer primitive: wait ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


class MatchState(str, Enum):
    """Lifecycle of a ranked match within a session."""
    IDLE = "idle"
    QUEUED = "queued"
    COUNTDOWN = "countdown"
    IN_ROUND = "in_round"
    INTER_ROUND_PAUSE = "inter_round_pause"
    SETTLING = "settling"
    COMPLETE = "complete"


class MatchOutcome(str, Enum):
    """Overall match classification from rounds won."""
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


@dataclass(frozen=True)
class RoundOutcome:
    """One immutable ledger line."""
    round_number: int
    player_time_ms: Optional[int]
    bot_time_ms: Optional[int]
    winner: Winner
    rating_delta: int
    rating_before: int
    rating_after: int

    @property
    def player_missed(self) -> bool:
        return self.player_time_ms is None

    def describe(self) -> str:
        you = "MISS" if self.player_time_ms is None else f"{self.player_time_ms}ms"
        bot = "MISS" if self.bot_time_ms is None else f"{self.bot_time_ms}ms"
        sign = "+" if self.rating_delta >= 0 else ""
        return (
            f"Round {self.round_number}: {you} / {bot} - {self.winner.value.upper()} - "
            f"{sign}{self.rating_delta} (-> {self.rating_after})"
        )


@dataclass
class MatchResult:
    """Everything the caller needs once a match completes."""
    opponent: Opponent
    rounds: List[RoundOutcome]
    rounds_won: int
    rating_before: int
    rating_after: int
    total_rounds: int
    cancelled: bool = False

    @property
    def outcome(self) -> MatchOutcome:
        if self.rounds_won * 2 > self.total_rounds:
            return MatchOutcome.WIN
        if self.rounds_won * 2 < self.total_rounds:
            return MatchOutcome.LOSS
        return MatchOutcome.DRAW

    @property
    def rating_change(self) -> int:
        return self.rating_after - self.rating_before

    @property
    def player_reactions(self) -> List[Optional[int]]:
        return [r.player_time_ms for r in self.rounds]


@dataclass
class PlayerSession:
    """
    Caller-owned context for one player.

    Holds the rating and stats the engine works on plus the flags that keep
    practice and ranked play apart. Nothing in the engine keeps global state.
    """
    rating: int = MIN_RATING
    stats: PlayerStats = field(default_factory=PlayerStats)
    practice_active: bool = False
    state: MatchState = MatchState.IDLE
    opponent: Optional[Opponent] = None
    current_round: int = 0
    stop_requested: bool = False

    @property
    def in_match(self) -> bool:
        return self.state not in (MatchState.IDLE, MatchState.QUEUED, MatchState.COMPLETE)

    def request_stop(self) -> None:
        """Ask the running match to stop at the next round boundary."""
        self.stop_requested = True


class MatchOrchestrator:
    """
    Runs ranked matches for a PlayerSession.

    Collaborators are injected so tests can pin randomness, skip real waits
    and use an in-memory repository.
    """

    def __init__(
        self,
        selector: Optional[OpponentSelector] = None,
        simulator: Optional[ReactionSimulator] = None,
        arbiter: Optional[RoundArbiter] = None,
        repository=None,
        sleep: Sleep = sleep_ms,
        config: Optional[Settings] = None,
    ):
        """
        Args:
            selector: Opponent selector
            simulator: Bot reaction simulator
            arbiter: Round arbiter (carries the miss penalty)
            repository: Optional GameRepository for persisting rating and stats
            sleep: Timer primitive taking milliseconds
            config: Settings with round count, timings and K-factor
        """
        config = config or default_settings
        self.selector = selector or OpponentSelector()
        self.simulator = simulator or ReactionSimulator()
        self.arbiter = arbiter or RoundArbiter(miss_penalty=config.miss_penalty)
        self.repository = repository
        self.sleep = sleep
        self.rounds_per_match = config.rounds_per_match
        self.round_timeout_ms = config.round_timeout_ms
        self.countdown_seconds = config.countdown_seconds
        self.inter_round_pause_ms = config.inter_round_pause_ms
        self.k_round = config.k_round

    def _transition(self, session: PlayerSession, state: MatchState) -> None:
        logger.debug(f"Match state {session.state.value} -> {state.value}")
        session.state = state

    def queue(self, session: PlayerSession, opponent: Optional[Opponent] = None) -> Optional[Opponent]:
        """
        Queue for a ranked match and pick the opponent.

        Args:
            session: Player session
            opponent: Optional fixed opponent; selected randomly otherwise

        Returns:
            The opponent, or None if practice or another match is running
        """
        if session.practice_active:
            logger.warning("Finish practice before queuing ranked matches")
            return None
        if session.in_match:
            logger.warning("A match is already in progress")
            return None

        session.opponent = opponent or self.selector.select_opponent(session.rating)
        session.stop_requested = False
        self._transition(session, MatchState.QUEUED)
        logger.info(f"Queued vs {session.opponent.name} (ELO {session.opponent.rating})")
        return session.opponent

    async def countdown(self) -> None:
        """Lead-in before the first round."""
        for _ in range(self.countdown_seconds):
            await self.sleep(COUNTDOWN_TICK_MS)
        await self.sleep(COUNTDOWN_GO_MS)
        await self.sleep(COUNTDOWN_FADE_MS)

    async def play_round(
        self,
        round_number: int,
        running_rating: int,
        opponent: Opponent,
        reactions: ReactionSource,
    ) -> RoundOutcome:
        """
        Play one round against the current running rating.

        Returns:
            The ledger entry; its rating_after is the next running rating
        """
        bot_time = self.simulator.simulate(opponent.rating)
        player_time = await await_reaction(reactions, self.round_timeout_ms)

        winner = self.arbiter.decide(player_time, bot_time)
        delta = self.arbiter.round_delta(
            running_rating,
            opponent.rating,
            winner,
            k_round=self.k_round,
            player_missed_and_lost=player_time is None,
        )
        rating_after = self.arbiter.apply(running_rating, delta)

        outcome = RoundOutcome(
            round_number=round_number,
            player_time_ms=player_time,
            bot_time_ms=bot_time,
            winner=winner,
            rating_delta=rating_after - running_rating,
            rating_before=running_rating,
            rating_after=rating_after,
        )
        logger.info(outcome.describe())
        return outcome

    async def play(
        self,
        session: PlayerSession,
        reactions: ReactionSource,
        on_round: Optional[Callable[[RoundOutcome], None]] = None,
    ) -> Optional[MatchResult]:
        """
        Run a full match.

        Queues first if the session has no opponent yet. A stop request is
        honoured before each round; completed rounds stay applied.
        If a round raises or the task is cancelled, the session is returned to
        IDLE and the unfinished match is not applied.

        Args:
            session: Player session (rating and stats are updated in place)
            reactions: Source of the player's reactions
            on_round: Optional callback invoked after every round

        Returns:
            MatchResult, or None if the match could not be started
        """
        if session.opponent is None or session.state is not MatchState.QUEUED:
            if self.queue(session, session.opponent) is None:
                return None
        try:
            return await self._run(session, reactions, on_round)
        finally:
            if session.state is not MatchState.IDLE:
                # raised or cancelled mid-match: the unfinished match is dropped
                logger.warning(f"Match aborted in state {session.state.value}, session reset")
                self._reset(session)

    async def _run(
        self,
        session: PlayerSession,
        reactions: ReactionSource,
        on_round: Optional[Callable[[RoundOutcome], None]],
    ) -> MatchResult:
        opponent = session.opponent

        self._transition(session, MatchState.COUNTDOWN)
        await self.countdown()

        rating_before = session.rating
        running = rating_before
        ledger: List[RoundOutcome] = []
        cancelled = False

        for round_number in range(1, self.rounds_per_match + 1):
            if session.stop_requested:
                logger.info(f"Match stopped before round {round_number}")
                cancelled = True
                break

            session.current_round = round_number
            self._transition(session, MatchState.IN_ROUND)
            outcome = await self.play_round(round_number, running, opponent, reactions)
            ledger.append(outcome)
            running = outcome.rating_after
            if on_round:
                on_round(outcome)

            if round_number < self.rounds_per_match:
                self._transition(session, MatchState.INTER_ROUND_PAUSE)
                await self.sleep(self.inter_round_pause_ms)

        result = MatchResult(
            opponent=opponent,
            rounds=ledger,
            rounds_won=sum(1 for r in ledger if r.winner is Winner.PLAYER),
            rating_before=rating_before,
            rating_after=running,
            total_rounds=self.rounds_per_match,
            cancelled=cancelled,
        )
        await self.settle(session, result)
        return result

    async def settle(self, session: PlayerSession, result: MatchResult) -> None:
        """Apply the final rating and stats, then reset for the next queue."""
        self._transition(session, MatchState.SETTLING)
        session.rating = result.rating_after

        if not result.cancelled:
            session.stats.record_match(result.rounds_won, result.total_rounds)
            session.stats.record_reactions(result.player_reactions)

        if self.repository is not None:
            session.rating = await self.repository.save_rating(session.rating)
            if not result.cancelled:
                await self.repository.save_stats(session.stats)

        self._transition(session, MatchState.COMPLETE)
        logger.info(
            f"Match complete vs {result.opponent.name}: won {result.rounds_won}/{result.total_rounds} rounds, "
            f"ELO {result.rating_before} -> {result.rating_after}"
        )

        self._reset(session)

    def _reset(self, session: PlayerSession) -> None:
        # next match needs a fresh opponent
        session.opponent = None
        session.current_round = 0
        session.stop_requested = False
        self._transition(session, MatchState.IDLE)
