"""
Simulated global leaderboard.

A fixed-size population of bot competitors whose ratings drift on a timer.
The live player is merged in for display only and never stored with the
population.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from aimrank.config import Settings, settings as default_settings
from aimrank.services.opponents import make_bot_name
from aimrank.services.rating import MIN_RATING
from aimrank.services.ranks import RankTier, rank_of
from aimrank.utils import round_half_up

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 50
PLAYER_NAME = "You"

# Initial population: MIN_RATING + offset + u^skew * range (1100..3100)
INITIAL_OFFSET = 100
INITIAL_RANGE = 2000
INITIAL_SKEW = 1.2

# Drift tick tuning
BASE_VOLATILITY = 20
EXTRA_VOLATILITY = 80
JOLT_CHANCE = 0.04
JOLT_RANGE = 400
MAX_NEW_GAMES = 3
REACTION_NUDGE_CHANCE = 0.5
REACTION_NUDGE_RANGE = 20
MIN_AVG_REACTION_MS = 80


@dataclass
class LeaderboardEntry:
    """One row of the leaderboard."""
    name: str
    rating: int
    games_played: int = 0
    average_reaction_ms: int = 0
    wins: int = 0
    is_player: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Persisted form; the player flag is never written."""
        return {
            "name": self.name,
            "elo": self.rating,
            "gamesPlayed": self.games_played,
            "avgReaction": self.average_reaction_ms,
            "wins": self.wins,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaderboardEntry":
        """
        Parse a persisted entry.

        Raises:
            TypeError: If ``data`` is not a mapping
            ValueError: If name or rating are missing or counters are negative
        """
        if not isinstance(data, dict):
            raise TypeError(f"entry must be an object, got {type(data).__name__}")
        name = data.get("name")
        rating = data.get("elo")
        if not isinstance(name, str) or not name:
            raise ValueError(f"invalid entry name {name!r}")
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            raise ValueError(f"invalid entry rating {rating!r}")

        def counter(key: str) -> int:
            value = data.get(key) or 0
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"invalid entry field {key}={value!r}")
            return int(value)

        return cls(
            name=name,
            rating=max(MIN_RATING, round_half_up(rating)),
            games_played=counter("gamesPlayed"),
            average_reaction_ms=counter("avgReaction"),
            wins=counter("wins"),
        )


@dataclass
class Standing:
    """A displayed leaderboard row with its position and rank."""
    position: int
    entry: LeaderboardEntry
    rank: RankTier

    @property
    def is_top(self) -> bool:
        return self.position == 1


def sort_board(board: List[LeaderboardEntry]) -> List[LeaderboardEntry]:
    return sorted(board, key=lambda entry: entry.rating, reverse=True)


class LeaderboardSimulator:
    """
    Generates and drifts the bot population.

    All methods return new lists; input boards are not mutated.
    """

    def __init__(self, capacity: int = LEADERBOARD_SIZE, rng: Optional[random.Random] = None):
        """
        Args:
            capacity: Number of entries kept on the board.
            rng: Optional seeded Random for reproducible simulations.
        """
        self.capacity = capacity
        self._rng = rng or random.Random()

    def generate(self) -> List[LeaderboardEntry]:
        """
        Generate a fresh population skewed toward low and mid ratings.

        Returns:
            ``capacity`` entries sorted by rating, highest first
        """
        rng = self._rng
        board = []
        for i in range(self.capacity):
            rating = MIN_RATING + INITIAL_OFFSET + round_half_up(rng.random() ** INITIAL_SKEW * INITIAL_RANGE)
            games = 50 + round_half_up(rng.random() * 800)
            avg_reaction = 200 + round_half_up(rng.random() * 400)
            wins = round_half_up(games * (0.3 + rng.random() * 0.5))
            board.append(LeaderboardEntry(
                name=make_bot_name(i, rng),
                rating=rating,
                games_played=games,
                average_reaction_ms=avg_reaction,
                wins=wins,
            ))
        return sort_board(board)

    def drift_entry(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        """Apply one tick of simulated play to a single entry."""
        rng = self._rng
        mood = rng.random() - 0.5
        volatility = BASE_VOLATILITY + rng.random() * EXTRA_VOLATILITY
        change = round_half_up(mood * volatility)
        if rng.random() < JOLT_CHANCE:
            # streak or upset
            change += round_half_up((rng.random() - 0.5) * JOLT_RANGE)

        new_games = round_half_up(rng.random() * MAX_NEW_GAMES)
        new_wins = sum(1 for _ in range(new_games) if rng.random() < 0.5)

        avg_reaction = entry.average_reaction_ms
        if rng.random() < REACTION_NUDGE_CHANCE:
            nudge = round_half_up((rng.random() - 0.5) * REACTION_NUDGE_RANGE)
            avg_reaction = max(MIN_AVG_REACTION_MS, (avg_reaction or 250) + nudge)

        return LeaderboardEntry(
            name=entry.name,
            rating=max(MIN_RATING, entry.rating + change),
            games_played=entry.games_played + new_games,
            average_reaction_ms=avg_reaction,
            wins=min(entry.wins + new_wins, entry.games_played + new_games),
        )

    def tick(self, board: List[LeaderboardEntry]) -> List[LeaderboardEntry]:
        """
        Run one drift tick over the population.

        Restores the board invariants afterwards: sorted descending and at
        most ``capacity`` entries.
        """
        drifted = [self.drift_entry(entry) for entry in board if not entry.is_player]
        return sort_board(drifted)[: self.capacity]

    def merge_for_display(self, board: List[LeaderboardEntry], player_rating: int) -> List[LeaderboardEntry]:
        """
        Merge the live player into a copy of the board.

        The player only appears if their rating beats the lowest entry of a
        full board; a board with free slots always shows the player.

        Args:
            board: Stored bot population
            player_rating: Live player's rating

        Returns:
            Display list, sorted and truncated to ``capacity``
        """
        shown = [entry for entry in board if not entry.is_player]
        min_rating = min(entry.rating for entry in shown) if len(shown) >= self.capacity else 0
        if player_rating > min_rating:
            shown.append(LeaderboardEntry(name=PLAYER_NAME, rating=player_rating, is_player=True))
            shown = sort_board(shown)[: self.capacity]
        return shown


class LeaderboardService:
    """
    Binds the simulator to persistence.

    Only the bot population is ever written back; refreshes are serialised
    with a lock so a drift tick never overlaps another.
    """

    def __init__(
        self,
        repository,
        simulator: Optional[LeaderboardSimulator] = None,
        config: Optional[Settings] = None,
    ):
        """
        Args:
            repository: GameRepository used to load and save the population.
            simulator: Optional LeaderboardSimulator (seeded in tests).
            config: Settings with board size and Grand Champion threshold.
        """
        config = config or default_settings
        self.repository = repository
        self.simulator = simulator or LeaderboardSimulator(capacity=config.leaderboard_size)
        self.ceiling = config.grand_champion_threshold
        self._lock = asyncio.Lock()

    async def load_or_init(self) -> List[LeaderboardEntry]:
        """Load the stored population, generating and saving one if missing."""
        board = await self.repository.load_leaderboard()
        if board is None:
            board = self.simulator.generate()
            await self.repository.save_leaderboard(board)
            logger.info(f"Generated leaderboard with {len(board)} entries")
        return board

    async def refresh(self) -> List[LeaderboardEntry]:
        """Run one drift tick and persist the result."""
        async with self._lock:
            board = await self.load_or_init()
            board = self.simulator.tick(board)
            await self.repository.save_leaderboard(board)
            logger.info("Leaderboard refreshed: bots played games and ratings changed")
            return board

    async def standings(self, player_rating: int) -> List[Standing]:
        """Display rows with positions and rank tiers, player merged in."""
        board = await self.load_or_init()
        shown = self.simulator.merge_for_display(board, player_rating)
        return [
            Standing(position=i + 1, entry=entry, rank=rank_of(entry.rating, self.ceiling))
            for i, entry in enumerate(shown)
        ]
