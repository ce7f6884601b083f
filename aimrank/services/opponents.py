"""Opponent selection and synthetic bot names."""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from aimrank.services.rating import MIN_RATING

logger = logging.getLogger(__name__)

# Opponents are drawn within +-OPPONENT_SPREAD of the player's rating
OPPONENT_SPREAD = 150

NAME_PREFIXES = [
    "Alpha", "Neo", "Void", "xX", "Hyper", "Omega", "Rapid", "Silent", "Ghost", "Prime",
    "Flux", "Nova", "Viper", "Crimson", "Azure", "Iron", "Steel", "Quantum", "Echo", "Rogue",
    "Drift", "Sable", "Frost", "Blaze", "Storm", "Pulse", "Vector", "Zen", "Apex", "Bolt",
]

NAME_SUFFIXES = [
    "Slayer", "One", "Prime", "Z", "Hunter", "X", "Max", "Pro",
    "Bot", "Unit", "Zero", "Edge", "Core", "Strike", "Wing", "Shift",
]

SUFFIX_CHANCE = 0.35


@dataclass(frozen=True)
class Opponent:
    """A simulated opponent for one match."""
    name: str
    rating: int


def make_bot_name(index: int, rng: Optional[random.Random] = None) -> str:
    """
    Build a bot name from the prefix/suffix tables.

    The prefix is picked by ``index``; the tail is either a suffix (35%) or
    a three-digit tag. Names are not unique.
    """
    rng = rng or random
    prefix = NAME_PREFIXES[index % len(NAME_PREFIXES)]
    if rng.random() < SUFFIX_CHANCE:
        return prefix + NAME_SUFFIXES[(index * 7) % len(NAME_SUFFIXES)]
    return f"{prefix}{rng.randint(100, 999)}"


class OpponentSelector:
    """Picks an opponent rating near the player's and gives it a name."""

    def __init__(self, rng: Optional[random.Random] = None, spread: int = OPPONENT_SPREAD):
        """
        Args:
            rng: Optional seeded Random for reproducible opponents.
            spread: Maximum rating distance from the player.
        """
        self._rng = rng or random.Random()
        self.spread = spread

    def pick_rating(self, player_rating: int) -> int:
        diff = self._rng.randint(-self.spread, self.spread)
        return max(MIN_RATING, player_rating + diff)

    def pick_name(self) -> str:
        return make_bot_name(self._rng.randint(0, len(NAME_PREFIXES) - 1), self._rng)

    def select_opponent(self, player_rating: int) -> Opponent:
        """
        Select an opponent for a player.

        Args:
            player_rating: The player's current rating

        Returns:
            Opponent with rating in [player - spread, player + spread],
            floored at MIN_RATING
        """
        opponent = Opponent(name=self.pick_name(), rating=self.pick_rating(player_rating))
        logger.debug(f"Selected opponent {opponent.name} ({opponent.rating}) for rating {player_rating}")
        return opponent
