"""
Simulated reaction times for bot opponents.

Higher rated bots react faster and miss less often. The random source is
injectable so tests can pin the outcome.
"""

import random
from typing import Optional

from aimrank.services.rating import MIN_RATING
from aimrank.utils import clamp, round_half_up

MIN_REACTION_MS = 80
MAX_REACTION_MS = 4000

BASE_REACTION_MS = 700
RATING_PER_MS = 5           # every 5 rating points shave 1 ms off the mean
SYMMETRIC_JITTER_MS = 150   # uniform in [-150, 150]
SLOW_JITTER_MS = 120        # uniform in [0, 120]

BASE_MISS_CHANCE = 0.45
MISS_CHANCE_RATING_SCALE = 2000
MIN_MISS_CHANCE = 0.02
MAX_MISS_CHANCE = 0.5


class ReactionSimulator:
    """Rating-correlated reaction model for simulated participants."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Optional Random instance for deterministic tests.
        """
        self._rng = rng or random.Random()

    @staticmethod
    def base_reaction(rating: int) -> float:
        """Mean reaction before jitter."""
        return BASE_REACTION_MS - (rating - MIN_RATING) / RATING_PER_MS

    @staticmethod
    def miss_chance(rating: int) -> float:
        """Probability that a participant of this rating misses entirely."""
        return clamp(
            BASE_MISS_CHANCE - (rating - MIN_RATING) / MISS_CHANCE_RATING_SCALE,
            MIN_MISS_CHANCE,
            MAX_MISS_CHANCE,
        )

    def reaction_ms(self, rating: int) -> int:
        """Draw a reaction time, ignoring misses."""
        jitter = self._rng.random() * 2 * SYMMETRIC_JITTER_MS - SYMMETRIC_JITTER_MS
        slow = self._rng.random() * SLOW_JITTER_MS
        value = clamp(self.base_reaction(rating) + jitter + slow, MIN_REACTION_MS, MAX_REACTION_MS)
        return round_half_up(value)

    def simulate(self, rating: int) -> Optional[int]:
        """
        Simulate one round for a participant.

        Args:
            rating: Participant rating

        Returns:
            Reaction time in ms within [80, 4000], or None for a miss
        """
        reaction = self.reaction_ms(rating)
        if self._rng.random() < self.miss_chance(rating):
            return None
        return reaction
