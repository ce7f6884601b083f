"""
Round arbitration.

Decides who won a single reaction round and how much the round moves the
player's running rating.
"""

from enum import Enum
from typing import Optional

from aimrank.services.rating import (
    K_ROUND,
    MIN_RATING,
    SCORE_DRAW,
    SCORE_LOSS,
    SCORE_WIN,
    RatingModel,
    rating_model,
)
from aimrank.utils import round_half_up

MISS_PENALTY = 1.5


class Winner(str, Enum):
    """Winner of a round."""
    PLAYER = "player"
    BOT = "bot"
    DRAW = "draw"

    @property
    def score(self) -> float:
        """Score from the player's side."""
        return ROUND_SCORES[self]


ROUND_SCORES = {
    Winner.PLAYER: SCORE_WIN,
    Winner.DRAW: SCORE_DRAW,
    Winner.BOT: SCORE_LOSS,
}


class RoundArbiter:
    """
    Round winner and rating delta.

    Misses (None) lose to any time; two misses draw; equal times draw.
    A player who loses by missing is penalised harder than one who was
    merely slower.
    """

    def __init__(self, model: Optional[RatingModel] = None, miss_penalty: float = MISS_PENALTY):
        self.model = model or rating_model
        self.miss_penalty = miss_penalty

    def decide(self, player_time: Optional[int], bot_time: Optional[int]) -> Winner:
        """
        Decide the winner of a round.

        Args:
            player_time: Player reaction in ms, None for a miss
            bot_time: Bot reaction in ms, None for a miss

        Returns:
            Winner of the round
        """
        if player_time is None and bot_time is None:
            return Winner.DRAW
        if player_time is None:
            return Winner.BOT
        if bot_time is None:
            return Winner.PLAYER
        if player_time < bot_time:
            return Winner.PLAYER
        if player_time > bot_time:
            return Winner.BOT
        return Winner.DRAW

    def round_delta(
        self,
        rating_before: int,
        opponent_rating: int,
        winner: Winner,
        k_round: float = K_ROUND,
        player_missed_and_lost: bool = False,
    ) -> int:
        """
        Rating change for one round.

        delta = round(K * (score - expected)), amplified by the miss penalty
        before rounding when the player lost by missing.

        Args:
            rating_before: Player's running rating at round start
            opponent_rating: Opponent rating
            winner: Round winner
            k_round: Per-round K-factor
            player_missed_and_lost: True if the player missed and the bot won

        Returns:
            Signed rating delta (not yet floored)
        """
        expected = self.model.expected_score(rating_before, opponent_rating)
        raw = k_round * (winner.score - expected)
        if player_missed_and_lost and winner is Winner.BOT:
            raw *= self.miss_penalty
        return round_half_up(raw)

    @staticmethod
    def apply(rating_before: int, delta: int) -> int:
        """Apply a round delta, never dropping below MIN_RATING."""
        return max(MIN_RATING, rating_before + delta)


# Singleton instance for convenience
round_arbiter = RoundArbiter()
