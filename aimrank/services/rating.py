"""
ELO rating math for the aim duel ladder.

Implements the standard logistic expectation and rating updates with a
hard floor at MIN_RATING.
"""

from dataclasses import dataclass

from aimrank.utils import round_half_up

MIN_RATING = 1000

# Whole-match updates swing harder than the per-round updates shown in a match
K_MATCH = 32
K_ROUND = 20

# Score values for a single contest
SCORE_WIN = 1.0
SCORE_DRAW = 0.5
SCORE_LOSS = 0.0


@dataclass
class RatingChange:
    """Result of applying one rating update."""
    before: int
    after: int
    expected: float

    @property
    def delta(self) -> int:
        return self.after - self.before


def clamp_rating(rating: float) -> int:
    """Round a rating and lift it to the floor."""
    return max(MIN_RATING, round_half_up(rating))


class RatingModel:
    """
    ELO rating model.

    Stateless: every method is a pure function of its arguments. The K-factor
    is always supplied by the caller (K_MATCH for whole matches, K_ROUND for
    rounds inside a match).
    """

    def expected_score(self, rating: float, opponent_rating: float) -> float:
        """
        Calculate expected score (probability of winning) for a player.

        Uses the standard ELO formula:
        E = 1 / (1 + 10^((opponent_rating - rating) / 400))

        Args:
            rating: Current rating of the player
            opponent_rating: Current rating of the opponent

        Returns:
            Expected score between 0 and 1
        """
        exponent = (opponent_rating - rating) / 400.0
        # 10 ** x overflows a float past ~308
        exponent = max(-300.0, min(300.0, exponent))
        return 1.0 / (1.0 + 10 ** exponent)

    def apply_delta(
        self,
        rating: int,
        opponent_rating: int,
        score: float,
        k_factor: float = K_MATCH,
    ) -> int:
        """
        Apply one ELO update and return the new rating.

        new = max(MIN_RATING, round(rating + K * (score - expected)))

        Args:
            rating: Rating before the contest
            opponent_rating: Opponent's rating
            score: 1 for a win, 0.5 for a draw, 0 for a loss
            k_factor: Sensitivity of the update

        Returns:
            New rating, never below MIN_RATING
        """
        return self.change(rating, opponent_rating, score, k_factor).after

    def change(
        self,
        rating: int,
        opponent_rating: int,
        score: float,
        k_factor: float = K_MATCH,
    ) -> RatingChange:
        """Same as apply_delta but keeps the before/after/expected triple."""
        expected = self.expected_score(rating, opponent_rating)
        after = clamp_rating(rating + k_factor * (score - expected))
        return RatingChange(before=rating, after=after, expected=expected)


# Singleton instance for convenience
rating_model = RatingModel()


def expected_score(rating: float, opponent_rating: float) -> float:
    return rating_model.expected_score(rating, opponent_rating)


def apply_delta(rating: int, opponent_rating: int, score: float, k_factor: float = K_MATCH) -> int:
    return rating_model.apply_delta(rating, opponent_rating, score, k_factor)
