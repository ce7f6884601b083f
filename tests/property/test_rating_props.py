"""
Property-based tests for the ELO rating model.
"""

from hypothesis import given, strategies as st, settings

from aimrank.services.rating import (
    K_MATCH,
    K_ROUND,
    MIN_RATING,
    RatingModel,
    apply_delta,
    expected_score,
)
from aimrank.utils import round_half_up


rating_strategy = st.integers(min_value=MIN_RATING, max_value=5000)
any_rating_strategy = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False)
score_strategy = st.sampled_from([0.0, 0.5, 1.0])


class TestExpectedScore:
    """
    *For any* two ratings, the expected scores of both sides sum to one.
    """

    @settings(max_examples=200)
    @given(a=any_rating_strategy, b=any_rating_strategy)
    def test_expected_scores_are_symmetric(self, a: float, b: float):
        total = expected_score(a, b) + expected_score(b, a)
        assert abs(total - 1.0) < 1e-9, f"E({a},{b}) + E({b},{a}) = {total}"

    @settings(max_examples=100)
    @given(a=rating_strategy, b=rating_strategy)
    def test_expected_score_is_a_probability(self, a: int, b: int):
        e = expected_score(a, b)
        assert 0.0 < e < 1.0

    @given(rating=rating_strategy)
    def test_equal_ratings_expect_half(self, rating: int):
        assert expected_score(rating, rating) == 0.5

    @settings(max_examples=100)
    @given(a=rating_strategy, b=rating_strategy, gap=st.integers(min_value=1, max_value=500))
    def test_higher_rating_expects_more(self, a: int, b: int, gap: int):
        assert expected_score(a + gap, b) > expected_score(a, b)

    def test_extreme_gap_does_not_overflow(self):
        assert expected_score(0, 1e9) >= 0.0
        assert expected_score(1e9, 0) <= 1.0


class TestApplyDelta:
    """
    *For any* rating, opponent and score, the new rating never drops
    below MIN_RATING.
    """

    @settings(max_examples=300)
    @given(
        rating=st.integers(min_value=MIN_RATING, max_value=10000),
        opponent=st.integers(min_value=0, max_value=10000),
        score=score_strategy,
        k=st.sampled_from([K_MATCH, K_ROUND, 100]),
    )
    def test_rating_never_below_floor(self, rating, opponent, score, k):
        assert apply_delta(rating, opponent, score, k) >= MIN_RATING

    @settings(max_examples=100)
    @given(rating=rating_strategy, opponent=rating_strategy)
    def test_win_never_loses_points(self, rating, opponent):
        assert apply_delta(rating, opponent, 1.0) >= rating

    @settings(max_examples=100)
    @given(rating=st.integers(min_value=2000, max_value=5000), opponent=rating_strategy)
    def test_loss_never_gains_points(self, rating, opponent):
        assert apply_delta(rating, opponent, 0.0) <= rating

    @settings(max_examples=100)
    @given(rating=rating_strategy, opponent=rating_strategy, score=score_strategy)
    def test_matches_formula(self, rating, opponent, score):
        expected = expected_score(rating, opponent)
        formula = max(MIN_RATING, round_half_up(rating + K_MATCH * (score - expected)))
        assert apply_delta(rating, opponent, score, K_MATCH) == formula

    def test_change_keeps_before_after_and_expected(self):
        change = RatingModel().change(1000, 1000, 1.0, K_MATCH)
        assert change.before == 1000
        assert change.after == 1016
        assert change.expected == 0.5
        assert change.delta == 16

    def test_draw_between_equals_changes_nothing(self):
        assert apply_delta(1500, 1500, 0.5) == 1500


class TestRoundHalfUp:

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(0.5) == 1

    @given(value=st.integers(min_value=-10000, max_value=10000))
    def test_integers_unchanged(self, value):
        assert round_half_up(value) == value
