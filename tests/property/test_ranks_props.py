"""
Property-based tests for rank tiers.
"""

import pytest
from hypothesis import given, strategies as st, settings

from aimrank.services.ranks import (
    GRAND_CHAMPION_THRESHOLD,
    RankTier,
    Tier,
    is_grand_champion,
    rank_of,
)


class TestRankMonotonic:
    """
    *For any* two ratings a <= b, rank_of(a) <= rank_of(b).
    """

    @settings(max_examples=300)
    @given(
        a=st.integers(min_value=0, max_value=12000),
        b=st.integers(min_value=0, max_value=12000),
    )
    def test_rank_is_monotonic(self, a: int, b: int):
        low, high = sorted((a, b))
        assert rank_of(low) <= rank_of(high)

    @settings(max_examples=100)
    @given(rating=st.floats(min_value=0, max_value=12000, allow_nan=False))
    def test_rank_is_pure(self, rating: float):
        assert rank_of(rating) == rank_of(rating)


class TestGrandChampion:

    @settings(max_examples=200)
    @given(rating=st.integers(min_value=GRAND_CHAMPION_THRESHOLD, max_value=10000))
    def test_at_or_above_threshold_is_grand_champion(self, rating: int):
        rank = rank_of(rating)
        assert rank.tier is Tier.GRAND_CHAMPION
        assert rank.division is None
        assert rank.name == "Grand Champion"
        assert rank.emblem == "grandchamp"

    @settings(max_examples=200)
    @given(rating=st.integers(min_value=0, max_value=GRAND_CHAMPION_THRESHOLD - 1))
    def test_below_threshold_has_a_division(self, rating: int):
        rank = rank_of(rating)
        assert rank.tier is not Tier.GRAND_CHAMPION
        assert 1 <= rank.division <= 4

    def test_custom_ceiling(self):
        assert is_grand_champion(2500, ceiling=2500)
        assert not is_grand_champion(2499, ceiling=2500)


@pytest.mark.parametrize("rating,expected", [
    (0, "Bronze 1"),
    (1000, "Bronze 1"),
    (1099, "Bronze 1"),
    (1100, "Bronze 2"),
    (1399, "Bronze 4"),
    (1400, "Silver 1"),
    (1800, "Gold 1"),
    (2200, "Champion 1"),
    (2599, "Champion 4"),
    (2600, "Champion 4"),
    (2999, "Champion 4"),
    (3000, "Grand Champion"),
])
def test_rank_boundaries(rating, expected):
    assert rank_of(rating).name == expected


def test_fractional_ratings_are_floored():
    assert rank_of(1099.9).name == "Bronze 1"


def test_emblem_names():
    assert rank_of(1850).emblem == "gold1"
    assert rank_of(1000).emblem == "bronze1"


def test_ordering_across_tiers():
    assert RankTier(Tier.SILVER, 4) < RankTier(Tier.GOLD, 1)
    assert RankTier(Tier.CHAMPION, 4) < RankTier(Tier.GRAND_CHAMPION, None)


def test_non_finite_ratings_are_clamped():
    assert rank_of(float("inf")).tier is Tier.GRAND_CHAMPION
    assert rank_of(float("-inf")).name == "Bronze 1"
    assert rank_of(float("nan")).name == "Bronze 1"
    assert rank_of(float("inf"), ceiling=2500).tier is Tier.GRAND_CHAMPION
