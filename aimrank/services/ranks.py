"""
Rank tiers derived from rating.

Bronze, Silver, Gold and Champion each have four divisions of 100 points
starting at MIN_RATING. At or above the Grand Champion threshold the rank
collapses into a single tier without divisions.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from aimrank.services.rating import MIN_RATING

GRAND_CHAMPION_THRESHOLD = 3000
DIVISION_SIZE = 100
DIVISIONS_PER_TIER = 4


class Tier(Enum):
    """
    Rank tiers, lowest first.

    Each tier has a code (used for emblem names) and a display name.
    """
    BRONZE = ("bronze", "Bronze", 0)
    SILVER = ("silver", "Silver", 1)
    GOLD = ("gold", "Gold", 2)
    CHAMPION = ("champion", "Champion", 3)
    GRAND_CHAMPION = ("grandchamp", "Grand Champion", 4)

    def __init__(self, code: str, display_name: str, order: int):
        self._code = code
        self._display_name = display_name
        self._order = order

    @property
    def code(self) -> str:
        """Short code, e.g. 'gold'."""
        return self._code

    @property
    def display_name(self) -> str:
        """Human-readable tier name."""
        return self._display_name

    @property
    def order(self) -> int:
        """Position of the tier, 0 = Bronze."""
        return self._order


DIVIDED_TIERS = [Tier.BRONZE, Tier.SILVER, Tier.GOLD, Tier.CHAMPION]
MAX_DIVISION_INDEX = len(DIVIDED_TIERS) * DIVISIONS_PER_TIER - 1


@dataclass(frozen=True)
class RankTier:
    """A tier plus division (1 lowest .. 4 highest, None for Grand Champion)."""
    tier: Tier
    division: Optional[int]

    @property
    def name(self) -> str:
        if self.division is None:
            return self.tier.display_name
        return f"{self.tier.display_name} {self.division}"

    @property
    def emblem(self) -> str:
        if self.division is None:
            return self.tier.code
        return f"{self.tier.code}{self.division}"

    @property
    def sort_key(self) -> tuple:
        """Total order over ranks: tier first, then division."""
        return (self.tier.order, self.division or 0)

    def __lt__(self, other: "RankTier") -> bool:
        if not isinstance(other, RankTier):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __le__(self, other: "RankTier") -> bool:
        if not isinstance(other, RankTier):
            return NotImplemented
        return self.sort_key <= other.sort_key


def rank_of(rating: float, ceiling: int = GRAND_CHAMPION_THRESHOLD) -> RankTier:
    """
    Map a rating to its rank tier.

    Ratings below MIN_RATING (and NaN) are treated as MIN_RATING; +inf is
    Grand Champion. Division index is
    capped at 15, so everything between Champion 4 and the ceiling stays
    Champion 4.

    Args:
        rating: Rating to classify
        ceiling: Rating at which Grand Champion starts

    Returns:
        The RankTier for the rating
    """
    if math.isnan(rating):
        rating = MIN_RATING
    elif math.isinf(rating):
        rating = ceiling if rating > 0 else MIN_RATING
    rating = max(MIN_RATING, int(rating // 1))

    if rating >= ceiling:
        return RankTier(Tier.GRAND_CHAMPION, None)

    index = min(MAX_DIVISION_INDEX, (rating - MIN_RATING) // DIVISION_SIZE)
    tier = DIVIDED_TIERS[index // DIVISIONS_PER_TIER]
    division = index % DIVISIONS_PER_TIER + 1
    return RankTier(tier, division)


def is_grand_champion(rating: float, ceiling: int = GRAND_CHAMPION_THRESHOLD) -> bool:
    return rank_of(rating, ceiling).tier is Tier.GRAND_CHAMPION
