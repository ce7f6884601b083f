"""Player statistics and profile views."""

import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional

from aimrank.services.ranks import GRAND_CHAMPION_THRESHOLD, rank_of
from aimrank.utils import round_half_up


@dataclass
class PlayerStats:
    """
    Aggregate counters for the live player.

    Created with zeroed defaults on first use; practice hits and ranked
    matches only ever add to it.
    """
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    total_rounds: int = 0
    total_reaction_ms: int = 0
    best_reaction_ms: Optional[int] = None

    @property
    def average_reaction_ms(self) -> Optional[int]:
        if not self.total_rounds:
            return None
        return round_half_up(self.total_reaction_ms / self.total_rounds)

    def record_reaction(self, reaction_ms: int) -> None:
        """Add one non-miss reaction to the totals."""
        self.total_reaction_ms += reaction_ms
        self.total_rounds += 1
        if self.best_reaction_ms is None or reaction_ms < self.best_reaction_ms:
            self.best_reaction_ms = reaction_ms

    def record_reactions(self, reactions: Iterable[Optional[int]]) -> None:
        for reaction in reactions:
            if reaction is not None:
                self.record_reaction(reaction)

    def record_match(self, rounds_won: int, total_rounds: int) -> None:
        """Count a finished match; exactly half the rounds is neither win nor loss."""
        self.games_played += 1
        if rounds_won * 2 > total_rounds:
            self.wins += 1
        elif rounds_won * 2 < total_rounds:
            self.losses += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gamesPlayed": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "totalRounds": self.total_rounds,
            "totalReaction": self.total_reaction_ms,
            "bestReaction": self.best_reaction_ms,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerStats":
        """
        Build stats from the persisted JSON form.

        Missing counters default to zero.

        Raises:
            TypeError: If ``data`` is not a mapping
            ValueError: If a counter is negative or not an integer
        """
        if not isinstance(data, dict):
            raise TypeError(f"stats must be an object, got {type(data).__name__}")

        def counter(key: str) -> int:
            value = data.get(key) or 0
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"invalid stats counter {key}={value!r}")
            return int(value)

        best = data.get("bestReaction")
        if best is not None:
            if isinstance(best, bool) or not isinstance(best, (int, float)) or best < 0:
                raise ValueError(f"invalid bestReaction {best!r}")
            best = int(best)

        return cls(
            games_played=counter("gamesPlayed"),
            wins=counter("wins"),
            losses=counter("losses"),
            total_rounds=counter("totalRounds"),
            total_reaction_ms=counter("totalReaction"),
            best_reaction_ms=best,
        )


@dataclass
class Profile:
    """What a profile card shows for one leaderboard row."""
    name: str
    rating: int
    rank_name: str
    emblem: str
    games_played: int
    wins: int
    average_reaction_ms: Optional[int]
    is_player: bool = False
    losses: Optional[int] = None
    rounds_played: Optional[int] = None
    best_reaction_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def player_profile(rating: int, stats: PlayerStats, ceiling: int = GRAND_CHAMPION_THRESHOLD) -> Profile:
    """Profile for the live player, built from their own stats."""
    rank = rank_of(rating, ceiling)
    return Profile(
        name="You",
        rating=rating,
        rank_name=rank.name,
        emblem=rank.emblem,
        games_played=stats.games_played,
        wins=stats.wins,
        losses=stats.losses,
        rounds_played=stats.total_rounds,
        average_reaction_ms=stats.average_reaction_ms,
        best_reaction_ms=stats.best_reaction_ms,
        is_player=True,
    )


def bot_profile(entry, ceiling: int = GRAND_CHAMPION_THRESHOLD) -> Profile:
    """Profile for a simulated leaderboard entry."""
    rank = rank_of(entry.rating, ceiling)
    return Profile(
        name=entry.name,
        rating=entry.rating,
        rank_name=rank.name,
        emblem=rank.emblem,
        games_played=entry.games_played,
        wins=entry.wins,
        average_reaction_ms=entry.average_reaction_ms or None,
    )
