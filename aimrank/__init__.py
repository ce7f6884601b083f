"""aimrank: reaction-time duels with an ELO ladder and a simulated leaderboard."""

__version__ = "1.0.0"
