"""Pytest configuration and fixtures."""

import random

import pytest

from aimrank.config import Settings
from aimrank.services.match import PlayerSession
from aimrank.services.storage import GameRepository, MemoryStore


async def no_sleep(ms):
    """Timer that returns immediately."""
    return None


class FixedSimulator:
    """Bot simulator that replays a scripted list of reactions."""

    def __init__(self, *reactions):
        self.reactions = list(reactions)
        self.calls = []

    def simulate(self, rating):
        self.calls.append(rating)
        return self.reactions.pop(0)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repository(store):
    return GameRepository(store)


@pytest.fixture
def session():
    return PlayerSession()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def config():
    """Default settings independent of the developer's environment."""
    return Settings(
        log_level="INFO",
        log_dir="logs",
        storage_backend="memory",
        rounds_per_match=3,
        round_timeout_ms=5000,
        countdown_seconds=3,
        inter_round_pause_ms=900,
        practice_pause_ms=350,
        k_round=20,
        miss_penalty=1.5,
        grand_champion_threshold=3000,
        leaderboard_size=50,
        leaderboard_refresh_seconds=300,
        backup_pbkdf2_iterations=1000,
    )


@pytest.fixture
def sleep():
    return no_sleep


@pytest.fixture
def fixed_simulator():
    """Factory for a bot simulator with scripted reactions."""
    return FixedSimulator
