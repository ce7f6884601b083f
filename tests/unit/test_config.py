"""Tests for configuration loading."""

from aimrank.config import Settings


def test_defaults(monkeypatch):
    for name in (
        "LOG_LEVEL", "STORAGE_BACKEND", "ROUNDS_PER_MATCH", "ROUND_TIMEOUT_MS",
        "K_ROUND", "MISS_PENALTY", "GRAND_CHAMPION_THRESHOLD", "LEADERBOARD_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)

    config = Settings()

    assert config.log_level == "INFO"
    assert config.storage_backend == "memory"
    assert config.rounds_per_match == 3
    assert config.round_timeout_ms == 5000
    assert config.k_round == 20
    assert config.miss_penalty == 1.5
    assert config.grand_champion_threshold == 3000
    assert config.leaderboard_size == 50
    assert not config.redis_enabled


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("STORAGE_BACKEND", "Redis")
    monkeypatch.setenv("ROUNDS_PER_MATCH", "5")
    monkeypatch.setenv("MISS_PENALTY", "2.0")
    monkeypatch.setenv("REDIS_PORT", "6380")

    config = Settings()

    assert config.log_level == "DEBUG"
    assert config.storage_backend == "redis"
    assert config.redis_enabled
    assert config.rounds_per_match == 5
    assert config.miss_penalty == 2.0
    assert config.redis_port == 6380
