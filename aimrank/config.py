import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class Settings:
    """Application configuration read from environment variables."""

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_dir: str = field(default_factory=lambda: os.getenv("LOG_DIR", "logs"))

    # Storage: memory | redis | sql
    storage_backend: str = field(default_factory=lambda: os.getenv("STORAGE_BACKEND", "memory").lower())
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/aimrank.db")
    )

    # Redis
    redis_host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    redis_port: int = field(default_factory=lambda: _env_int("REDIS_PORT", 6379))
    redis_db: int = field(default_factory=lambda: _env_int("REDIS_DB", 0))
    redis_password: str = field(default_factory=lambda: os.getenv("REDIS_PASSWORD", ""))

    # Match flow (milliseconds unless stated otherwise)
    rounds_per_match: int = field(default_factory=lambda: _env_int("ROUNDS_PER_MATCH", 3))
    round_timeout_ms: int = field(default_factory=lambda: _env_int("ROUND_TIMEOUT_MS", 5000))
    countdown_seconds: int = field(default_factory=lambda: _env_int("COUNTDOWN_SECONDS", 3))
    inter_round_pause_ms: int = field(default_factory=lambda: _env_int("INTER_ROUND_PAUSE_MS", 900))
    practice_pause_ms: int = field(default_factory=lambda: _env_int("PRACTICE_PAUSE_MS", 350))

    # Rating tuning
    k_round: int = field(default_factory=lambda: _env_int("K_ROUND", 20))
    miss_penalty: float = field(default_factory=lambda: _env_float("MISS_PENALTY", 1.5))
    grand_champion_threshold: int = field(
        default_factory=lambda: _env_int("GRAND_CHAMPION_THRESHOLD", 3000)
    )

    # Leaderboard simulation
    leaderboard_size: int = field(default_factory=lambda: _env_int("LEADERBOARD_SIZE", 50))
    leaderboard_refresh_seconds: int = field(
        default_factory=lambda: _env_int("LEADERBOARD_REFRESH_SECONDS", 300)
    )

    # Backups
    backup_pbkdf2_iterations: int = field(
        default_factory=lambda: _env_int("BACKUP_PBKDF2_ITERATIONS", 150000)
    )

    @property
    def redis_enabled(self) -> bool:
        return self.storage_backend == "redis"


settings = Settings()
