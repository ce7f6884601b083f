"""
Key-value persistence for the player rating, stats and leaderboard.

The engine only needs get/set/delete on UTF-8 strings. Three backends are
provided: in-memory, Redis (with in-memory fallback) and SQL through
SQLAlchemy. GameRepository sits on top and turns the raw strings into
domain objects; unreadable values are discarded and replaced by defaults.
"""

import json
import math
import logging
from typing import Dict, List, Optional, Protocol

from sqlalchemy import select

from aimrank.config import Settings, settings as default_settings
from aimrank.services.leaderboard import LeaderboardEntry, sort_board
from aimrank.services.rating import MIN_RATING
from aimrank.services.redis_client import RedisClient
from aimrank.services.stats import PlayerStats
from aimrank.utils import round_half_up

logger = logging.getLogger(__name__)

RATING_KEY = "elo"
STATS_KEY = "player_stats_v1"
LEADERBOARD_KEY = "mock_leaderboard_v1"


class InvalidPersistedState(Exception):
    """A persisted value exists but cannot be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


class KeyValueStore(Protocol):
    """Minimal async key-value store."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


class MemoryStore:
    """Dict-backed store; also the fallback for RedisStore."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        pass


class RedisStore:
    """Redis-backed store with in-memory fallback.

    Key format: {prefix}:{key}
    """

    def __init__(self, redis_client: RedisClient, prefix: str = "aimrank"):
        self._redis_client = redis_client
        self._prefix = prefix
        self._memory_store = MemoryStore()

    def _make_key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        if self._redis_client.is_available:
            value = await self._redis_client.get(self._make_key(key))
            if value is not None:
                return value
        return await self._memory_store.get(key)

    async def set(self, key: str, value: str) -> None:
        if self._redis_client.is_available:
            if await self._redis_client.set(self._make_key(key), value):
                return
            logger.warning(f"Redis write failed for {key}, keeping value in memory")
        await self._memory_store.set(key, value)

    async def delete(self, key: str) -> None:
        if self._redis_client.is_available:
            await self._redis_client.delete(self._make_key(key))
        await self._memory_store.delete(key)

    async def close(self) -> None:
        await self._redis_client.close()


class SqlStore:
    """Store backed by the kv_store table."""

    def __init__(self, session_factory):
        """
        Args:
            session_factory: async_sessionmaker from aimrank.database.session
        """
        self._session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        from aimrank.database.models import KeyValue

        async with self._session_factory() as session:
            result = await session.execute(select(KeyValue).where(KeyValue.key == key))
            row = result.scalar_one_or_none()
            return row.value if row else None

    async def set(self, key: str, value: str) -> None:
        from aimrank.database.models import KeyValue

        async with self._session_factory() as session:
            row = await session.get(KeyValue, key)
            if row is None:
                session.add(KeyValue(key=key, value=value))
            else:
                row.value = value
            await session.commit()

    async def delete(self, key: str) -> None:
        from aimrank.database.models import KeyValue

        async with self._session_factory() as session:
            row = await session.get(KeyValue, key)
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def close(self) -> None:
        from aimrank.database.session import close_db

        await close_db()


async def create_store(config: Optional[Settings] = None) -> KeyValueStore:
    """
    Build the store selected by STORAGE_BACKEND.

    Args:
        config: Settings to read; defaults to the global settings

    Returns:
        A connected KeyValueStore
    """
    config = config or default_settings
    backend = config.storage_backend

    if backend == "redis":
        client = RedisClient(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            password=config.redis_password,
        )
        await client.connect()
        logger.info("Using Redis storage")
        return RedisStore(client)

    if backend == "sql":
        from aimrank.database.session import get_session, init_db

        await init_db(config.database_url)
        logger.info("Using SQL storage")
        return SqlStore(get_session())

    if backend != "memory":
        logger.warning(f"Unknown storage backend {backend!r}, using memory")
    return MemoryStore()


def parse_rating(raw: str) -> int:
    """
    Parse a persisted rating.

    Raises:
        InvalidPersistedState: If the text is not a number
    """
    try:
        value = float(raw.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidPersistedState(RATING_KEY, str(e)) from e
    if not math.isfinite(value):
        raise InvalidPersistedState(RATING_KEY, f"non-finite rating {raw!r}")
    return max(MIN_RATING, round_half_up(value))


def parse_stats(raw: str) -> PlayerStats:
    """
    Parse persisted player stats.

    Raises:
        InvalidPersistedState: If the JSON is broken or the record is invalid
    """
    try:
        return PlayerStats.from_dict(json.loads(raw))
    except (json.JSONDecodeError, TypeError, ValueError, OverflowError) as e:
        raise InvalidPersistedState(STATS_KEY, str(e)) from e


def parse_leaderboard(raw: str) -> List[LeaderboardEntry]:
    """
    Parse a persisted leaderboard population.

    Raises:
        InvalidPersistedState: If the JSON is broken or any entry is invalid
    """
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise TypeError(f"leaderboard must be a list, got {type(data).__name__}")
        return sort_board([LeaderboardEntry.from_dict(item) for item in data])
    except (json.JSONDecodeError, TypeError, ValueError, OverflowError) as e:
        raise InvalidPersistedState(LEADERBOARD_KEY, str(e)) from e


def dump_leaderboard(board: List[LeaderboardEntry]) -> str:
    return json.dumps([entry.to_dict() for entry in board if not entry.is_player], ensure_ascii=False)


class GameRepository:
    """
    Typed access to the three persisted values.

    Reads never fail: missing values give defaults, corrupt values are
    logged, dropped and replaced by defaults.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def _discard(self, error: InvalidPersistedState) -> None:
        logger.warning(f"Discarding invalid persisted state ({error})")
        await self.store.delete(error.key)

    async def load_rating(self) -> int:
        raw = await self.store.get(RATING_KEY)
        if raw is None:
            return MIN_RATING
        try:
            return parse_rating(raw)
        except InvalidPersistedState as e:
            await self._discard(e)
            return MIN_RATING

    async def save_rating(self, rating: int) -> int:
        """Persist a rating (rounded, floored) and return what was stored."""
        rating = max(MIN_RATING, round_half_up(rating))
        await self.store.set(RATING_KEY, str(rating))
        return rating

    async def load_stats(self) -> PlayerStats:
        raw = await self.store.get(STATS_KEY)
        if raw is None:
            return PlayerStats()
        try:
            return parse_stats(raw)
        except InvalidPersistedState as e:
            await self._discard(e)
            return PlayerStats()

    async def save_stats(self, stats: PlayerStats) -> None:
        await self.store.set(STATS_KEY, stats.to_json())

    async def load_leaderboard(self) -> Optional[List[LeaderboardEntry]]:
        """Stored population, or None if there is none (or it was corrupt)."""
        raw = await self.store.get(LEADERBOARD_KEY)
        if raw is None:
            return None
        try:
            return parse_leaderboard(raw)
        except InvalidPersistedState as e:
            await self._discard(e)
            return None

    async def save_leaderboard(self, board: List[LeaderboardEntry]) -> None:
        await self.store.set(LEADERBOARD_KEY, dump_leaderboard(board))
