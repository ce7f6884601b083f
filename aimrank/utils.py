"""Small shared helpers."""

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time with timezone info.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def epoch_ms(moment: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch for ``moment`` (default: now)."""
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into the closed range [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves towards positive infinity.

    Python's ``round`` uses banker's rounding; rating arithmetic needs
    2.5 -> 3 and -2.5 -> -2.
    """
    return int(math.floor(value + 0.5))
