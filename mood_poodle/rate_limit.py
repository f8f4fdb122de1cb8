"""Per-user sliding-window rate limiting for interactions."""

from datetime import datetime, timedelta

from . import config
from .models import RateLimitResult

RateLimitTable = dict[str, list[datetime]]


def prune(
    timestamps: list[datetime],
    now: datetime,
    window_hours: int = config.RATE_LIMIT_WINDOW_HOURS,
) -> list[datetime]:
    """Keep only the timestamps inside ``[now - window, now]``, oldest first."""
    window_start = now - timedelta(hours=window_hours)
    return sorted(ts for ts in timestamps if window_start <= ts <= now)


def check(
    table: RateLimitTable,
    username: str,
    now: datetime,
    window_hours: int = config.RATE_LIMIT_WINDOW_HOURS,
    max_per_window: int = config.RATE_LIMIT_MAX,
) -> RateLimitResult:
    """
    Check whether ``username`` may interact right now.

    Unknown users have no prior interactions. ``remaining`` counts the
    interactions left before this one is recorded.
    """
    recent = prune(table.get(username, []), now, window_hours)
    remaining = max(0, max_per_window - len(recent))
    return RateLimitResult(allowed=remaining > 0, remaining=remaining)


def record(
    table: RateLimitTable,
    username: str,
    now: datetime,
    window_hours: int = config.RATE_LIMIT_WINDOW_HOURS,
) -> None:
    """Append ``now`` for ``username``, pruning expired entries on write."""
    recent = prune(table.get(username, []), now, window_hours)
    recent.append(now)
    table[username] = recent
