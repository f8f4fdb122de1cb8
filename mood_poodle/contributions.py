"""
Contribution aggregation.

Turns the raw contribution calendar from an activity source into the summary
statistics the mood engine scores. Both rolling windows include today: the
7-day count covers today and the six days before it, the 30-day count today
and the twenty-nine days before it.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Protocol

from .models import Activity, ContributionDay, ContributionStats

logger = logging.getLogger(__name__)


class ActivitySourceError(Exception):
    """The activity source failed or returned malformed data."""


class ActivitySource(Protocol):
    async def fetch_activity(self, username: str) -> Activity: ...


def _count_since(days: Iterable[ContributionDay], start: date, today: date) -> int:
    return sum(day.count for day in days if start <= day.day <= today)


def summarize(activity: Activity, now: datetime) -> ContributionStats:
    """Summarise a contribution calendar as of ``now`` (UTC)."""
    today = now.date()
    days = [day for day in activity.days if day.day <= today]

    active = [day.day for day in days if day.count > 0]
    last_contribution = max(active) if active else None

    return ContributionStats(
        last_contribution_date=last_contribution,
        count_7_days=_count_since(days, today - timedelta(days=6), today),
        count_30_days=_count_since(days, today - timedelta(days=29), today),
        repo_count=activity.repo_count,
        last_fetched=now,
    )


def empty_stats(now: datetime) -> ContributionStats:
    """Stats used when activity could not be fetched."""
    return ContributionStats(last_fetched=now)


async def gather_stats(
    source: ActivitySource, username: str, now: datetime
) -> ContributionStats:
    """
    Fetch and summarise activity for ``username``.

    A failing source is not fatal: it is logged and scored as zero activity.
    """
    try:
        activity = await source.fetch_activity(username)
    except ActivitySourceError as e:
        logger.warning("Could not fetch activity for %s: %s", username, e)
        return empty_stats(now)
    return summarize(activity, now)
