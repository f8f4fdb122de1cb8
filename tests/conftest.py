"""Shared pytest fixtures for the Mood Poodle tests."""

from datetime import date, datetime, timezone

import pytest

from mood_poodle.models import ContributionStats, StateDocument
from mood_poodle.store import StateStore

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = TS) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def document() -> StateDocument:
    return StateDocument()


@pytest.fixture
def no_stats() -> ContributionStats:
    return ContributionStats(last_fetched=TS)


@pytest.fixture
def busy_stats() -> ContributionStats:
    """Contributed today, 10 this week, 40 this month, 25 repositories."""
    return ContributionStats(
        last_contribution_date=date(2024, 6, 1),
        count_7_days=10,
        count_30_days=40,
        repo_count=25,
        last_fetched=TS,
    )


@pytest.fixture
def state_path(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(StateDocument().to_json(), encoding="utf-8")
    return path


@pytest.fixture
def store(state_path) -> StateStore:
    return StateStore(state_path)
