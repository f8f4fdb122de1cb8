"""
Mood engine: pure scoring, decay and classification.

The baseline score comes from contribution activity alone. Interactions add a
separate bonus on top of it, and the scheduled update erodes that bonus one
point per cycle.
"""

from datetime import date

from .models import ContributionStats, MoodLabel

BASE_SCORE = 50
NO_CONTRIBUTION_PENALTY = 30
DAILY_INACTIVITY_PENALTY = 5
MAX_INACTIVITY_PENALTY = 40

MIN_SCORE = 0
MAX_SCORE = 100

# Inclusive ranges, contiguous over [MIN_SCORE, MAX_SCORE].
MOOD_THRESHOLDS: tuple[tuple[MoodLabel, int, int], ...] = (
    (MoodLabel.SAD, 0, 20),
    (MoodLabel.BORED, 21, 40),
    (MoodLabel.CONTENT, 41, 60),
    (MoodLabel.HAPPY, 61, 80),
    (MoodLabel.ECSTATIC, 81, 100),
)

REASON_SEPARATOR = " • "


def clamp(value: float, low: int = MIN_SCORE, high: int = MAX_SCORE) -> float:
    return max(low, min(high, value))


def days_since(last: date | None, today: date) -> int | None:
    """Whole days between ``last`` and ``today``, never negative."""
    if last is None:
        return None
    return max(0, (today - last).days)


def compute_contribution_score(stats: ContributionStats, today: date) -> int:
    """
    Compute the baseline score from contribution activity.

    Args:
        stats: The cached contribution snapshot
        today: The current UTC date

    Returns:
        The baseline score, independent of any interaction bonus
    """
    score: float = BASE_SCORE

    days = days_since(stats.last_contribution_date, today)
    if days is None:
        score -= NO_CONTRIBUTION_PENALTY
    else:
        score -= min(days * DAILY_INACTIVITY_PENALTY, MAX_INACTIVITY_PENALTY)

    score += min(stats.count_7_days * 2, 20)
    score += min(stats.count_30_days / 5, 15)
    score += min(stats.repo_count / 5, 10)

    return int(clamp(score))


def apply_bonus(baseline: int, interaction_bonus: int) -> int:
    """Shift the baseline by the interaction bonus and clamp to the score range."""
    return int(clamp(baseline + interaction_bonus))


def classify(score: int) -> MoodLabel:
    """Map a score to its mood label."""
    for label, lower, upper in MOOD_THRESHOLDS:
        if lower <= score <= upper:
            return label
    return MoodLabel.CONTENT


def decay(interaction_bonus: int) -> int:
    """One scheduled cycle of bonus decay."""
    return max(0, interaction_bonus - 1)


def recency_clause(stats: ContributionStats, today: date) -> str:
    days = days_since(stats.last_contribution_date, today)
    if days is None:
        return "No contributions found yet"
    if days == 0:
        return "Contributed today"
    if days == 1:
        return "Contributed yesterday"
    if days <= 3:
        return "Contributed a couple of days ago"
    if days <= 7:
        return "Getting lonely, no contributions this week"
    return f"No contributions in {days} days"


def attention_clause(interaction_bonus: int) -> str | None:
    if interaction_bonus > 5:
        return "Feeling loved from all the pets and treats"
    if interaction_bonus > 0:
        return "Appreciates the recent attention"
    return None


def reason_text(stats: ContributionStats, interaction_bonus: int, today: date) -> str:
    """Human-readable explanation of the current mood, for display only."""
    clauses = [recency_clause(stats, today)]
    attention = attention_clause(interaction_bonus)
    if attention:
        clauses.append(attention)
    return REASON_SEPARATOR.join(clauses)
