"""
Document mutations for the three things that can happen to the poodle.

Each function takes a loaded state document, mutates it in place and reports
what happened. None of them touch storage or the network; the service layer
commits the document and talks to collaborators.
"""

from dataclasses import dataclass
from datetime import datetime

from . import config, cooldown, mood, rate_limit
from .commands import Command, classify_command
from .config import CommandPhrases
from .models import (
    ContributionStats,
    InteractionEntry,
    InteractionType,
    MoodLabel,
    StateDocument,
)


@dataclass
class InteractionResult:
    """Outcome of processing one issue comment."""

    command: Command
    accepted: bool = False
    bonus: int = 0
    remaining: int = 0
    rate_limited: bool = False
    reason: str | None = None
    resolve_after: datetime | None = None

    @property
    def recognized(self) -> bool:
        return self.command is not Command.UNRECOGNIZED


@dataclass
class CycleResult:
    """Outcome of one scheduled update."""

    score: int
    state: MoodLabel
    interaction_bonus: int
    reason: str
    mood_frozen: bool
    decayed: bool = True


def record_interaction(
    document: StateDocument,
    kind: InteractionType,
    username: str,
    issue_number: int | None,
    now: datetime,
    log_limit: int = config.INTERACTION_LOG_LIMIT,
) -> None:
    """Count the interaction and append it to the bounded log."""
    history = document.interactions
    if kind is InteractionType.PET:
        history.total_pets += 1
    else:
        history.total_feeds += 1

    history.log.append(
        InteractionEntry(
            username=username, kind=kind, timestamp=now, issue_number=issue_number
        )
    )
    overflow = len(history.log) - log_limit
    if overflow > 0:
        del history.log[:overflow]


def process_interaction(
    document: StateDocument,
    text: str,
    username: str,
    issue_number: int | None,
    now: datetime,
    phrases: CommandPhrases | None = None,
    window_hours: int = config.RATE_LIMIT_WINDOW_HOURS,
    max_per_window: int = config.RATE_LIMIT_MAX,
    cooldown_minutes: int = config.COOLDOWN_MINUTES,
) -> InteractionResult:
    """
    Apply one pet or feed to ``document``.

    Unrecognised text and rate-limited users leave the document untouched.
    """
    command = classify_command(text, phrases)
    kind = command.interaction
    if kind is None:
        return InteractionResult(command=command)

    limit = rate_limit.check(
        document.rate_limits, username, now, window_hours, max_per_window
    )
    if not limit.allowed:
        return InteractionResult(command=command, rate_limited=True, remaining=0)

    record_interaction(document, kind, username, issue_number, now)
    document.decay.interaction_bonus += config.INTERACTION_BONUS
    document.cooldown = cooldown.activate(document.cooldown, document.mood, now)
    rate_limit.record(document.rate_limits, username, now, window_hours)

    return InteractionResult(
        command=command,
        accepted=True,
        bonus=config.INTERACTION_BONUS,
        remaining=limit.remaining - 1,
        reason=cooldown.celebration_text(username),
        resolve_after=cooldown.resolution_due_at(document.cooldown, cooldown_minutes),
    )


def decay_due(
    last_applied: datetime | None,
    now: datetime,
    interval_hours: int = config.DECAY_INTERVAL_HOURS,
) -> bool:
    """
    Whether ``now`` falls in a later decay cycle than ``last_applied``.

    Cycles are fixed windows of ``interval_hours`` aligned to the epoch
    (00:00, 06:00, ... UTC for six hours), matching the cron schedule.
    """
    if last_applied is None:
        return True
    length = max(1, interval_hours) * 3600
    return int(now.timestamp() // length) > int(last_applied.timestamp() // length)


def apply_update_cycle(
    document: StateDocument,
    stats: ContributionStats,
    now: datetime,
    decay_interval_hours: int = config.DECAY_INTERVAL_HOURS,
) -> CycleResult:
    """
    Run one scheduled cycle: refresh stats, decay the bonus, rescore.

    The bonus decays at most once per decay cycle, so a manual run right
    after the scheduled one only rescores. While a cooldown is active the
    mood fields are left alone so the forced ecstatic display survives until
    the cooldown resolves.
    """
    document.contributions = stats
    decayed = decay_due(document.decay.last_decay_applied, now, decay_interval_hours)
    if decayed:
        document.decay.interaction_bonus = mood.decay(document.decay.interaction_bonus)
        document.decay.last_decay_applied = now

    bonus = document.decay.interaction_bonus
    today = now.date()
    frozen = document.cooldown.active
    if not frozen:
        baseline = mood.compute_contribution_score(stats, today)
        score = mood.apply_bonus(baseline, bonus)
        document.mood.score = score
        document.mood.state = mood.classify(score)
        document.mood.last_calculated = now

    return CycleResult(
        score=document.mood.score,
        state=document.mood.state,
        interaction_bonus=bonus,
        reason=mood.reason_text(stats, bonus, today),
        mood_frozen=frozen,
        decayed=decayed,
    )


def apply_cooldown_resolution(
    document: StateDocument,
    now: datetime,
    force: bool = False,
    minutes: int = config.COOLDOWN_MINUTES,
) -> bool:
    """
    Resolve the cooldown if it is active and due (or ``force`` is set).

    Returns:
        Whether the mood changed
    """
    active = document.cooldown
    if not active.active:
        return False
    if not force and not cooldown.is_due(active, now, minutes):
        return False
    document.cooldown = cooldown.resolve(active, document.mood, now)
    return True


def current_reason(document: StateDocument, now: datetime) -> str:
    """Reason text for the document as it stands."""
    if document.cooldown.active and document.interactions.log:
        return cooldown.celebration_text(document.interactions.log[-1].username)
    return mood.reason_text(
        document.contributions, document.decay.interaction_bonus, now.date()
    )
