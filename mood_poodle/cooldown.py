"""
Ecstatic cooldown: the instant reaction to a pet or feed.

An interaction forces the poodle to ecstatic straight away. The score it had
before the override is remembered, and every interaction during the override
stacks a landing bonus on top of it. When the cooldown resolves, the mood
lands on the remembered score plus the stacked bonus.
"""

from datetime import datetime, timedelta

from . import config
from .models import CooldownState, MoodLabel, MoodState
from .mood import MAX_SCORE, clamp, classify


def activate(
    cooldown: CooldownState,
    mood: MoodState,
    now: datetime,
    stack_bonus: int = config.COOLDOWN_STACK_BONUS,
) -> CooldownState:
    """
    Start or extend the cooldown and force the mood to ecstatic.

    ``mood`` is updated in place. The first interaction captures the last
    committed score; later ones only grow the stacked bonus and restart the
    countdown.

    Returns:
        The new cooldown state
    """
    if cooldown.active:
        updated = cooldown.model_copy(
            update={
                "stacked_bonus": cooldown.stacked_bonus + stack_bonus,
                "triggered_at": now,
            }
        )
    else:
        updated = CooldownState(
            active=True,
            pre_interaction_score=mood.score,
            stacked_bonus=stack_bonus,
            triggered_at=now,
        )

    mood.score = MAX_SCORE
    mood.state = MoodLabel.ECSTATIC
    mood.last_calculated = now
    return updated


def resolution_due_at(
    cooldown: CooldownState, minutes: int = config.COOLDOWN_MINUTES
) -> datetime | None:
    if not cooldown.active or cooldown.triggered_at is None:
        return None
    return cooldown.triggered_at + timedelta(minutes=minutes)


def is_due(
    cooldown: CooldownState, now: datetime, minutes: int = config.COOLDOWN_MINUTES
) -> bool:
    """Whether the cooldown has run its course since the latest interaction."""
    due_at = resolution_due_at(cooldown, minutes)
    return due_at is not None and now >= due_at


def resolve(cooldown: CooldownState, mood: MoodState, now: datetime) -> CooldownState:
    """
    Land the mood on the pre-interaction score plus the stacked bonus.

    Resolving an inactive cooldown leaves ``mood`` untouched.

    Returns:
        An inactive cooldown state
    """
    if not cooldown.active:
        return cooldown

    base = cooldown.pre_interaction_score
    if base is None:
        base = mood.score
    score = int(clamp(base + cooldown.stacked_bonus))
    mood.score = score
    mood.state = classify(score)
    mood.last_calculated = now
    return CooldownState()


def celebration_text(username: str) -> str:
    """Reason shown while the ecstatic override is on display."""
    return f"Just got some love from @{username}! Tail wagging at full speed"
