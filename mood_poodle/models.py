"""
Shared data models for the Mood Poodle.

This module defines the persisted state document and the domain models used
across the engine, the interaction processor, the CLI and the API. Every model
serialises with camelCase aliases so the JSON document stays readable from
workflow scripts.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MoodLabel(str, Enum):
    """Discrete moods, ordered from worst to best."""

    SAD = "sad"
    BORED = "bored"
    CONTENT = "content"
    HAPPY = "happy"
    ECSTATIC = "ecstatic"


class InteractionType(str, Enum):
    """Interactions a visitor can trigger from an issue comment."""

    PET = "pet"
    FEED = "feed"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MoodState(_CamelModel):
    """The displayed mood."""

    score: int = Field(50, ge=0, le=100, description="Mood score")
    state: MoodLabel = Field(MoodLabel.CONTENT, description="Mood label for score")
    last_calculated: datetime | None = Field(
        None, description="When the mood was last computed or forced"
    )


class DecayState(_CamelModel):
    """Bonus earned from interactions, eroded by scheduled decay."""

    interaction_bonus: int = Field(0, ge=0)
    last_decay_applied: datetime | None = None


class ContributionStats(_CamelModel):
    """Snapshot of the account's contribution activity."""

    last_contribution_date: date | None = None
    count_7_days: int = Field(0, ge=0, alias="count7Days")
    count_30_days: int = Field(0, ge=0, alias="count30Days")
    repo_count: int = Field(0, ge=0)
    last_fetched: datetime | None = None


class InteractionEntry(_CamelModel):
    """One accepted pet or feed."""

    username: str
    kind: InteractionType = Field(..., alias="type")
    timestamp: datetime
    issue_number: int | None = None


class InteractionHistory(_CamelModel):
    """Bounded interaction log plus lifetime counters."""

    log: list[InteractionEntry] = Field(default_factory=list)
    total_pets: int = Field(0, ge=0)
    total_feeds: int = Field(0, ge=0)


class CooldownState(_CamelModel):
    """Ecstatic override that follows an interaction."""

    active: bool = False
    pre_interaction_score: int | None = Field(None, ge=0, le=100)
    stacked_bonus: int = Field(0, ge=0)
    triggered_at: datetime | None = None

    @model_validator(mode="after")
    def _inactive_is_empty(self) -> "CooldownState":
        if not self.active and (
            self.pre_interaction_score is not None
            or self.stacked_bonus
            or self.triggered_at is not None
        ):
            raise ValueError("inactive cooldown must not carry a score, bonus or trigger time")
        return self


class StateDocument(_CamelModel):
    """
    The single persisted document owned by the state store.

    ``version`` is an update token: the store increments it on every commit
    and refuses to overwrite a document that changed since it was loaded.
    """

    version: int = Field(0, ge=0)
    mood: MoodState = Field(default_factory=MoodState)
    decay: DecayState = Field(default_factory=DecayState)
    contributions: ContributionStats = Field(default_factory=ContributionStats)
    interactions: InteractionHistory = Field(default_factory=InteractionHistory)
    rate_limits: dict[str, list[datetime]] = Field(default_factory=dict)
    cooldown: CooldownState = Field(default_factory=CooldownState)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class RateLimitResult(BaseModel):
    """Outcome of a rate-limit check."""

    allowed: bool
    remaining: int = Field(..., ge=0)


class ContributionDay(_CamelModel):
    """A single day of the contribution calendar."""

    day: date = Field(..., alias="date")
    count: int = Field(0, ge=0)


class Activity(_CamelModel):
    """Raw activity returned by an activity source."""

    days: list[ContributionDay] = Field(default_factory=list)
    repo_count: int = Field(0, ge=0)
