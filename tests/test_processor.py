"""Tests for the document mutations behind interactions, updates and resolution."""

from datetime import date, timedelta

from conftest import TS

from mood_poodle.commands import Command
from mood_poodle.models import (
    ContributionStats,
    InteractionType,
    MoodLabel,
    StateDocument,
)
from mood_poodle.processor import (
    apply_cooldown_resolution,
    apply_update_cycle,
    current_reason,
    decay_due,
    process_interaction,
)


class TestProcessInteraction:
    def setup_method(self):
        self.document = StateDocument()
        self.document.mood.score = 65
        self.document.mood.state = MoodLabel.HAPPY

    def test_accepted_pet_mutates_everything_once(self):
        result = process_interaction(self.document, "!pet", "alice", 7, TS)

        assert result.accepted is True
        assert result.command == Command.PET
        assert result.bonus == 3
        assert result.remaining == 4
        assert result.resolve_after == TS + timedelta(minutes=10)
        assert "@alice" in result.reason

        assert self.document.interactions.total_pets == 1
        assert self.document.interactions.total_feeds == 0
        entry = self.document.interactions.log[-1]
        assert (entry.username, entry.kind, entry.issue_number) == (
            "alice",
            InteractionType.PET,
            7,
        )
        assert self.document.decay.interaction_bonus == 3
        assert self.document.cooldown.active is True
        assert self.document.cooldown.pre_interaction_score == 65
        assert self.document.mood.score == 100
        assert self.document.mood.state == MoodLabel.ECSTATIC
        assert self.document.rate_limits["alice"] == [TS]

    def test_second_interaction_stacks(self):
        process_interaction(self.document, "!pet", "alice", 7, TS)
        result = process_interaction(
            self.document, "!treat", "bob", 8, TS + timedelta(minutes=2)
        )

        assert result.command == Command.FEED
        assert self.document.interactions.total_feeds == 1
        assert self.document.decay.interaction_bonus == 6
        assert self.document.cooldown.pre_interaction_score == 65
        assert self.document.cooldown.stacked_bonus == 10

        apply_cooldown_resolution(self.document, TS + timedelta(minutes=12))
        assert self.document.mood.score == 75
        assert self.document.mood.state == MoodLabel.HAPPY

    def test_unrecognized_leaves_document_untouched(self):
        before = self.document.model_copy(deep=True)
        result = process_interaction(self.document, "hello poodle", "alice", 7, TS)

        assert result.command == Command.UNRECOGNIZED
        assert result.recognized is False
        assert result.accepted is False
        assert result.rate_limited is False
        assert self.document == before

    def test_rate_limited_leaves_document_untouched(self):
        for minute in range(5):
            process_interaction(
                self.document, "!pet", "alice", 7, TS + timedelta(minutes=minute)
            )
        before = self.document.model_copy(deep=True)

        result = process_interaction(
            self.document, "!feed", "alice", 7, TS + timedelta(minutes=6)
        )

        assert result.accepted is False
        assert result.rate_limited is True
        assert result.remaining == 0
        assert result.bonus == 0
        assert self.document == before

    def test_log_is_capped_and_fifo(self):
        for i in range(130):
            # One interaction per user keeps everyone under the rate limit.
            process_interaction(
                self.document, "!pet", f"user{i}", None, TS + timedelta(seconds=i)
            )

        log = self.document.interactions.log
        assert len(log) == 100
        assert log[0].username == "user30"
        assert log[-1].username == "user129"
        assert [e.timestamp for e in log] == sorted(e.timestamp for e in log)
        assert self.document.interactions.total_pets == 130


class TestUpdateCycle:
    def setup_method(self):
        self.document = StateDocument()
        self.stats = ContributionStats(
            last_contribution_date=date(2024, 6, 1),
            count_7_days=10,
            count_30_days=40,
            repo_count=25,
            last_fetched=TS,
        )

    def test_decays_then_rescores(self):
        self.document.decay.interaction_bonus = 4

        result = apply_update_cycle(self.document, self.stats, TS)

        assert self.document.decay.interaction_bonus == 3
        assert self.document.decay.last_decay_applied == TS
        assert self.document.contributions == self.stats
        assert result.score == 86
        assert result.state == MoodLabel.ECSTATIC
        assert self.document.mood.score == 86
        assert self.document.mood.last_calculated == TS
        assert result.mood_frozen is False

    def test_second_run_in_same_cycle_does_not_decay_again(self):
        self.document.decay.interaction_bonus = 4

        first = apply_update_cycle(self.document, self.stats, TS)
        second = apply_update_cycle(self.document, self.stats, TS + timedelta(minutes=20))

        assert first.decayed is True
        assert second.decayed is False
        assert self.document.decay.interaction_bonus == 3
        assert self.document.decay.last_decay_applied == TS
        assert second.score == 86

    def test_next_cycle_decays_again(self):
        self.document.decay.interaction_bonus = 4
        apply_update_cycle(self.document, self.stats, TS)

        # TS is 12:00 UTC; 18:05 falls in the next six-hour window.
        result = apply_update_cycle(
            self.document, self.stats, TS + timedelta(hours=6, minutes=5)
        )

        assert result.decayed is True
        assert self.document.decay.interaction_bonus == 2

    def test_decay_windows_are_aligned(self):
        assert decay_due(None, TS)
        assert not decay_due(TS, TS + timedelta(hours=5, minutes=59))
        assert decay_due(TS - timedelta(minutes=1), TS)
        assert decay_due(TS, TS + timedelta(hours=1), interval_hours=1)

    def test_cooldown_freezes_mood_but_not_decay(self):
        self.document.mood.score = 40
        process_interaction(self.document, "!pet", "alice", 1, TS)

        result = apply_update_cycle(self.document, ContributionStats(), TS + timedelta(minutes=1))

        assert result.mood_frozen is True
        assert self.document.decay.interaction_bonus == 2
        assert self.document.mood.score == 100
        assert self.document.mood.state == MoodLabel.ECSTATIC
        assert self.document.cooldown.active is True


class TestCooldownResolution:
    def setup_method(self):
        self.document = StateDocument()
        self.document.mood.score = 65
        self.document.mood.state = MoodLabel.HAPPY

    def test_not_due_is_skipped_unless_forced(self):
        process_interaction(self.document, "!pet", "alice", 1, TS)

        assert apply_cooldown_resolution(self.document, TS + timedelta(minutes=5)) is False
        assert self.document.cooldown.active is True

        assert apply_cooldown_resolution(
            self.document, TS + timedelta(minutes=5), force=True
        ) is True
        assert self.document.mood.score == 70
        assert self.document.cooldown.active is False

    def test_inactive_is_a_noop(self):
        before = self.document.model_copy(deep=True)
        assert apply_cooldown_resolution(self.document, TS, force=True) is False
        assert self.document == before


class TestCurrentReason:
    def test_celebrates_during_cooldown(self):
        document = StateDocument()
        process_interaction(document, "!pet", "alice", 1, TS)
        assert "@alice" in current_reason(document, TS)

    def test_uses_contribution_reason_otherwise(self):
        document = StateDocument()
        assert current_reason(document, TS) == "No contributions found yet"
