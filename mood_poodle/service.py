"""
Orchestration of the poodle's jobs.

``PoodleService`` wires the state store to its collaborators: an activity
source for the scheduled update, a notification sink for issue replies, a
display sink for the rendered mood and a clock. The state is committed before
any collaborator is notified, so a failed reply never undoes an interaction.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from . import config, cooldown, messages
from .config import CommandPhrases
from .contributions import ActivitySource, gather_stats
from .github import NotificationError
from .models import MoodState, StateDocument
from .processor import (
    CycleResult,
    InteractionResult,
    apply_cooldown_resolution,
    apply_update_cycle,
    current_reason,
    process_interaction,
)
from .render import DisplaySink, render_section
from .store import StateStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationSink(Protocol):
    async def post_comment(self, issue_number: int, body: str) -> None: ...

    async def close_issue(self, issue_number: int) -> None: ...


@dataclass
class InteractionEvent:
    """An issue comment (or a freshly opened issue) addressed to the poodle."""

    text: str
    username: str
    issue_number: int | None = None
    new_issue: bool = False


@dataclass
class MoodSnapshot:
    mood: MoodState
    reason: str
    cooldown_active: bool
    version: int


class PoodleService:
    """Runs the scheduled update, interactions and cooldown resolution."""

    def __init__(
        self,
        store: StateStore,
        activity_source: ActivitySource | None = None,
        notifier: NotificationSink | None = None,
        display: DisplaySink | None = None,
        clock: Clock = utc_now,
        phrases: CommandPhrases | None = None,
    ) -> None:
        self.store = store
        self.activity_source = activity_source
        self.notifier = notifier
        self.display = display
        self.clock = clock
        self.phrases = phrases or config.load_command_phrases()

    async def snapshot(self) -> MoodSnapshot:
        """Current mood with its reason text."""
        document = await self.store.load()
        return MoodSnapshot(
            mood=document.mood,
            reason=current_reason(document, self.clock()),
            cooldown_active=document.cooldown.active,
            version=document.version,
        )

    async def run_update_cycle(self, username: str) -> CycleResult:
        """Refresh contribution stats for ``username`` and rescore the mood."""
        now = self.clock()
        if self.activity_source is None:
            raise RuntimeError("The scheduled update needs an activity source")
        # Fetched outside the store lock.
        stats = await gather_stats(self.activity_source, username, now)

        document, result = await self.store.mutate(
            lambda doc: apply_update_cycle(doc, stats, now)
        )
        logger.info(
            "Scheduled update: score=%d state=%s bonus=%d%s%s",
            result.score,
            result.state.value,
            result.interaction_bonus,
            "" if result.decayed else " (already decayed this cycle)",
            " (mood frozen by cooldown)" if result.mood_frozen else "",
        )
        reason = current_reason(document, now) if result.mood_frozen else result.reason
        self._publish(document, reason, now)
        return result

    async def handle_interaction(self, event: InteractionEvent) -> InteractionResult:
        """Process one comment and reply to it."""
        now = self.clock()

        def change(doc: StateDocument) -> InteractionResult:
            return process_interaction(
                doc, event.text, event.username, event.issue_number, now, self.phrases
            )

        # Unrecognised and rate-limited comments leave the document as it was.
        document, result = await self.store.mutate(
            change, commit_if=lambda outcome: outcome.accepted
        )

        if result.accepted:
            logger.info(
                "%s accepted from %s (%d left)",
                result.command.value,
                event.username,
                result.remaining,
            )
            self._publish(document, result.reason or current_reason(document, now), now)
            await self._reply(event, messages.thank_you(event.username, result))
        elif result.rate_limited:
            logger.info("Rate limited %s", event.username)
            await self._reply(
                event,
                messages.rate_limited(
                    event.username, config.RATE_LIMIT_MAX, config.RATE_LIMIT_WINDOW_HOURS
                ),
            )
        else:
            logger.info("Unrecognised command from %s", event.username)
            await self._reply(event, messages.help_text(config.RATE_LIMIT_MAX))
            if event.new_issue:
                await self._close(event)
        return result

    async def resolve_cooldown(self, force: bool = False) -> bool:
        """Land the mood after the ecstatic override, if it is due."""
        now = self.clock()
        document = await self.store.load()
        if not document.cooldown.active:
            logger.info("No active cooldown to resolve")
            return False
        if not force and not cooldown.is_due(document.cooldown, now):
            logger.info(
                "Cooldown not due until %s",
                cooldown.resolution_due_at(document.cooldown),
            )
            return False

        document, changed = await self.store.mutate(
            lambda doc: apply_cooldown_resolution(doc, now, force=force),
            commit_if=bool,
        )
        if changed:
            logger.info(
                "Cooldown resolved: score=%d state=%s",
                document.mood.score,
                document.mood.state.value,
            )
            self._publish(document, current_reason(document, now), now)
        return changed

    # MARK: - Private Helpers

    def _publish(self, document: StateDocument, reason: str, now: datetime) -> None:
        if self.display is not None:
            self.display.publish(render_section(document, reason, now))

    async def _reply(self, event: InteractionEvent, body: str) -> None:
        if self.notifier is None or event.issue_number is None:
            return
        try:
            await self.notifier.post_comment(event.issue_number, body)
        except NotificationError as e:
            logger.warning("Could not reply on issue #%s: %s", event.issue_number, e)

    async def _close(self, event: InteractionEvent) -> None:
        if self.notifier is None or event.issue_number is None:
            return
        try:
            await self.notifier.close_issue(event.issue_number)
        except NotificationError as e:
            logger.warning("Could not close issue #%s: %s", event.issue_number, e)
