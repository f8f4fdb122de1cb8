"""Classification of free-text issue comments into poodle commands."""

from enum import Enum

from .config import CommandPhrases
from .models import InteractionType


class Command(str, Enum):
    PET = "pet"
    FEED = "feed"
    UNRECOGNIZED = "unrecognized"

    @property
    def interaction(self) -> InteractionType | None:
        if self is Command.UNRECOGNIZED:
            return None
        return InteractionType(self.value)


def classify_command(text: str, phrases: CommandPhrases | None = None) -> Command:
    """
    Classify comment text by case-insensitive substring match.

    Pet phrases are tried before feed phrases; the first action with a
    matching phrase wins.
    """
    phrases = phrases or CommandPhrases()
    lowered = text.lower()
    for command, candidates in (
        (Command.PET, phrases.pet),
        (Command.FEED, phrases.feed),
    ):
        if any(phrase.lower() in lowered for phrase in candidates if phrase):
            return command
    return Command.UNRECOGNIZED
