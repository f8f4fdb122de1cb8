"""Canned replies posted back to the issue thread."""

from .commands import Command
from .processor import InteractionResult

_THANKS = {
    Command.PET: "🐩 *happy wiggle* Thanks for the pets, @{username}!",
    Command.FEED: "🦴 *crunch crunch* Thanks for the treat, @{username}!",
}

HELP = (
    "🐩 Woof! I only understand a few commands:\n\n"
    "- `!pet` (or *pet the poodle*) to give me a scratch\n"
    "- `!feed` or `!treat` (or *feed the poodle*) to give me a snack\n\n"
    "Each visitor can interact {limit} times a day."
)


def thank_you(username: str, result: InteractionResult) -> str:
    lines = [
        _THANKS[result.command].format(username=username),
        "",
        f"Mood bonus: +{result.bonus}. I'm ecstatic for a little while!",
        f"You have {result.remaining} interaction(s) left today.",
    ]
    return "\n".join(lines)


def rate_limited(username: str, limit: int, window_hours: int) -> str:
    return (
        f"🐩 *yawn* I've had a lot of attention today, @{username}. "
        f"You can interact up to {limit} times every {window_hours} hours; come back later!"
    )


def help_text(limit: int) -> str:
    return HELP.format(limit=limit)
