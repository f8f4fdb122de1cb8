"""Configuration driven by environment variables.

Every setting has a default suitable for a profile repository checked out by a
GitHub Actions runner.
"""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

STATE_PATH: Path = Path(os.getenv("MOOD_POODLE_STATE", "data/poodle-state.json"))
README_PATH: Path = Path(os.getenv("MOOD_POODLE_README", "README.md"))
ASSET_DIR: str = os.getenv("MOOD_POODLE_ASSET_DIR", "assets/poodle")

# ---------------------------------------------------------------------------
# Mood engine
# ---------------------------------------------------------------------------

INTERACTION_BONUS: int = 3          # added to the decaying bonus per interaction
COOLDOWN_STACK_BONUS: int = 5       # landing bonus per interaction during cooldown
INTERACTION_LOG_LIMIT: int = 100

# The scheduled update runs on this cadence; each run decays the bonus once.
DECAY_INTERVAL_HOURS: int = int(os.getenv("MOOD_POODLE_DECAY_INTERVAL_HOURS", "6"))

# How long the forced ecstatic display lasts after the latest interaction.
COOLDOWN_MINUTES: int = int(os.getenv("MOOD_POODLE_COOLDOWN_MINUTES", "10"))

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

RATE_LIMIT_WINDOW_HOURS: int = int(os.getenv("MOOD_POODLE_RATE_WINDOW_HOURS", "24"))
RATE_LIMIT_MAX: int = int(os.getenv("MOOD_POODLE_RATE_MAX", "5"))

# ---------------------------------------------------------------------------
# State store
# ---------------------------------------------------------------------------

# Attempts made by StateStore.mutate before giving up on a write conflict.
WRITE_RETRIES: int = int(os.getenv("MOOD_POODLE_WRITE_RETRIES", "3"))

# ---------------------------------------------------------------------------
# GitHub / HTTP API
# ---------------------------------------------------------------------------

GITHUB_API_URL: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
API_HOST: str = os.getenv("MOOD_POODLE_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("MOOD_POODLE_PORT", "8000"))
LOG_LEVEL: str = os.getenv("MOOD_POODLE_LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class CommandPhrases(BaseModel):
    """Case-insensitive phrases that trigger each interaction."""

    pet: list[str] = Field(
        default_factory=lambda: ["!pet", "pet the poodle", "poodle pet"]
    )
    feed: list[str] = Field(
        default_factory=lambda: [
            "!feed",
            "feed the poodle",
            "poodle feed",
            "!treat",
            "treat",
        ]
    )


def load_command_phrases(path: str | os.PathLike[str] | None = None) -> CommandPhrases:
    """Load command phrases from a JSON file, or fall back to the built-ins.

    The file is taken from ``path`` or ``MOOD_POODLE_COMMANDS_FILE``. Actions
    missing from the file keep their default phrases.
    """
    source = path or os.getenv("MOOD_POODLE_COMMANDS_FILE")
    if not source:
        return CommandPhrases()
    data = json.loads(Path(source).read_text(encoding="utf-8"))
    return CommandPhrases.model_validate(data)
