"""
Presentation of the mood as a Markdown region.

The section is delimited by HTML comments so it can be replaced inside a
larger document such as a profile README without touching anything else.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from . import config
from .models import MoodLabel, StateDocument

logger = logging.getLogger(__name__)

START_MARKER = "<!-- MOOD-POODLE:START -->"
END_MARKER = "<!-- MOOD-POODLE:END -->"

_REGION = re.compile(
    re.escape(START_MARKER) + r".*?" + re.escape(END_MARKER), re.DOTALL
)


@dataclass(frozen=True)
class MoodAppearance:
    emoji: str
    asset: str
    caption: str


APPEARANCES: dict[MoodLabel, MoodAppearance] = {
    MoodLabel.SAD: MoodAppearance("😢", "sad.png", "is feeling sad"),
    MoodLabel.BORED: MoodAppearance("😐", "bored.png", "is bored"),
    MoodLabel.CONTENT: MoodAppearance("🙂", "content.png", "is content"),
    MoodLabel.HAPPY: MoodAppearance("😄", "happy.png", "is happy"),
    MoodLabel.ECSTATIC: MoodAppearance("🤩", "ecstatic.png", "is ecstatic"),
}


class DisplaySink(Protocol):
    def publish(self, section: str) -> None: ...


def render_section(
    document: StateDocument,
    reason: str,
    now: datetime,
    asset_dir: str = config.ASSET_DIR,
) -> str:
    """Render the mood section, markers included."""
    label = document.mood.state
    look = APPEARANCES[label]
    history = document.interactions
    lines = [
        START_MARKER,
        '<div align="center">',
        "",
        f'<img src="{asset_dir}/{look.asset}" alt="Mood Poodle {look.caption}" width="200" />',
        "",
        f"### {look.emoji} Mood Poodle {look.caption} ({document.mood.score}/100)",
        "",
        f"_{reason}_",
        "",
        f"🐾 {history.total_pets} pets · 🦴 {history.total_feeds} treats",
        "",
        "<sub>Open an issue with <code>!pet</code> or <code>!feed</code> to cheer it up"
        f" · Updated {now:%Y-%m-%d %H:%M} UTC</sub>",
        "",
        "</div>",
        END_MARKER,
    ]
    return "\n".join(lines)


def replace_section(text: str, section: str) -> str:
    """Swap the marked region in ``text`` for ``section``, appending it if absent."""
    if _REGION.search(text):
        return _REGION.sub(lambda _: section, text, count=1)
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}\n{section}\n" if text else f"{section}\n"


class MarkdownFileDisplay:
    """Display sink that keeps the mood section of a Markdown file up to date."""

    def __init__(self, path: Path | str = config.README_PATH) -> None:
        self.path = Path(path)

    def publish(self, section: str) -> None:
        current = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
        updated = replace_section(current, section)
        if updated != current:
            self.path.write_text(updated, encoding="utf-8")
            logger.info("Updated mood section in %s", self.path)
