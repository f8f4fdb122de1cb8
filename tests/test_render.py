"""Tests for the Markdown mood section."""

from conftest import TS

from mood_poodle.models import MoodLabel, StateDocument
from mood_poodle.render import (
    END_MARKER,
    START_MARKER,
    MarkdownFileDisplay,
    render_section,
    replace_section,
)


class TestRenderSection:
    def test_section_shows_mood_reason_and_totals(self):
        document = StateDocument()
        document.mood.score = 72
        document.mood.state = MoodLabel.HAPPY
        document.interactions.total_pets = 4
        document.interactions.total_feeds = 2

        section = render_section(document, "Contributed today", TS, asset_dir="img")

        assert section.startswith(START_MARKER)
        assert section.endswith(END_MARKER)
        assert 'src="img/happy.png"' in section
        assert "(72/100)" in section
        assert "_Contributed today_" in section
        assert "4 pets" in section
        assert "2 treats" in section
        assert "2024-06-01 12:00 UTC" in section


class TestReplaceSection:
    def test_replaces_only_the_marked_region(self):
        text = f"# Hi\n\n{START_MARKER}\nold\n{END_MARKER}\n\nFooter\n"
        section = f"{START_MARKER}\nnew\n{END_MARKER}"

        updated = replace_section(text, section)

        assert updated == f"# Hi\n\n{section}\n\nFooter\n"

    def test_appends_when_markers_missing(self):
        section = f"{START_MARKER}\nnew\n{END_MARKER}"
        assert replace_section("# Hi", section) == f"# Hi\n\n{section}\n"
        assert replace_section("", section) == f"{section}\n"

    def test_backslashes_in_section_are_kept(self):
        section = f"{START_MARKER}\npath\\1\n{END_MARKER}"
        text = f"{START_MARKER}\nold\n{END_MARKER}"
        assert replace_section(text, section) == section


class TestMarkdownFileDisplay:
    def test_publish_rewrites_file(self, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_text(f"# Me\n{START_MARKER}\n{END_MARKER}\n", encoding="utf-8")

        MarkdownFileDisplay(readme).publish(f"{START_MARKER}\npoodle\n{END_MARKER}")

        assert readme.read_text(encoding="utf-8") == (
            f"# Me\n{START_MARKER}\npoodle\n{END_MARKER}\n"
        )

    def test_publish_creates_missing_file(self, tmp_path):
        readme = tmp_path / "README.md"
        MarkdownFileDisplay(readme).publish(f"{START_MARKER}\npoodle\n{END_MARKER}")
        assert readme.exists()
