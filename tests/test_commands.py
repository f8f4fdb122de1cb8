"""Tests for comment classification and phrase configuration."""

import json

import pytest

from mood_poodle.commands import Command, classify_command
from mood_poodle.config import CommandPhrases, load_command_phrases
from mood_poodle.models import InteractionType


class TestClassifyCommand:
    @pytest.mark.parametrize(
        "text",
        ["!pet", "Please PET THE POODLE", "poodle pet time", "hey !Pet :)"],
    )
    def test_pet_phrases(self, text):
        assert classify_command(text) == Command.PET

    @pytest.mark.parametrize(
        "text",
        ["!feed", "Feed the poodle please", "poodle feed", "!treat", "here is a treat"],
    )
    def test_feed_phrases(self, text):
        assert classify_command(text) == Command.FEED

    def test_pet_wins_over_feed(self):
        assert classify_command("!pet and !feed") == Command.PET

    def test_unrecognized(self):
        assert classify_command("what does this do?") == Command.UNRECOGNIZED
        assert classify_command("") == Command.UNRECOGNIZED

    def test_interaction_mapping(self):
        assert Command.PET.interaction is InteractionType.PET
        assert Command.FEED.interaction is InteractionType.FEED
        assert Command.UNRECOGNIZED.interaction is None

    def test_custom_phrases(self):
        phrases = CommandPhrases(pet=["scritch"], feed=["snack"])
        assert classify_command("scritch scritch", phrases) == Command.PET
        assert classify_command("a snack!", phrases) == Command.FEED
        assert classify_command("!pet", phrases) == Command.UNRECOGNIZED


class TestLoadCommandPhrases:
    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv("MOOD_POODLE_COMMANDS_FILE", raising=False)
        assert load_command_phrases() == CommandPhrases()

    def test_file_overrides_listed_actions(self, tmp_path):
        path = tmp_path / "commands.json"
        path.write_text(json.dumps({"pet": ["boop"]}), encoding="utf-8")

        phrases = load_command_phrases(path)

        assert phrases.pet == ["boop"]
        assert phrases.feed == CommandPhrases().feed

    def test_env_variable_names_the_file(self, tmp_path, monkeypatch):
        path = tmp_path / "commands.json"
        path.write_text(json.dumps({"feed": ["kibble"]}), encoding="utf-8")
        monkeypatch.setenv("MOOD_POODLE_COMMANDS_FILE", str(path))

        assert load_command_phrases().feed == ["kibble"]
