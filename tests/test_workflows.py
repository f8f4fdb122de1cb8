"""Checks on the shipped GitHub Actions workflows."""

import re
from pathlib import Path

import pytest

WORKFLOWS = Path(__file__).resolve().parent.parent / ".github" / "workflows"


def jobs(path: Path) -> dict[str, str]:
    """Split a workflow into job bodies keyed by job id."""
    text = path.read_text(encoding="utf-8")
    body = text.split("\njobs:\n", 1)[1]
    parts = re.split(r"^  ([\w-]+):\n", body, flags=re.MULTILINE)
    return dict(zip(parts[1::2], parts[2::2]))


def writing_jobs() -> list[tuple[str, str]]:
    return [
        (f"{path.name}:{name}", job)
        for path in sorted(WORKFLOWS.glob("*.yml"))
        for name, job in jobs(path).items()
        if "mood-poodle " in job
    ]


class TestWorkflows:
    def test_there_are_state_writing_jobs(self):
        names = [name for name, _ in writing_jobs()]
        assert "update-mood.yml:update" in names
        assert "interact.yml:interact" in names
        assert "interact.yml:resolve-cooldown" in names

    @pytest.mark.parametrize("name,job", writing_jobs())
    def test_writers_share_one_queue(self, name, job):
        assert "group: poodle-state" in job, name
        assert "cancel-in-progress: false" in job, name

    @pytest.mark.parametrize("name,job", writing_jobs())
    def test_writers_start_from_branch_head(self, name, job):
        assert "ref: ${{ github.event.repository.default_branch }}" in job, name

    @pytest.mark.parametrize("name,job", writing_jobs())
    def test_writers_do_not_sleep_while_holding_the_queue(self, name, job):
        assert "sleep" not in job, name
