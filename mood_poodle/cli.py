"""
Command-line interface for the Mood Poodle.

The local commands are what the GitHub Actions workflows run: seeding the
state, the scheduled update, processing an issue comment and resolving the
cooldown. The remote commands talk to a running Mood Poodle server.
"""

import asyncio
import json
import logging
import os
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse

from . import config
from .github import GitHubClient
from .models import MoodState, StateDocument
from .render import MarkdownFileDisplay
from .service import InteractionEvent, PoodleService, utc_now
from .store import ConcurrentWriteError, MissingStateError, StateError, StateStore

DEFAULT_BASE_URL = f"http://localhost:{config.API_PORT}"

# Exit code for a write conflict that outlived its retries (EX_TEMPFAIL).
EXIT_RETRY = 75

app = typer.Typer(help="Mood Poodle: a GitHub profile pet")

StateOption = typer.Option(
    config.STATE_PATH, "--state", "-s", help="Path to the state document"
)
ReadmeOption = typer.Option(
    config.README_PATH, "--readme", help="Markdown file holding the mood section"
)
TokenOption = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub token")
RepoOption = typer.Option(
    None, "--repo", envvar="GITHUB_REPOSITORY", help="owner/name for issue replies"
)
UrlOption = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Mood Poodle server"
)


@app.callback()
def main(
    log_level: str = typer.Option(
        config.LOG_LEVEL, "--log-level", envvar="MOOD_POODLE_LOG_LEVEL", help="Logging level"
    ),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# MARK: - Local Commands


@app.command()
def init(
    state: Path = StateOption,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing document"),
) -> None:
    """Seed a fresh state document."""

    async def _init() -> None:
        now = utc_now()
        document = StateDocument()
        document.mood.last_calculated = now
        document.decay.last_decay_applied = now
        await StateStore(state).seed(document, overwrite=force)
        print(f"Seeded state at {state}")

    _run_with_error_handling(_init())


@app.command()
def update(
    username: str = typer.Option(
        ..., "--username", envvar="POODLE_USERNAME", help="Account whose activity drives the mood"
    ),
    state: Path = StateOption,
    readme: Path = ReadmeOption,
    token: str | None = TokenOption,
) -> None:
    """Run the scheduled update: fetch activity, decay the bonus, rescore."""

    async def _update() -> None:
        async with GitHubClient(token=token) as github:
            service = PoodleService(
                StateStore(state),
                activity_source=github,
                display=MarkdownFileDisplay(readme),
            )
            result = await service.run_update_cycle(username)
        frozen = " (cooldown active, mood unchanged)" if result.mood_frozen else ""
        print(f"Mood: {result.state.value} ({result.score}/100){frozen}")
        print(f"Reason: {result.reason}")

    _run_with_error_handling(_update())


@app.command()
def interact(
    text: str = typer.Option(..., "--text", "-t", help="Comment or issue text"),
    user: str = typer.Option(..., "--user", help="Author of the comment"),
    issue: int | None = typer.Option(None, "--issue", help="Issue number to reply on"),
    new_issue: bool = typer.Option(
        False, "--new-issue", help="The text comes from a freshly opened issue"
    ),
    state: Path = StateOption,
    readme: Path = ReadmeOption,
    token: str | None = TokenOption,
    repo: str | None = RepoOption,
) -> None:
    """Process a pet or feed command from an issue."""

    async def _interact() -> None:
        async with GitHubClient(token=token, repository=repo) as github:
            service = PoodleService(
                StateStore(state),
                notifier=github,
                display=MarkdownFileDisplay(readme),
            )
            result = await service.handle_interaction(
                InteractionEvent(text=text, username=user, issue_number=issue, new_issue=new_issue)
            )

        if result.accepted:
            print(f"{result.command.value} accepted: +{result.bonus}, {result.remaining} left today")
            if result.resolve_after is not None:
                print(f"Resolve cooldown after {result.resolve_after.isoformat()}")
                _write_github_output(cooldown_resolve_after=result.resolve_after.isoformat())
        elif result.rate_limited:
            print(f"{user} is rate limited")
        else:
            print("Unrecognised command, help posted")
        _write_github_output(accepted=str(result.accepted).lower())

    _run_with_error_handling(_interact())


@app.command("resolve-cooldown")
def resolve_cooldown(
    state: Path = StateOption,
    readme: Path = ReadmeOption,
    force: bool = typer.Option(False, "--force", help="Resolve even if not yet due"),
) -> None:
    """Land the mood after the ecstatic override."""

    async def _resolve() -> None:
        service = PoodleService(StateStore(state), display=MarkdownFileDisplay(readme))
        if await service.resolve_cooldown(force=force):
            snapshot = await service.snapshot()
            print(f"Cooldown resolved: {snapshot.mood.state.value} ({snapshot.mood.score}/100)")
        else:
            print("Nothing to resolve")

    _run_with_error_handling(_resolve())


@app.command()
def show(
    state: Path = StateOption,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Show the mood stored in the local state document."""

    async def _show() -> None:
        store = StateStore(state)
        if json_output:
            print((await store.load()).to_json())
            return
        snapshot = await PoodleService(store).snapshot()
        print(_format_mood(snapshot.mood))
        print(snapshot.reason)

    _run_with_error_handling(_show())


@app.command()
def serve(
    state: Path = StateOption,
    host: str = typer.Option(config.API_HOST, "--host", help="Interface to bind"),
    port: int = typer.Option(config.API_PORT, "--port", help="Port to listen on"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(StateStore(state)), host=host, port=port)


# MARK: - Remote Commands


@app.command("get-mood")
def get_mood(
    base_url: str = UrlOption,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Get the current mood from a Mood Poodle server."""

    async def _get_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/mood")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            mood = MoodState.model_validate(result["mood"])
            print(_format_mood(mood))
            print(result["reason"])

    _run_with_error_handling(_get_mood(), base_url)


@app.command()
def stream(base_url: str = UrlOption) -> None:
    """Stream mood updates in real-time."""

    async def _stream() -> None:
        print(f"Streaming from {base_url}/mood/stream... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(
                client, "GET", f"{base_url}/mood/stream"
            ) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), base_url)


# MARK: - Private Helpers


def _format_mood(mood: MoodState) -> str:
    """Format mood with optional timestamp."""
    text = f"{mood.state.value} ({mood.score}/100)"
    if not mood.last_calculated:
        return text

    timestamp = mood.last_calculated.astimezone().strftime("%H:%M:%S")
    return f"{timestamp} > {text}"


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        if sse.event == "error":
            error_data = json.loads(sse.data)
            print(f"Server error: {error_data.get('error', 'Unknown error')}")
            return

        mood = MoodState.model_validate_json(sse.data)
        print(_format_mood(mood))

    except ValueError as e:
        print(f"Warning: Could not parse SSE data: {sse.data} - {e}")


def _write_github_output(**values: str) -> None:
    """Expose values to later workflow steps when running under GitHub Actions."""
    output = os.getenv("GITHUB_OUTPUT")
    if not output:
        return
    with open(output, "a", encoding="utf-8") as fh:
        for key, value in values.items():
            fh.write(f"{key}={value}\n")


def _run_with_error_handling(
    coro: Coroutine[Any, Any, Any], base_url: str | None = None
) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except MissingStateError as e:
        print(f"Error: {e}")
        raise typer.Exit(1)
    except ConcurrentWriteError as e:
        print(f"Error: {e}; try again")
        raise typer.Exit(EXIT_RETRY)
    except StateError as e:
        print(f"Error: {e}")
        raise typer.Exit(1)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
