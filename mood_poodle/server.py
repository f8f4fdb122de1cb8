"""
FastAPI server for the Mood Poodle.

This module exposes the current mood over HTTP, streams mood changes with
Server-Sent Events, and accepts interactions. A single server process is the
only writer it needs to coordinate with in-process; the state store guards
against writers in other processes.
"""

import asyncio
import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from . import __version__, config
from .models import MoodState
from .service import InteractionEvent, PoodleService
from .store import ConcurrentWriteError, MissingStateError, StateStore


# API Request/Response Schemas
class MoodResponse(BaseModel):
    """Response model for the mood endpoint."""

    mood: MoodState = Field(..., description="The current mood state")
    reason: str = Field(..., description="Why the poodle feels this way")
    cooldown_active: bool = Field(..., description="Whether the ecstatic override is on")
    version: int = Field(..., description="State document version")


class InteractionRequest(BaseModel):
    """Payload for interaction requests."""

    text: str = Field(..., description="The comment text to interpret")
    username: str = Field(..., description="Who sent the comment")
    issue_number: int | None = Field(None, description="Originating issue")
    new_issue: bool = Field(False, description="Whether the comment opened the issue")


class InteractionResponse(BaseModel):
    """Outcome of an interaction."""

    command: str
    accepted: bool
    rate_limited: bool
    bonus: int
    remaining: int
    resolve_after: datetime | None = None


def create_app(store: StateStore, service: PoodleService | None = None) -> FastAPI:
    """
    Create a FastAPI application around the given state store.

    Args:
        store: The StateStore holding the poodle's state
        service: Service used for interactions; built from ``store`` if omitted

    Returns:
        Configured FastAPI application
    """
    service = service or PoodleService(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        yield

    app = FastAPI(
        title="Mood Poodle",
        description="Mood state and interactions for the Mood Poodle",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "mood-poodle"}

    @app.get("/mood")
    async def get_mood() -> MoodResponse:
        """
        Get the current mood state.

        Returns:
            The current mood with its reason text
        """
        try:
            snapshot = await service.snapshot()
        except MissingStateError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return MoodResponse(
            mood=snapshot.mood,
            reason=snapshot.reason,
            cooldown_active=snapshot.cooldown_active,
            version=snapshot.version,
        )

    @app.post("/interactions")
    async def interact(request: InteractionRequest) -> InteractionResponse:
        """
        Process a pet or feed command.

        Unrecognised text and rate-limited users are reported, not rejected.
        """
        event = InteractionEvent(
            text=request.text,
            username=request.username,
            issue_number=request.issue_number,
            new_issue=request.new_issue,
        )
        try:
            result = await service.handle_interaction(event)
        except MissingStateError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except ConcurrentWriteError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return InteractionResponse(
            command=result.command.value,
            accepted=result.accepted,
            rate_limited=result.rate_limited,
            bonus=result.bonus,
            remaining=result.remaining,
            resolve_after=result.resolve_after,
        )

    @app.get("/mood/stream")
    async def stream_mood() -> StreamingResponse:
        """
        Stream mood updates via Server-Sent Events.

        The connection receives the current mood immediately, then one event
        per commit made by this server.

        Returns:
            StreamingResponse with text/event-stream content type
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for mood updates."""
            try:
                async with store.stream() as mood_stream:
                    async for mood in mood_stream:
                        data = mood.model_dump_json(by_alias=True)
                        yield f"data: {data}\n\n"
            except asyncio.CancelledError:
                pass
            except Exception as e:
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "*",
            },
        )

    return app


app = create_app(StateStore(config.STATE_PATH))


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    uvicorn.run(
        "mood_poodle.server:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
