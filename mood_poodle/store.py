"""
State storage for the Mood Poodle.

This module provides a file-backed store for the single state document. Every
commit overwrites the whole document atomically. Writers inside one process
are serialised through an asyncio condition, and writers in separate processes
are kept honest with a version check made under an exclusive file lock.
Subscribers can stream mood snapshots as commits happen in-process.
"""

import asyncio
import fcntl
import logging
import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import TypeVar

from . import config
from .models import MoodState, StateDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateError(Exception):
    """Base class for state store failures."""


class MissingStateError(StateError):
    """The state document does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"No state document at {path}; run 'mood-poodle init' first")
        self.path = path


class ConcurrentWriteError(StateError):
    """The document changed on disk since it was loaded. Safe to retry."""

    def __init__(self, expected: int, found: int) -> None:
        super().__init__(
            f"State document is at version {found}, expected {expected}"
        )
        self.expected = expected
        self.found = found


class StateStore:
    """
    File-backed store for the state document.

    ``load`` returns a fresh copy; callers mutate it and hand it back to
    ``save``, which only commits when nobody else committed in between.
    """

    def __init__(self, path: Path | str = config.STATE_PATH) -> None:
        self.path = Path(path)
        self._condition = asyncio.Condition()
        self._update_counter = 0  # Incremented on every in-process commit
        self._last_mood: MoodState | None = None

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    # MARK: - Persistence

    def exists(self) -> bool:
        return self.path.exists()

    async def load(self) -> StateDocument:
        """
        Read the state document.

        Raises:
            MissingStateError: If the document has not been seeded
        """
        return self._read()

    async def save(self, document: StateDocument) -> StateDocument:
        """
        Commit ``document`` and notify all subscribers.

        Args:
            document: A document previously obtained from ``load``

        Returns:
            The committed document, with its version incremented

        Raises:
            ConcurrentWriteError: If the document on disk has moved on
        """
        async with self._condition:
            committed = self._commit(document, expected_version=document.version)
            self._notify(committed)
            return committed

    async def seed(self, document: StateDocument, overwrite: bool = False) -> StateDocument:
        """Write the initial document. Refuses to clobber an existing one."""
        async with self._condition:
            with self._locked():
                if self.path.exists() and not overwrite:
                    raise StateError(f"State document already exists at {self.path}")
                committed = document.model_copy(update={"version": 0})
                self._write(committed)
            self._notify(committed)
            return committed

    async def mutate(
        self,
        change: Callable[[StateDocument], T],
        retries: int = config.WRITE_RETRIES,
        commit_if: Callable[[T], bool] | None = None,
    ) -> tuple[StateDocument, T]:
        """
        Load, apply ``change`` to the document and save it.

        On a write conflict the document is reloaded and ``change`` applied
        again, up to ``retries`` attempts in total. When ``commit_if`` is
        given and returns false for the result of ``change``, nothing is
        written.

        Returns:
            The committed (or untouched, loaded) document and whatever
            ``change`` returned
        """
        attempt = 0
        while True:
            attempt += 1
            async with self._condition:
                document = self._read()
                result = change(document)
                if commit_if is not None and not commit_if(result):
                    return self._read(), result
                try:
                    committed = self._commit(document, expected_version=document.version)
                except ConcurrentWriteError:
                    if attempt >= max(1, retries):
                        raise
                    logger.warning(
                        "Write conflict on %s (attempt %d/%d), retrying",
                        self.path,
                        attempt,
                        retries,
                    )
                    continue
                self._notify(committed)
                return committed, result

    # MARK: - Streaming

    @asynccontextmanager
    async def stream(self) -> AsyncGenerator[AsyncGenerator[MoodState, None], None]:
        """
        Stream mood snapshots to a subscriber.

        The generator yields the current mood immediately, then one snapshot
        per commit made through this store.

        Yields:
            An async generator of MoodState objects
        """

        async def mood_generator() -> AsyncGenerator[MoodState, None]:
            async with self._condition:
                last_seen_counter = self._update_counter
                current = self._last_mood or self._read().mood
            yield current

            try:
                while True:
                    async with self._condition:
                        await self._condition.wait_for(
                            lambda: self._update_counter > last_seen_counter
                        )
                        last_seen_counter = self._update_counter
                        current = self._last_mood
                    if current is not None:
                        yield current

            except (asyncio.CancelledError, GeneratorExit):
                return

        yield mood_generator()

    # MARK: - Private Helpers

    def _notify(self, committed: StateDocument) -> None:
        """Record the committed mood and wake subscribers. Caller holds the condition."""
        self._last_mood = committed.mood.model_copy()
        self._update_counter += 1
        self._condition.notify_all()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive lock on the sidecar lock file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a+") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read(self) -> StateDocument:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise MissingStateError(self.path) from None
        return StateDocument.model_validate_json(raw)

    def _commit(self, document: StateDocument, expected_version: int) -> StateDocument:
        with self._locked():
            on_disk = self._read()
            if on_disk.version != expected_version:
                raise ConcurrentWriteError(expected_version, on_disk.version)
            committed = document.model_copy(update={"version": expected_version + 1})
            self._write(committed)
        logger.debug("Committed %s at version %d", self.path, committed.version)
        return committed

    def _write(self, document: StateDocument) -> None:
        """Write the whole document to a temp file and move it into place."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(document.to_json())
                tmp.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
