from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

from restcontract.config import DEFAULT_CONTRACT_FILE
from restcontract.core.discovery import SKIPPED_DIRECTORIES
from restcontract.core.languages import is_contract_file, is_source_file
from restcontract.core.workspace import Workspace

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[set[Path], set[Path]], Coroutine[Any, Any, None]]


def _is_relevant_file(path: Path, directory: Path, contract_file: str) -> bool:
    try:
        relative = path.relative_to(directory)
    except ValueError:
        relative = path
    if any(part in SKIPPED_DIRECTORIES or part.startswith(".") for part in relative.parent.parts):
        return False
    return is_source_file(path) or is_contract_file(path, contract_file)


class WatchfilesWatcher:
    """Watch a directory for source and contract changes and report them in batches.

    Implements the ``FileWatcherPort`` protocol. The callback receives the
    changed paths and the deleted paths separately.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: ChangeCallback,
        contract_file: str = DEFAULT_CONTRACT_FILE,
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._contract_file = contract_file
        self._task: asyncio.Task[None] | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching %s", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            changed: set[Path] = set()
            deleted: set[Path] = set()
            for change, raw_path in changes:
                path = Path(raw_path)
                if not _is_relevant_file(path, self._directory, self._contract_file):
                    continue
                (deleted if change == Change.deleted else changed).add(path)
            if changed or deleted:
                logger.info("Detected %d changed and %d deleted file(s)", len(changed), len(deleted))
                try:
                    await self._on_change(changed, deleted)
                except Exception:
                    logger.exception("Error in watcher callback")


def workspace_feeder(workspace: Workspace) -> ChangeCallback:
    """Callback that pushes file changes into ``workspace`` through its scheduler."""

    async def _feed(changed: set[Path], deleted: set[Path]) -> None:
        for path in sorted(deleted):
            workspace.close(str(path))
        # contracts first so sources are checked against the new version
        for path in sorted(changed, key=lambda p: (not is_contract_file(p, workspace.contract_file), str(p))):
            try:
                text = path.read_text(encoding="utf-8")
            except OSError:
                logger.warning("Could not read %s", path)
                continue
            workspace.change(str(path), text)

    return _feed
