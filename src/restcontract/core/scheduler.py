"""Per-document debounce of re-analysis."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Generic, TypeVar

from restcontract.config import DEFAULT_VALIDATION_DELAY_MS
from restcontract.models import TextDocument

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

Analysis = Callable[[TextDocument], Awaitable[None] | None]


class KeyedState(Generic[K, V]):
    """Session-scoped mapping with explicit get/set/remove."""

    def __init__(self) -> None:
        self._entries: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def set(self, key: K, value: V) -> None:
        self._entries[key] = value

    def remove(self, key: K) -> V | None:
        return self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ScheduleState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"


class ValidationScheduler:
    """Coalesce bursts of edits into one analysis per document URI.

    ``schedule`` re-arms the timer of a URI that has not fired yet, so only the
    document passed last is analyzed. A fired timer drops its own registration
    before the analysis starts; an analysis that schedules the same URI again
    therefore arms a fresh timer instead of being discarded. Running analyses
    are never interrupted.
    """

    def __init__(self, analysis: Analysis, delay: float = DEFAULT_VALIDATION_DELAY_MS / 1000) -> None:
        self._analysis = analysis
        self._delay = delay
        self._pending: KeyedState[str, asyncio.TimerHandle] = KeyedState()
        self._running: dict[str, int] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, document: TextDocument) -> None:
        loop = asyncio.get_running_loop()
        previous = self._pending.remove(document.uri)
        if previous is not None:
            previous.cancel()
        handle = loop.call_later(self._delay, self._fire, document)
        self._pending.set(document.uri, handle)
        logger.debug("Scheduled analysis of %s (version %d)", document.uri, document.version)

    def cancel(self, uri: str) -> bool:
        handle = self._pending.remove(uri)
        if handle is None:
            return False
        handle.cancel()
        return True

    def state(self, uri: str) -> ScheduleState:
        if uri in self._pending:
            return ScheduleState.SCHEDULED
        if self._running.get(uri):
            return ScheduleState.RUNNING
        return ScheduleState.IDLE

    def is_idle(self) -> bool:
        return not len(self._pending) and not self._tasks

    async def drain(self) -> None:
        """Wait until no timer is pending and no analysis is running."""
        while not self.is_idle():
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self._delay / 2 or 0)

    async def run_now(self, document: TextDocument) -> None:
        """Analyze ``document`` immediately, bypassing the debounce."""
        self.cancel(document.uri)
        await self._run(document)

    def _fire(self, document: TextDocument) -> None:
        self._pending.remove(document.uri)
        task = asyncio.get_running_loop().create_task(self._run(document))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, document: TextDocument) -> None:
        uri = document.uri
        self._running[uri] = self._running.get(uri, 0) + 1
        try:
            result = self._analysis(document)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Analysis of %s failed", uri)
        finally:
            remaining = self._running[uri] - 1
            if remaining:
                self._running[uri] = remaining
            else:
                del self._running[uri]
