from pathlib import Path
from typing import Protocol


class FileWatcherPort(Protocol):
    """Feeds changed source and contract files into a workspace."""

    @property
    def directory(self) -> Path: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
