import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from restcontract.config import get_settings
from restcontract.core.check import load_workspace
from restcontract.models import Diagnostic
from restcontract.watcher.watchfiles_adapter import WatchfilesWatcher, workspace_feeder

console = Console()


class ConsoleSink:
    """Print each publication as it arrives."""

    def publish(self, uri: str, version: int | None, diagnostics: list[Diagnostic]) -> None:
        if not diagnostics:
            console.print(f"[green]ok[/green] {uri}")
            return
        for diagnostic in diagnostics:
            start = diagnostic.range.start
            console.print(f"[red]{uri}:{start.line + 1}:{start.character + 1}[/red] {escape(diagnostic.message)}")


def watch(
    root: Annotated[Path, typer.Argument(help="Workspace directory to watch.")] = Path("."),
    delay_ms: Annotated[int | None, typer.Option(help="Debounce delay in milliseconds.")] = None,
) -> None:
    """Re-check files under ROOT as they change."""
    settings = get_settings()
    delay = delay_ms / 1000 if delay_ms is not None else settings.validation_delay

    async def _run() -> None:
        workspace = await load_workspace(root, settings.contract_file, sink=ConsoleSink(), delay=delay)
        watcher = WatchfilesWatcher(root.resolve(), workspace_feeder(workspace), settings.contract_file)
        await watcher.start()
        console.print(f"[green]Watching {root.resolve()}[/green] (Ctrl+C to stop)")
        try:
            await asyncio.Event().wait()
        finally:
            await watcher.stop()
            await workspace.scheduler.drain()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped")
