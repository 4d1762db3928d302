import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown

from restcontract.config import get_settings
from restcontract.core.check import load_workspace
from restcontract.models import Position

console = Console()

RootOption = Annotated[Path, typer.Option(help="Workspace directory.")]
LineArgument = Annotated[int, typer.Argument(help="1-based line.")]
ColumnArgument = Annotated[int, typer.Argument(help="1-based column.")]


def _position(line: int, column: int) -> Position:
    return Position(line=line - 1, character=column - 1)


def definition(
    file: Annotated[Path, typer.Argument(help="Frontend source file.")],
    line: LineArgument,
    column: ColumnArgument,
    root: RootOption = Path("."),
) -> None:
    """Show the backend route a frontend call at FILE:LINE:COLUMN goes to."""

    async def _run() -> None:
        workspace = await load_workspace(root, get_settings().contract_file)
        link = workspace.navigator.find_definition(str(file.resolve()), _position(line, column))
        if link is None:
            console.print("[yellow]No matching route[/yellow]")
            raise typer.Exit(code=1)
        start = link.target_range.start
        console.print(f"{link.target_uri}:{start.line + 1}:{start.character + 1}")

    asyncio.run(_run())


def references(
    file: Annotated[Path, typer.Argument(help="Backend source file.")],
    line: LineArgument,
    column: ColumnArgument,
    root: RootOption = Path("."),
) -> None:
    """List the frontend calls of the route at FILE:LINE:COLUMN."""

    async def _run() -> None:
        workspace = await load_workspace(root, get_settings().contract_file)
        locations = workspace.navigator.find_references(str(file.resolve()), _position(line, column))
        if not locations:
            console.print("[yellow]No references[/yellow]")
            return
        for location in locations:
            start = location.range.start
            console.print(f"{location.uri}:{start.line + 1}:{start.character + 1}")

    asyncio.run(_run())


def hover(
    file: Annotated[Path, typer.Argument(help="Backend or frontend source file.")],
    line: LineArgument,
    column: ColumnArgument,
    root: RootOption = Path("."),
) -> None:
    """Summarize the contract endpoint behind the route or call at FILE:LINE:COLUMN."""

    async def _run() -> None:
        workspace = await load_workspace(root, get_settings().contract_file)
        text = workspace.navigator.hover(str(file.resolve()), _position(line, column))
        if text is None:
            console.print("[yellow]No endpoint[/yellow]")
            raise typer.Exit(code=1)
        console.print(Markdown(text))

    asyncio.run(_run())
