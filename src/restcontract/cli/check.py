import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from restcontract.config import get_settings
from restcontract.core.check import run_check
from restcontract.models import Diagnostic, Severity

console = Console()

_SEVERITY_STYLES = {
    Severity.ERROR: "[red]error[/red]",
    Severity.WARNING: "[yellow]warning[/yellow]",
    Severity.INFORMATION: "[blue]info[/blue]",
    Severity.HINT: "hint",
}


def render_diagnostics(results: dict[str, list[Diagnostic]]) -> None:
    table = Table(show_lines=False)
    for header in ("file", "line", "severity", "message"):
        table.add_column(header)
    for uri, diagnostics in results.items():
        for diagnostic in diagnostics:
            start = diagnostic.range.start
            table.add_row(
                uri,
                f"{start.line + 1}:{start.character + 1}",
                _SEVERITY_STYLES[diagnostic.severity],
                escape(diagnostic.message),
            )
    console.print(table)


def check(
    root: Annotated[Path, typer.Argument(help="Workspace directory to check.")] = Path("."),
    contract_file: Annotated[str | None, typer.Option(help="Contract file name in each project.")] = None,
) -> None:
    """Check every project under ROOT against its contract."""
    settings = get_settings()
    results = asyncio.run(run_check(root, contract_file or settings.contract_file))
    if not results:
        console.print("[green]No contract violations found[/green]")
        return
    render_diagnostics(results)
    count = sum(len(diagnostics) for diagnostics in results.values())
    console.print(f"[red]{count} problem(s) in {len(results)} file(s)[/red]")
    raise typer.Exit(code=1)
