from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from restcontract.core.comparator import render_type
from restcontract.core.contract import load_contract_file
from restcontract.errors import ContractError

contract_app = typer.Typer(help="Inspect contract files.")
console = Console()


@contract_app.command("validate")
def validate(
    path: Annotated[Path, typer.Argument(help="Path to a contract file.", exists=True, dir_okay=False)],
) -> None:
    """Validate a contract file and list its endpoints."""
    try:
        contracts = load_contract_file(path)
    except ContractError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        for diagnostic in exc.diagnostics:
            start = diagnostic.range.start
            console.print(f"  {path}:{start.line + 1}:{start.character + 1} {escape(diagnostic.message)}")
        raise typer.Exit(code=1) from None

    table = Table(show_lines=False)
    for header in ("service", "method", "path", "response", "request"):
        table.add_column(header)
    for contract in contracts:
        for endpoint in contract.endpoints:
            request = render_type(endpoint.request) if endpoint.request is not None else ""
            table.add_row(contract.name, endpoint.method, endpoint.path, render_type(endpoint.response), request)
    console.print(table)
    console.print(f"[green]Valid[/green] ({len(contracts)} service(s))")
