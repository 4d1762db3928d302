from typing import Annotated

import typer

from restcontract.cli.check import check
from restcontract.cli.contract import contract_app
from restcontract.cli.navigate import definition, hover, references
from restcontract.cli.serve import serve_app
from restcontract.cli.watch import watch
from restcontract.config import configure_logging, get_settings

app = typer.Typer(
    name="restcontract",
    help="restcontract CLI: check TypeScript services against their REST contract.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _root(
    log_level: Annotated[str | None, typer.Option(help="Logging level (default from RESTCONTRACT_LOG_LEVEL).")] = None,
) -> None:
    configure_logging(log_level or get_settings().log_level)


app.command("check")(check)
app.command("watch")(watch)
app.add_typer(contract_app, name="contract")
app.command("definition")(definition)
app.command("references")(references)
app.command("hover")(hover)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
