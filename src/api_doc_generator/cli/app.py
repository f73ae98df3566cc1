import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from api_doc_generator.cli.analyze import analyze, routes
from api_doc_generator.cli.parsers import parsers

app = typer.Typer(
    name="api-doc-generator",
    help="API Doc Generator CLI: derive OpenAPI documents from gin projects.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log analysis progress.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app.command("analyze")(analyze)
app.command("routes")(routes)
app.command("parsers")(parsers)


def main() -> None:
    app()
