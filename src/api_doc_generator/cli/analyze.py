from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from api_doc_generator.config import get_conventions, get_document_info
from api_doc_generator.core.analyzer import ProjectAnalyzer
from api_doc_generator.parsers import default_registry

console = Console(stderr=True)


def analyze(
    path: Annotated[str, typer.Argument(help="Root directory of the project to analyze.")],
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Write the document to this file instead of stdout.")
    ] = None,
    parser: Annotated[str, typer.Option(help="Registered parser to use.")] = "go-gin",
    title: Annotated[str | None, typer.Option(help="Document title.")] = None,
    version: Annotated[str | None, typer.Option(help="Document version.")] = None,
    description: Annotated[str | None, typer.Option(help="Document description.")] = None,
) -> None:
    """Analyze a project and emit its OpenAPI document as JSON."""
    info = get_document_info()
    overrides = {"title": title, "version": version, "description": description}
    info = info.model_copy(update={key: value for key, value in overrides.items() if value is not None})

    registry = default_registry(get_conventions(), info)
    try:
        framework_parser = registry.get(parser)
    except KeyError as exc:
        console.print(f"[red]{exc.args[0]}[/red] (available: {', '.join(registry.list())})")
        raise typer.Exit(code=1) from None

    try:
        document = framework_parser.analyze(path)
    except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    rendered = document.to_json()
    if output is None:
        typer.echo(rendered)
        return
    Path(output).write_text(rendered + "\n", encoding="utf-8")
    console.print(
        f"[green]Wrote[/green] {len(document.paths)} path(s) and "
        f"{len(document.components.schemas)} schema(s) to {output}"
    )


def routes(
    path: Annotated[str, typer.Argument(help="Root directory of the project to analyze.")],
) -> None:
    """List discovered routes with their resolved request and response types."""
    analyzer = ProjectAnalyzer(get_conventions(), get_document_info())
    try:
        analyzer.analyze(path)
    except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    table = Table(show_lines=False)
    for header in ("method", "path", "handler", "request", "response"):
        table.add_column(header)
    for route in analyzer.routes:
        table.add_row(route.method, route.path, route.handler, route.request_type, route.response_type)
    out = Console()
    out.print(table)
    out.print(f"({len(analyzer.routes)} routes)")
