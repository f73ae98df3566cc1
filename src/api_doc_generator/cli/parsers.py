from rich.console import Console
from rich.table import Table

from api_doc_generator.parsers import default_registry

console = Console()


def parsers() -> None:
    """List registered framework parsers."""
    registry = default_registry()
    table = Table(show_lines=False)
    table.add_column("key")
    table.add_column("name")
    for key in registry.list():
        table.add_row(key, registry.get(key).name)
    console.print(table)
