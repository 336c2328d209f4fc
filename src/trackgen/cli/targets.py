"""Targets command: list supported SDK/language pairs and their capabilities."""

from rich.table import Table

from ..codegen import list_targets
from . import app
from ._common import console


def _flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


@app.command()
def targets():
    """List the supported targets and what generated code can do on each."""
    table = Table(title="Supported targets", show_lines=False)
    table.add_column("Target", style="bold cyan")
    table.add_column("SDK")
    table.add_column("Language")
    table.add_column("Default instance", justify="center")
    table.add_column("Unions", justify="center")
    table.add_column("Runtime validation", justify="center")
    table.add_column("Raises in tests", justify="center")

    for target in list_targets():
        caps = target.capabilities
        table.add_row(
            target.id,
            target.sdk,
            target.language,
            _flag(caps.default_instance),
            _flag(caps.unions),
            _flag(caps.runtime_validation),
            _flag(caps.handler_raises_in_tests),
        )

    console.print(table)
