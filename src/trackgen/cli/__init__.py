"""CLI entry point, registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="trackgen",
    help="trackgen - typed analytics clients from a tracking plan",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: Optional[bool]) -> None:
    if value:
        console.print(f"[bold cyan]trackgen[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)


@app.callback()
def _root(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    Generate strongly-typed analytics clients from a tracking plan.

    [bold cyan]Examples:[/bold cyan]

      trackgen build

      trackgen build --production --no-update

      trackgen targets
    """


# Import subcommands to register them
from .build import build as _build  # noqa: F401, E402
from .targets import targets as _targets  # noqa: F401, E402


def main() -> None:
    app()
