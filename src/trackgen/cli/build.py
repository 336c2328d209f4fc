"""Build command: run the generation pipeline with a live step display."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import TrackgenError
from ..logging_config import setup_logging
from ..pipeline import Orchestrator
from . import app
from ._common import console, resolve_config
from .progress import BuildProgress


async def _run(orchestrator: Orchestrator, progress: BuildProgress) -> None:
    with progress:
        async for state in orchestrator.stream():
            progress.update(state)


@app.command()
def build(
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML, default: ./trackgen.toml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    production: bool = typer.Option(
        False,
        "--production",
        help="Generate a production client (no runtime validation)",
    ),
    no_update: bool = typer.Option(
        False,
        "--no-update",
        help="Use the cached tracking plan without contacting the registry",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
):
    """
    Generate the analytics client for the configured target.

    Pulls the latest tracking plan (unless --no-update), removes previously
    generated files from the output directory, writes the new client, then
    runs the configured after script.
    """
    logger = setup_logging(verbose=verbose, quiet=not verbose)

    try:
        settings = resolve_config(config=config, production=production, no_update=no_update)
        orchestrator = Orchestrator(settings)
        asyncio.run(_run(orchestrator, BuildProgress(console)))

    except TrackgenError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Build interrupted by user")
        console.print("\n[yellow]Build interrupted[/yellow]")
        raise typer.Exit(130)

    console.print(
        f"[green]Done.[/green] {len(orchestrator.events)} events, "
        f"{len(orchestrator.files)} file(s) in {settings.output_path}"
    )
