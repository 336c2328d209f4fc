"""Step-list progress display for trackgen builds."""

from __future__ import annotations

from typing import Optional

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from ..pipeline import NoteKind, PipelineState, Step, StepName, StepStatus

STEP_DESCRIPTIONS = {
    StepName.LOAD_PLAN: "Loading tracking plan",
    StepName.CLEAR_FILES: "Removing generated files",
    StepName.GENERATE_CLIENT: "Generating client",
    StepName.AFTER_SCRIPT: "Running after script",
}

_SYMBOLS = {
    StepStatus.PENDING: Text("·", style="dim"),
    StepStatus.DONE: Text("✔", style="green"),
    StepStatus.SKIPPED: Text("↓", style="dim"),
}


def _status_cell(step: Step) -> RenderableType:
    if step.status is StepStatus.RUNNING:
        return Spinner("dots", style="cyan")
    return _SYMBOLS[step.status]


def render_state(state: PipelineState) -> RenderableType:
    """Render one snapshot as a step list with indented notes."""
    table = Table.grid(padding=(0, 1))
    table.add_column(width=2)
    table.add_column()
    for step in state.steps:
        title = STEP_DESCRIPTIONS[step.name]
        if step.status is StepStatus.SKIPPED:
            title += " [skipped]"
        style = "dim" if step.status in (StepStatus.PENDING, StepStatus.SKIPPED) else "bold"
        table.add_row(_status_cell(step), Text(title, style=style))
        for note in step.notes:
            if note.kind is NoteKind.WARNING:
                table.add_row("", Text(f"⚠ {note.text}", style="yellow"))
            else:
                table.add_row("", Text(f"→ {note.text}", style="dim"))
    return Group(table)


class BuildProgress:
    """Live view of the pipeline snapshot stream."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._live: Optional[Live] = None
        self.state: Optional[PipelineState] = None

    def __enter__(self) -> "BuildProgress":
        self.console.print()
        self.console.print("[bold cyan]TRACKGEN[/]")
        self.console.print()
        self._live = Live(
            render_state(PipelineState()),
            console=self.console,
            refresh_per_second=12,
            transient=False,
        )
        self._live.start()
        return self

    def update(self, state: PipelineState) -> None:
        self.state = state
        if self._live is not None:
            self._live.update(render_state(state))

    def __exit__(self, *exc_info) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self.console.print()
