"""Generation pipeline: step state machine and orchestrator."""

from .orchestrator import Orchestrator, write_generated_file
from .state import (
    ALLOWED_TRANSITIONS,
    STEP_ORDER,
    Note,
    NoteKind,
    PipelineState,
    Step,
    StepName,
    StepStatus,
    transition,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "STEP_ORDER",
    "Note",
    "NoteKind",
    "Orchestrator",
    "PipelineState",
    "Step",
    "StepName",
    "StepStatus",
    "transition",
    "write_generated_file",
]
