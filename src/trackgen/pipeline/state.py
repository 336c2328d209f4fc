"""Immutable pipeline state: steps, their status, and their notes.

A step's status is a single tagged value moved by ``transition``; the only
legal moves are::

    PENDING -> RUNNING -> DONE
    PENDING -> SKIPPED

Every mutation returns a new object, so a snapshot handed to a renderer
can never change under it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from ..exceptions import InvalidTransitionError


class StepName(str, Enum):
    LOAD_PLAN = "loadPlan"
    CLEAR_FILES = "clearFiles"
    GENERATE_CLIENT = "generateClient"
    AFTER_SCRIPT = "afterScript"


STEP_ORDER: Tuple[StepName, ...] = (
    StepName.LOAD_PLAN,
    StepName.CLEAR_FILES,
    StepName.GENERATE_CLIENT,
    StepName.AFTER_SCRIPT,
)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    SKIPPED = "skipped"


ALLOWED_TRANSITIONS: Dict[StepStatus, FrozenSet[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.RUNNING, StepStatus.SKIPPED}),
    StepStatus.RUNNING: frozenset({StepStatus.DONE}),
    StepStatus.DONE: frozenset(),
    StepStatus.SKIPPED: frozenset(),
}


class NoteKind(str, Enum):
    NOTE = "note"
    WARNING = "warning"


@dataclass(frozen=True)
class Note:
    kind: NoteKind
    text: str


@dataclass(frozen=True)
class Step:
    name: StepName
    status: StepStatus = StepStatus.PENDING
    notes: Tuple[Note, ...] = ()

    @property
    def is_finished(self) -> bool:
        return self.status in (StepStatus.DONE, StepStatus.SKIPPED)

    @property
    def warnings(self) -> Tuple[Note, ...]:
        return tuple(n for n in self.notes if n.kind is NoteKind.WARNING)

    def with_note(self, kind: NoteKind, text: str) -> "Step":
        return replace(self, notes=self.notes + (Note(kind, text),))


def transition(step: Step, target: StepStatus) -> Step:
    """Move a step to ``target``.

    Raises:
        InvalidTransitionError: If the move is not in ALLOWED_TRANSITIONS.
    """
    if target not in ALLOWED_TRANSITIONS[step.status]:
        raise InvalidTransitionError(step.name.value, step.status.value, target.value)
    return replace(step, status=target)


@dataclass(frozen=True)
class PipelineState:
    """The four steps of one run, in execution order."""

    steps: Tuple[Step, ...] = tuple(Step(name) for name in STEP_ORDER)

    def step(self, name: StepName) -> Step:
        for step in self.steps:
            if step.name is name:
                return step
        raise KeyError(name)

    def with_step(self, updated: Step) -> "PipelineState":
        return PipelineState(
            steps=tuple(updated if s.name is updated.name else s for s in self.steps)
        )

    def transition(self, name: StepName, target: StepStatus) -> "PipelineState":
        return self.with_step(transition(self.step(name), target))

    def note(self, name: StepName, text: str, kind: NoteKind = NoteKind.NOTE) -> "PipelineState":
        return self.with_step(self.step(name).with_note(kind, text))

    @property
    def is_finished(self) -> bool:
        return all(s.is_finished for s in self.steps)
