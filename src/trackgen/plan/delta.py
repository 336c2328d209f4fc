"""Delta engine: counts event changes between two normalized plans.

Events are matched by name. A matched pair counts as modified when the
schema documents differ; dict comparison ignores key order, so reordering
properties in the registry is not a modification. Used for reporting only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

from .models import NormalizedEvent


@dataclass(frozen=True)
class Delta:
    """Added/modified/removed event counts between two plan revisions."""

    added: int = 0
    modified: int = 0
    removed: int = 0

    @property
    def is_empty(self) -> bool:
        return self.added == 0 and self.modified == 0 and self.removed == 0

    def summary(self) -> str:
        """One-line description used as a progress note."""
        if self.is_empty:
            return "No changes found"
        return f"{self.added} added, {self.modified} modified, {self.removed} removed"


def compute_delta(
    previous: Sequence[NormalizedEvent],
    current: Sequence[NormalizedEvent],
) -> Delta:
    """Compare two normalized event sequences by name and schema shape.

    Neither input is modified. An empty ``previous`` reports every current
    event as added.
    """
    old_by_name: Dict[str, NormalizedEvent] = {e.title: e for e in previous}
    new_by_name: Dict[str, NormalizedEvent] = {e.title: e for e in current}

    added = sum(1 for name in new_by_name if name not in old_by_name)
    removed = sum(1 for name in old_by_name if name not in new_by_name)
    modified = sum(
        1
        for name, event in new_by_name.items()
        if name in old_by_name and old_by_name[name].schema != event.schema
    )
    return Delta(added=added, modified=modified, removed=removed)
