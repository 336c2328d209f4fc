"""Output Reconciler: remove previously generated files before regenerating.

Only the immediate entries of the output directory are scanned. A file is
deleted iff its text contains the exact autogenerated marker; everything
else (hand-written files, the cached plan, subdirectories) is left alone.
Anything that cannot be inspected is skipped and reported, never fatal:
keeping a stale generated file is acceptable, deleting a user's file is not.

Generated output is currently flat. Subdirectories are not descended into,
so a target that ever emits nested files must extend this walk.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .codegen.generator import AUTOGENERATED_FILE_WARNING

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one clearing pass."""

    removed: List[Path] = field(default_factory=list)
    # (path, reason) for every entry that could not be inspected or removed
    skipped: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [f"Skipped {path}: {reason}" for path, reason in self.skipped]


def is_generated(path: Path, marker: str = AUTOGENERATED_FILE_WARNING) -> bool:
    """True if the file's text contains the marker.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8 text.
    """
    with open(path, "r", encoding="utf-8") as f:
        return marker in f.read()


def clear_generated_files(
    directory: Path, marker: str = AUTOGENERATED_FILE_WARNING
) -> ReconcileResult:
    """Delete marker-tagged files directly inside ``directory``."""
    result = ReconcileResult()
    directory = Path(directory)

    if not directory.exists():
        logger.debug("Output directory %s does not exist yet, nothing to clear", directory)
        return result
    if not directory.is_dir():
        result.skipped.append((directory, "not a directory"))
        logger.warning("Output path %s is not a directory, nothing cleared", directory)
        return result

    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        result.skipped.append((directory, e.strerror or str(e)))
        logger.warning("Could not list %s: %s", directory, e)
        return result

    for entry in entries:
        path = Path(entry.path)
        try:
            if entry.is_symlink() or not entry.is_file():
                continue
            if not is_generated(path, marker):
                continue
            path.unlink()
        except UnicodeDecodeError:
            result.skipped.append((path, "not UTF-8 text"))
            logger.debug("Skipping non-text file %s", path)
            continue
        except OSError as e:
            result.skipped.append((path, e.strerror or str(e)))
            logger.warning("Could not inspect or remove %s: %s", path, e)
            continue
        result.removed.append(path)
        logger.debug("Removed generated file %s", path)

    return result
