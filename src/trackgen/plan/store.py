"""Local tracking plan cache (``plan.json`` in the output directory).

Only the raw plan is cached, never the normalized form, so the cache can be
re-normalized by a newer trackgen without migration.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..exceptions import InvalidSchemaError, OutputDirectoryError
from .models import RawTrackingPlan

logger = logging.getLogger(__name__)

TRACKING_PLAN_FILENAME = "plan.json"


def plan_path(directory: Path) -> Path:
    return Path(directory) / TRACKING_PLAN_FILENAME


def load_tracking_plan(directory: Path) -> Optional[RawTrackingPlan]:
    """Read the cached plan, or None when no cache exists yet.

    Raises:
        InvalidSchemaError: If the cache exists but is not a valid plan.
    """
    path = plan_path(directory)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidSchemaError(f"Cached plan {path} is not valid JSON: {e}", path=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidSchemaError(f"Cached plan {path} could not be read: {e}", path=str(path))
    return RawTrackingPlan.from_dict(data)


def write_tracking_plan(directory: Path, plan: RawTrackingPlan) -> Path:
    """Persist a freshly fetched plan for offline reuse."""
    path = plan_path(directory)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(plan.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise OutputDirectoryError(str(path), e.strerror or str(e))
    logger.debug("Cached tracking plan %s at %s", plan.id, path)
    return path
