"""Schema normalizer: collapse a raw tracking plan into generation input.

Only the highest version of each event name participates in generation.
Two definitions with the same name *and* the same version are a conflict:
the registry should never produce them, and silently picking one would make
the generated client depend on registry ordering.
"""

from __future__ import annotations

import copy
import logging
from typing import Dict, Iterable, List, Tuple, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from ..exceptions import InvalidSchemaError, SchemaConflictError
from .models import NormalizedEvent, RawTrackingPlan, TrackingPlanEvent

logger = logging.getLogger(__name__)

DRAFT_07 = "http://json-schema.org/draft-07/schema#"


def latest_versions(events: Iterable[TrackingPlanEvent]) -> List[TrackingPlanEvent]:
    """Keep each event iff no same-named event has a strictly greater version.

    Output order follows the first appearance of each name in the input.

    Raises:
        SchemaConflictError: If two kept definitions share name and version.
    """
    best: Dict[str, TrackingPlanEvent] = {}
    tied: Dict[str, bool] = {}
    order: List[str] = []
    for event in events:
        current = best.get(event.name)
        if current is None:
            best[event.name] = event
            tied[event.name] = False
            order.append(event.name)
        elif event.version > current.version:
            best[event.name] = event
            tied[event.name] = False
        elif event.version == current.version:
            tied[event.name] = True

    for name in order:
        if tied[name]:
            raise SchemaConflictError(name, best[name].version)
    return [best[name] for name in order]


def normalize_event(event: TrackingPlanEvent) -> NormalizedEvent:
    """Turn one registry event into a draft-07 document with title and description."""
    try:
        Draft7Validator.check_schema(event.rules)
    except SchemaError as e:
        raise InvalidSchemaError(
            f"Event '{event.name}' rules are not a valid draft-07 schema: {e.message}",
            event=event.name,
        ) from e

    schema = copy.deepcopy(event.rules)
    schema.setdefault("$schema", DRAFT_07)
    schema["title"] = event.name
    schema["description"] = event.description
    return NormalizedEvent(
        title=event.name,
        description=event.description,
        schema=schema,
        version=event.version,
    )


def normalize(
    plan: Union[RawTrackingPlan, Iterable[TrackingPlanEvent]],
) -> List[NormalizedEvent]:
    """Normalize a raw plan into one NormalizedEvent per distinct event name.

    Pure: the input plan is not modified.

    Args:
        plan: A RawTrackingPlan or any iterable of TrackingPlanEvent.

    Returns:
        Normalized events, ordered by first appearance of each name.

    Raises:
        InvalidSchemaError: If the plan contains a malformed event.
        SchemaConflictError: If a name+version pair appears twice.
    """
    events: Tuple[TrackingPlanEvent, ...]
    if isinstance(plan, RawTrackingPlan):
        events = plan.events
    else:
        events = tuple(plan)

    for index, event in enumerate(events):
        if not isinstance(event, TrackingPlanEvent):
            raise InvalidSchemaError(f"Event #{index} is not a tracking plan event", index=index)

    kept = latest_versions(events)
    normalized = [normalize_event(e) for e in kept]
    logger.debug("Normalized %d event definitions into %d events", len(events), len(normalized))
    return normalized
