"""Data models for tracking plans: raw registry records and normalized events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from ..exceptions import InvalidSchemaError

# Top-level keys of a Segment-style event envelope. When an event's rules only
# use these keys, the payload schema lives under properties.properties.
ENVELOPE_KEYS = frozenset({"context", "traits", "properties"})


@dataclass(frozen=True)
class TrackingPlanEvent:
    """One versioned event definition as stored in the registry."""

    name: str
    version: int
    description: str
    rules: Dict[str, Any]

    @classmethod
    def from_dict(cls, raw: Any, index: int = 0) -> "TrackingPlanEvent":
        """Build an event from a decoded JSON record.

        Raises:
            InvalidSchemaError: If a field is missing or has the wrong type.
        """
        if not isinstance(raw, dict):
            raise InvalidSchemaError(f"Event #{index} is not an object", index=index)

        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidSchemaError(f"Event #{index} has no name", index=index)

        version = raw.get("version", 1)
        # bool is an int subclass; reject it explicitly
        if isinstance(version, bool) or not isinstance(version, int):
            raise InvalidSchemaError(
                f"Event '{name}' has a non-integer version", event=name, version=version
            )

        description = raw.get("description") or ""
        if not isinstance(description, str):
            raise InvalidSchemaError(f"Event '{name}' has a non-string description", event=name)

        rules = raw.get("rules")
        if rules is None:
            rules = {}
        if not isinstance(rules, dict):
            raise InvalidSchemaError(f"Event '{name}' rules must be an object", event=name)

        return cls(name=name, version=version, description=description, rules=rules)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "rules": self.rules,
        }


@dataclass(frozen=True)
class RawTrackingPlan:
    """A full tracking plan as returned by the registry or read from the cache.

    Attributes:
        events: Event definitions in registry order, all versions included.
        id: Registry identifier of the plan.
        display_name: Human-readable plan name, shown in progress notes.
    """

    events: Tuple[TrackingPlanEvent, ...] = ()
    id: str = ""
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "RawTrackingPlan":
        """Decode the registry shape ``{"rules": {"events": [...]}}``.

        A bare ``{"events": [...]}`` document is accepted as well.

        Raises:
            InvalidSchemaError: If the document does not describe a plan.
        """
        if not isinstance(data, dict):
            raise InvalidSchemaError("Tracking plan must be a JSON object")

        rules = data.get("rules", data)
        if not isinstance(rules, dict):
            raise InvalidSchemaError("Tracking plan rules must be an object")

        raw_events = rules.get("events", [])
        if not isinstance(raw_events, list):
            raise InvalidSchemaError("Tracking plan events must be a list")

        events = tuple(TrackingPlanEvent.from_dict(e, i) for i, e in enumerate(raw_events))
        plan_id = data.get("id") or data.get("name") or ""
        display_name = data.get("display_name") or plan_id
        return cls(events=events, id=str(plan_id), display_name=str(display_name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "rules": {"events": [e.to_dict() for e in self.events]},
        }


@dataclass(frozen=True)
class NormalizedEvent:
    """Generation input for one event: the latest version's schema.

    ``schema`` is a draft-07 document: the event rules with ``title`` and
    ``description`` injected. It is never mutated after normalization.
    """

    title: str
    description: str
    schema: Dict[str, Any] = field(default_factory=dict)
    version: int = 1

    @property
    def properties_schema(self) -> Dict[str, Any]:
        """The schema of the event's payload (its ``properties`` object)."""
        return extract_properties_schema(self.schema)


def extract_properties_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Return the payload schema of an event.

    Segment-style envelopes nest the payload under ``properties.properties``;
    any other object schema describes the payload directly.
    """
    top = schema.get("properties")
    if isinstance(top, dict) and "properties" in top and set(top) <= ENVELOPE_KEYS:
        payload = top["properties"]
        if isinstance(payload, dict):
            return payload
    if top is None and schema.get("type") not in (None, "object"):
        return {}
    stripped = {k: v for k, v in schema.items() if k not in ("title", "description", "$schema")}
    return stripped

