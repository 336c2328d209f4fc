"""Client Generator: normalized events -> generated file set.

Generation is all in memory. Every event is parsed and mapped before any
file body is rendered, so an unsupported construct anywhere in the plan
aborts the run without a partially-correct client ever reaching disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .. import __version__
from ..naming import NameScope
from ..plan.models import NormalizedEvent
from .mappers import MAPPERS, TypeMapper
from .schema import parse_event
from .targets import Target

logger = logging.getLogger(__name__)

# Byte-exact. The reconciler deletes files containing this string and only those.
AUTOGENERATED_FILE_WARNING = (
    "This client was automatically generated by trackgen. ** Do Not Edit **"
)


@dataclass(frozen=True)
class GeneratedFile:
    """One output file, path relative to the output directory."""

    path: str
    contents: str


@dataclass(frozen=True)
class GenerationOptions:
    target: Target
    is_development: bool = True
    version: str = __version__


@dataclass(frozen=True)
class EventUnit:
    """Everything a template needs to emit one event's callable."""

    event_name: str
    function_name: str
    description: str
    payload_type: str
    # True when no property is required: the payload may be omitted
    payload_optional: bool
    payload_default: str
    validation: Optional[str]


def mapper_for(target: Target) -> TypeMapper:
    return MAPPERS[target.language](target)


def build_units(
    events: Iterable[NormalizedEvent], mapper: TypeMapper, validate: bool
) -> List[EventUnit]:
    """Parse and map every event. Declarations accumulate on ``mapper``."""
    functions = NameScope(mapper.function_case, mapper.reserved)
    units = []
    for event in sorted(events, key=lambda e: e.title):
        root = parse_event(event.properties_schema, event.title)
        mapped = mapper.map(root)
        units.append(
            EventUnit(
                event_name=event.title,
                function_name=functions.register(event.title),
                description=event.description or f'Fires a "{event.title}" event.',
                payload_type=mapped.annotation,
                payload_optional=not root.has_required_properties,
                payload_default=mapper.payload_default(mapped.annotation),
                validation=mapped.validation if validate else None,
            )
        )
    return units


def header(mapper: TypeMapper, options: GenerationOptions) -> str:
    mode = "development" if options.is_development else "production"
    return "\n".join(
        [
            mapper.comment(AUTOGENERATED_FILE_WARNING),
            mapper.comment(
                f"Target: {options.target.id} ({mode} build), trackgen {options.version}"
            ),
            "",
        ]
    )


def generate(
    events: Iterable[NormalizedEvent], options: GenerationOptions
) -> List[GeneratedFile]:
    """Generate the client for ``options.target``.

    Output is a pure function of the events and options: the same plan
    always produces byte-identical files.

    Raises:
        UnsupportedSchemaConstructError: If an event uses a construct the
            target can neither express nor degrade.
        SchemaDepthError: If an event schema nests too deeply.
    """
    target = options.target
    mapper = mapper_for(target)
    validate = options.is_development and target.capabilities.runtime_validation
    units = build_units(events, mapper, validate)

    bodies = mapper.render(
        {
            "units": units,
            "validate": validate,
            "version": options.version,
            "language": mapper.language,
            "analytics_module": target.analytics_module,
            "call_style": target.call_style,
        }
    )
    prefix = header(mapper, options)
    files = [GeneratedFile(path=path, contents=prefix + body) for path, body in sorted(bodies.items())]
    logger.debug(
        "Generated %d file(s) for %d event(s), target %s", len(files), len(units), target.id
    )
    return files
