"""Code generation: schema IR, targets, type mappers and the client generator."""

from .generator import (
    AUTOGENERATED_FILE_WARNING,
    GeneratedFile,
    GenerationOptions,
    generate,
)
from .schema import MAX_SCHEMA_DEPTH, Kind, SchemaNode, parse_event, parse_schema
from .targets import TARGETS, Capabilities, Target, list_targets, resolve_target

__all__ = [
    "AUTOGENERATED_FILE_WARNING",
    "Capabilities",
    "GeneratedFile",
    "GenerationOptions",
    "Kind",
    "MAX_SCHEMA_DEPTH",
    "SchemaNode",
    "TARGETS",
    "Target",
    "generate",
    "list_targets",
    "parse_event",
    "parse_schema",
    "resolve_target",
]
