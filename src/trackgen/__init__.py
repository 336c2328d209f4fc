"""
trackgen - typed analytics clients from a tracking plan

Reads a versioned tracking plan (event names, versions, JSON Schema rules)
and generates strongly-typed analytics call wrappers for Python,
TypeScript, JavaScript and Swift, with runtime validation in development
builds.
"""

__version__ = "0.1.0"

from .codegen import AUTOGENERATED_FILE_WARNING, GeneratedFile, GenerationOptions, generate
from .plan import Delta, NormalizedEvent, RawTrackingPlan, TrackingPlanEvent, compute_delta, normalize

__all__ = [
    "generate",  # Main entry point
    "normalize",
    "compute_delta",
    "AUTOGENERATED_FILE_WARNING",
    "Delta",
    "GeneratedFile",
    "GenerationOptions",
    "NormalizedEvent",
    "RawTrackingPlan",
    "TrackingPlanEvent",
]
