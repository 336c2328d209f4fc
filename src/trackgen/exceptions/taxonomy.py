"""Error taxonomy with error codes and recovery hints.

Error Code Convention:
    TG1xx - Tracking plan errors (loading, normalization)
    TG2xx - Code generation errors (schema mapping)
    TG3xx - Output errors (directory, file writes)
    TG4xx - Pipeline errors (step transitions, cancellation)

Fatal errors abort a run and propagate to the caller. Recoverable errors are
caught by the orchestrator and surfaced as warning notes on the current step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .base import TrackgenError


class ErrorCode(Enum):
    """Structured error codes for logging and debugging."""

    # Tracking plan errors (TG1xx)
    TG100 = "TG100"  # Malformed raw plan
    TG101 = "TG101"  # Identical name+version conflict
    TG102 = "TG102"  # No plan available (no cache, no fetch)
    TG103 = "TG103"  # Remote fetch failed

    # Code generation errors (TG2xx)
    TG200 = "TG200"  # Schema construct has no mapping for target
    TG201 = "TG201"  # Schema nesting exceeds depth limit

    # Output errors (TG3xx)
    TG300 = "TG300"  # Output directory cannot be created or written

    # Pipeline errors (TG4xx)
    TG400 = "TG400"  # Illegal step transition
    TG401 = "TG401"  # Run cancelled between steps


@dataclass
class TrackgenCodedError(TrackgenError):
    """Base exception with structured context for logging.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (event name, schema path, etc.)
        recoverable: Whether the run can continue past this error
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = False
    recovery_hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        # Initialize Exception with the string representation
        Exception.__init__(self, str(self))
        self.details = {k: str(v) for k, v in self.context.items()}

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


# Domain-specific exceptions for fine-grained error handling
class PlanError(TrackgenCodedError):
    """Errors while loading or normalizing a tracking plan (TG1xx)."""

    pass


class CodegenError(TrackgenCodedError):
    """Errors while mapping schemas to client code (TG2xx)."""

    pass


class OutputError(TrackgenCodedError):
    """Errors while touching the output directory (TG3xx)."""

    pass


class PipelineError(TrackgenCodedError):
    """Errors raised by the pipeline state machine (TG4xx)."""

    pass


class InvalidSchemaError(PlanError):
    """The raw tracking plan is malformed."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.TG100,
            context=context,
            recovery_hint="Check the tracking plan JSON for missing or mistyped fields.",
        )


class SchemaConflictError(PlanError):
    """Two events share both name and version."""

    def __init__(self, name: str, version: int) -> None:
        super().__init__(
            message=f"Event '{name}' is defined more than once at version {version}",
            code=ErrorCode.TG101,
            context={"event": name, "version": version},
            recovery_hint="Remove the duplicate event version from the tracking plan.",
        )
        self.name = name
        self.version = version


class PlanLoadError(PlanError):
    """No tracking plan could be loaded from the cache or the registry."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.TG102,
            context=context,
            recovery_hint="Run with updates enabled and a valid API token to populate the cache.",
        )


class PlanFetchError(PlanError):
    """The registry request failed. The orchestrator falls back to the cache."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message=message, code=ErrorCode.TG103, context=context, recoverable=True)


class UnsupportedSchemaConstructError(CodegenError):
    """A schema node has no mapping and no degradation path."""

    def __init__(self, construct: str, path: str, target: str = "") -> None:
        context: dict[str, Any] = {"construct": construct, "path": path}
        if target:
            context["target"] = target
        super().__init__(
            message=f"Unsupported schema construct '{construct}' at {path}",
            code=ErrorCode.TG200,
            context=context,
            recovery_hint="Simplify the event schema or pick a target that supports it.",
        )
        self.construct = construct
        self.path = path


class SchemaDepthError(CodegenError):
    """Schema nesting exceeded the recursion guard."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(
            message=f"Schema nesting at {path} exceeds the limit of {limit} levels",
            code=ErrorCode.TG201,
            context={"path": path, "limit": limit},
        )


class OutputDirectoryError(OutputError):
    """The output directory could not be created, or a file could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"Unable to write output to {path}: {reason}",
            code=ErrorCode.TG300,
            context={"path": path, "reason": reason},
        )


class InvalidTransitionError(PipelineError):
    """A step was asked to move between incompatible statuses."""

    def __init__(self, step: str, current: str, target: str) -> None:
        super().__init__(
            message=f"Step '{step}' cannot move from {current} to {target}",
            code=ErrorCode.TG400,
            context={"step": step, "from": current, "to": target},
        )


class PipelineCancelledError(PipelineError):
    """A cancellation request was honoured between two steps."""

    def __init__(self, after_step: str) -> None:
        super().__init__(
            message=f"Run cancelled after step '{after_step}'",
            code=ErrorCode.TG401,
            context={"after": after_step},
            recoverable=True,
        )
