"""Exception hierarchy for trackgen."""

from .base import TrackgenError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .taxonomy import (
    CodegenError,
    ErrorCode,
    InvalidSchemaError,
    InvalidTransitionError,
    OutputDirectoryError,
    OutputError,
    PipelineCancelledError,
    PipelineError,
    PlanError,
    PlanFetchError,
    PlanLoadError,
    SchemaConflictError,
    SchemaDepthError,
    TrackgenCodedError,
    UnsupportedSchemaConstructError,
)

__all__ = [
    "TrackgenError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "ErrorCode",
    "TrackgenCodedError",
    "PlanError",
    "CodegenError",
    "OutputError",
    "PipelineError",
    "InvalidSchemaError",
    "SchemaConflictError",
    "PlanLoadError",
    "PlanFetchError",
    "UnsupportedSchemaConstructError",
    "SchemaDepthError",
    "OutputDirectoryError",
    "InvalidTransitionError",
    "PipelineCancelledError",
]
