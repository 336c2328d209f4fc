"""Tests for the error taxonomy."""

import pytest

from trackgen.exceptions import (
    CodegenError,
    ErrorCode,
    InvalidSchemaError,
    InvalidTransitionError,
    OutputDirectoryError,
    PipelineCancelledError,
    PlanError,
    PlanFetchError,
    PlanLoadError,
    SchemaConflictError,
    SchemaDepthError,
    TrackgenCodedError,
    TrackgenError,
    UnsupportedSchemaConstructError,
)


class TestErrorCodes:
    @pytest.mark.parametrize(
        "error, code, family",
        [
            (InvalidSchemaError("bad"), ErrorCode.TG100, PlanError),
            (SchemaConflictError("A", 1), ErrorCode.TG101, PlanError),
            (PlanLoadError("none"), ErrorCode.TG102, PlanError),
            (PlanFetchError("down"), ErrorCode.TG103, PlanError),
            (UnsupportedSchemaConstructError("$ref", "A.b"), ErrorCode.TG200, CodegenError),
            (SchemaDepthError("A.b", 3), ErrorCode.TG201, CodegenError),
            (OutputDirectoryError("/out", "read-only"), ErrorCode.TG300, TrackgenCodedError),
            (InvalidTransitionError("loadPlan", "done", "running"), ErrorCode.TG400, TrackgenCodedError),
            (PipelineCancelledError("loadPlan"), ErrorCode.TG401, TrackgenCodedError),
        ],
    )
    def test_codes_and_families(self, error, code, family):
        assert error.code is code
        assert isinstance(error, family)
        assert isinstance(error, TrackgenError)
        assert str(error).startswith(f"[{code.value}] ")


class TestRecoverability:
    def test_fetch_failures_are_recoverable(self):
        assert PlanFetchError("down").recoverable

    def test_cancellation_is_recoverable(self):
        assert PipelineCancelledError("clearFiles").recoverable

    def test_schema_errors_are_fatal(self):
        assert not UnsupportedSchemaConstructError("allOf", "A").recoverable
        assert not SchemaConflictError("A", 2).recoverable


class TestStructuredContext:
    def test_to_json(self):
        error = UnsupportedSchemaConstructError("$ref", "Signed Up.plan", "python")
        data = error.to_json()
        assert data["error_code"] == "TG200"
        assert data["context"] == {"construct": "$ref", "path": "Signed Up.plan", "target": "python"}
        assert data["recoverable"] is False
        assert data["recovery_hint"]

    def test_details_stringified(self):
        error = SchemaDepthError("A.b", 3)
        assert error.details == {"path": "A.b", "limit": "3"}

    def test_can_be_raised_and_caught_by_family(self):
        with pytest.raises(PlanError):
            raise SchemaConflictError("A", 1)
