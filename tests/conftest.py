"""Shared test fixtures for trackgen."""

import importlib.util
import itertools
import sys

import pytest

from trackgen.codegen import TARGETS, GenerationOptions, generate
from trackgen.plan import RawTrackingPlan, normalize

DRAFT_07 = "http://json-schema.org/draft-07/schema#"

_module_ids = itertools.count()


def make_event(name, properties=None, required=(), version=1, description=""):
    """Registry record with a Segment-style envelope around the payload schema."""
    return {
        "name": name,
        "version": version,
        "description": description,
        "rules": {
            "$schema": DRAFT_07,
            "type": "object",
            "properties": {
                "properties": {
                    "type": "object",
                    "properties": properties or {},
                    "required": list(required),
                }
            },
        },
    }


def make_plan(events, plan_id="rs_test", display_name="Test Plan"):
    return RawTrackingPlan.from_dict(
        {"id": plan_id, "display_name": display_name, "rules": {"events": list(events)}}
    )


class RecordingAnalytics:
    """Stands in for the analytics-python module; records every track call."""

    def __init__(self):
        self.calls = []

    def track(self, **kwargs):
        self.calls.append(kwargs)

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def plan_factory():
    return make_plan


@pytest.fixture
def recorder():
    return RecordingAnalytics()


@pytest.fixture
def every_required_type_event():
    """One required property of each supported type."""
    return make_event(
        "Every Required Type",
        description="Fired with one property of every type.",
        properties={
            "required any": {"description": "Any value"},
            "required array": {"type": "array"},
            "required boolean": {"type": "boolean"},
            "required int": {"type": "integer"},
            "required number": {"type": "number"},
            "required object": {"type": "object"},
            "required string": {"type": "string"},
            "required string with regex": {"type": "string", "pattern": "(Evil|Lawyer) Morty"},
        },
        required=[
            "required any",
            "required array",
            "required boolean",
            "required int",
            "required number",
            "required object",
            "required string",
            "required string with regex",
        ],
    )


@pytest.fixture
def generate_files():
    """Generate the client files for a list of event records."""

    def _generate(events, target="python", development=True):
        options = GenerationOptions(target=TARGETS[target], is_development=development)
        return generate(normalize(make_plan(events)), options)

    return _generate


@pytest.fixture
def load_python_client(tmp_path, generate_files):
    """Generate a Python client into tmp_path and import it."""

    def _load(events, development=True):
        (generated,) = generate_files(events, "python", development)
        directory = tmp_path / f"client_{next(_module_ids)}"
        directory.mkdir()
        path = directory / generated.path
        path.write_text(generated.contents, encoding="utf-8")

        name = f"trackgen_generated_{directory.name}"
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        return module

    yield _load

    for name in [n for n in sys.modules if n.startswith("trackgen_generated_")]:
        del sys.modules[name]
