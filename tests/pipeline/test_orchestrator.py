"""Tests for the generation pipeline, run end to end against tmp_path."""

import asyncio

import pytest

from trackgen.codegen.generator import AUTOGENERATED_FILE_WARNING
from trackgen.config import ApiConfig, GeneratorConfig, ScriptsConfig, TrackingPlanConfig
from trackgen.exceptions import (
    InvalidSchemaError,
    PipelineCancelledError,
    PlanFetchError,
    PlanLoadError,
    SchemaConflictError,
)
from trackgen.pipeline import NoteKind, Orchestrator, StepName, StepStatus
from trackgen.plan import TRACKING_PLAN_FILENAME, load_tracking_plan, write_tracking_plan


class FakeRegistry:
    def __init__(self, plan=None, error=None):
        self.plan = plan
        self.error = error
        self.requests = []

    async def fetch_tracking_plan(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.plan


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "analytics"


@pytest.fixture
def make_config(tmp_path, output_dir):
    def _make(**kwargs):
        kwargs.setdefault("output_path", output_dir)
        kwargs.setdefault("update", False)
        kwargs.setdefault("api", ApiConfig(token_file=tmp_path / "no-token"))
        return GeneratorConfig(**kwargs)

    return _make


@pytest.fixture
def cached_plan(output_dir, plan_factory, event_factory):
    plan = plan_factory(
        [event_factory("Signed Up", {"plan": {"type": "string"}}, ["plan"])],
        display_name="Cached Plan",
    )
    write_tracking_plan(output_dir, plan)
    return plan


def _notes(state, step):
    return [n.text for n in state.step(step).notes]


def _warnings(state, step):
    return [n.text for n in state.step(step).warnings]


def _collect(orchestrator):
    async def consume():
        return [state async for state in orchestrator.stream()]

    return asyncio.run(consume())


class TestOfflineRun:
    def test_generates_from_cache(self, make_config, cached_plan, output_dir):
        orchestrator = Orchestrator(make_config())
        state = asyncio.run(orchestrator.run())

        assert state.is_finished
        assert state.step(StepName.AFTER_SCRIPT).status is StepStatus.SKIPPED
        notes = _notes(state, StepName.LOAD_PLAN)
        assert f"Loading from {output_dir / TRACKING_PLAN_FILENAME}" in notes
        assert "Using Cached Plan" in notes
        assert not any(n.endswith("removed") or n == "No changes found" for n in notes)
        assert _notes(state, StepName.GENERATE_CLIENT) == [
            "Building for development",
            f"Writing to {output_dir}",
        ]
        contents = (output_dir / "tracking.py").read_text()
        assert AUTOGENERATED_FILE_WARNING in contents
        assert [f.path for f in orchestrator.files] == ["tracking.py"]

    def test_production_build_note(self, make_config, cached_plan):
        state = asyncio.run(Orchestrator(make_config(production=True)).run())
        assert "Building for production" in _notes(state, StepName.GENERATE_CLIENT)

    def test_no_cache_is_fatal(self, make_config):
        with pytest.raises(PlanLoadError):
            asyncio.run(Orchestrator(make_config()).run())

    def test_regeneration_is_byte_identical(self, make_config, cached_plan, output_dir):
        asyncio.run(Orchestrator(make_config()).run())
        first = (output_dir / "tracking.py").read_bytes()
        asyncio.run(Orchestrator(make_config()).run())
        assert (output_dir / "tracking.py").read_bytes() == first

    def test_stale_generated_files_replaced(self, make_config, cached_plan, output_dir):
        stale = output_dir / "old_client.py"
        stale.write_text(f"# {AUTOGENERATED_FILE_WARNING}\n")
        handwritten = output_dir / "helpers.py"
        handwritten.write_text("HELPER = True\n")

        asyncio.run(Orchestrator(make_config()).run())

        assert not stale.exists()
        assert handwritten.exists()
        assert load_tracking_plan(output_dir) == cached_plan

    def test_separate_plan_directory(self, make_config, tmp_path, plan_factory, event_factory):
        plans = tmp_path / "plans"
        write_tracking_plan(plans, plan_factory([event_factory("A")]))
        config = make_config(tracking_plan=TrackingPlanConfig(path=plans))
        orchestrator = Orchestrator(config)
        asyncio.run(orchestrator.run())
        assert [e.title for e in orchestrator.events] == ["A"]


class TestRegistryFetch:
    def _remote(self, make_config):
        return make_config(
            update=True, tracking_plan=TrackingPlanConfig(id="rs_1", workspace_slug="acme")
        )

    def test_fetched_plan_is_cached(self, make_config, output_dir, plan_factory, event_factory):
        plan = plan_factory([event_factory("A"), event_factory("B")], display_name="Remote")
        registry = FakeRegistry(plan=plan)
        orchestrator = Orchestrator(self._remote(make_config), registry=registry, token="t0k")

        state = asyncio.run(orchestrator.run())

        assert registry.requests == [{"plan_id": "rs_1", "workspace_slug": "acme", "token": "t0k"}]
        assert load_tracking_plan(output_dir) == plan
        notes = _notes(state, StepName.LOAD_PLAN)
        assert notes[0] == "Pulling most recent version from registry"
        assert "Using Remote" in notes
        assert "2 added, 0 modified, 0 removed" in notes

    def test_delta_against_cache(self, make_config, cached_plan, plan_factory, event_factory):
        plan = plan_factory(
            [
                event_factory("Signed Up", {"plan": {"type": "integer"}}, ["plan"]),
                event_factory("Logged In"),
            ]
        )
        orchestrator = Orchestrator(
            self._remote(make_config), registry=FakeRegistry(plan=plan), token="t0k"
        )
        asyncio.run(orchestrator.run())
        assert orchestrator.delta.summary() == "1 added, 1 modified, 0 removed"

    def test_invalid_fetched_plan_keeps_cache(
        self, make_config, cached_plan, output_dir, plan_factory, event_factory
    ):
        bad = event_factory("Bad")
        bad["rules"] = {"type": 12}
        registry = FakeRegistry(plan=plan_factory([bad]))
        orchestrator = Orchestrator(self._remote(make_config), registry=registry, token="t0k")

        with pytest.raises(InvalidSchemaError):
            asyncio.run(orchestrator.run())

        assert load_tracking_plan(output_dir) == cached_plan

    def test_conflicting_fetched_plan_keeps_cache(
        self, make_config, cached_plan, output_dir, plan_factory, event_factory
    ):
        registry = FakeRegistry(
            plan=plan_factory([event_factory("Twice", version=2), event_factory("Twice", version=2)])
        )
        orchestrator = Orchestrator(self._remote(make_config), registry=registry, token="t0k")

        with pytest.raises(SchemaConflictError):
            asyncio.run(orchestrator.run())

        assert load_tracking_plan(output_dir) == cached_plan
        offline = Orchestrator(make_config())
        asyncio.run(offline.run())
        assert [e.title for e in offline.events] == ["Signed Up"]

    def test_unreadable_cache_replaced_by_fetched_plan(
        self, make_config, output_dir, plan_factory, event_factory
    ):
        output_dir.mkdir()
        (output_dir / TRACKING_PLAN_FILENAME).write_bytes(b"\xff\xfe\x00")
        plan = plan_factory([event_factory("A")])
        orchestrator = Orchestrator(
            self._remote(make_config), registry=FakeRegistry(plan=plan), token="t0k"
        )

        state = asyncio.run(orchestrator.run())

        assert state.is_finished
        assert _warnings(state, StepName.LOAD_PLAN)[0].startswith("Ignoring unreadable cached plan")
        assert load_tracking_plan(output_dir) == plan

    def test_fetch_failure_falls_back_to_cache(self, make_config, cached_plan):
        registry = FakeRegistry(error=PlanFetchError("Registry returned HTTP 500", status=500))
        orchestrator = Orchestrator(self._remote(make_config), registry=registry, token="t0k")

        state = asyncio.run(orchestrator.run())

        assert state.is_finished
        assert _warnings(state, StepName.LOAD_PLAN) == [
            "API request failed, using cache: Registry returned HTTP 500"
        ]
        assert orchestrator.plan == cached_plan

    def test_fetch_failure_without_cache_is_fatal(self, make_config):
        registry = FakeRegistry(error=PlanFetchError("Registry request failed"))
        with pytest.raises(PlanLoadError):
            asyncio.run(
                Orchestrator(self._remote(make_config), registry=registry, token="t0k").run()
            )

    def test_missing_token_uses_cache(self, make_config, cached_plan, monkeypatch):
        monkeypatch.delenv("TRACKGEN_TOKEN", raising=False)
        registry = FakeRegistry()
        state = asyncio.run(Orchestrator(self._remote(make_config), registry=registry).run())
        assert registry.requests == []
        assert _warnings(state, StepName.LOAD_PLAN) == [
            "No API token found (set TRACKGEN_TOKEN), using cache"
        ]

    def test_unconfigured_plan_uses_cache(self, make_config, cached_plan):
        registry = FakeRegistry()
        state = asyncio.run(
            Orchestrator(make_config(update=True), registry=registry, token="t0k").run()
        )
        assert registry.requests == []
        assert _warnings(state, StepName.LOAD_PLAN) == [
            "No tracking plan id or workspace configured, using cache"
        ]


class TestAfterScript:
    def test_successful_script(self, make_config, cached_plan, output_dir):
        marker = output_dir / "after.txt"
        config = make_config(scripts=ScriptsConfig(after=f"echo done > '{marker}'"))
        state = asyncio.run(Orchestrator(config).run())
        assert state.step(StepName.AFTER_SCRIPT).status is StepStatus.DONE
        assert _warnings(state, StepName.AFTER_SCRIPT) == []
        assert marker.read_text().strip() == "done"

    def test_failing_script_is_a_warning(self, make_config, cached_plan):
        config = make_config(scripts=ScriptsConfig(after="echo broken >&2; exit 3"))
        state = asyncio.run(Orchestrator(config).run())
        assert state.is_finished
        assert _warnings(state, StepName.AFTER_SCRIPT) == ["After script exited with status 3: broken"]


class TestStream:
    def test_snapshots_follow_step_order(self, make_config, cached_plan):
        states = _collect(Orchestrator(make_config()))

        assert all(s.status is StepStatus.PENDING for s in states[0].steps)
        assert states[-1].is_finished

        seen = []
        for state in states:
            for step in state.steps:
                if step.status is StepStatus.RUNNING and step.name not in seen:
                    seen.append(step.name)
        assert seen == [StepName.LOAD_PLAN, StepName.CLEAR_FILES, StepName.GENERATE_CLIENT]

    def test_one_step_running_at_a_time(self, make_config, cached_plan):
        for state in _collect(Orchestrator(make_config())):
            running = [s for s in state.steps if s.status is StepStatus.RUNNING]
            assert len(running) <= 1

    def test_snapshots_are_immutable(self, make_config, cached_plan):
        states = _collect(Orchestrator(make_config()))
        assert states[0].step(StepName.LOAD_PLAN).notes == ()


class TestCancellation:
    def test_cancel_before_clearing(self, make_config, cached_plan, output_dir):
        existing = output_dir / "tracking.py"
        existing.write_text(f"# {AUTOGENERATED_FILE_WARNING}\n")
        orchestrator = Orchestrator(make_config())
        orchestrator.cancel()

        with pytest.raises(PipelineCancelledError):
            asyncio.run(orchestrator.run())

        assert existing.exists()
        assert orchestrator.state.step(StepName.CLEAR_FILES).status is StepStatus.PENDING

    def test_cancel_after_clearing_warns(self, make_config, cached_plan, monkeypatch):
        orchestrator = Orchestrator(make_config())
        clear = orchestrator._clear_files

        async def clear_then_cancel(step):
            await clear(step)
            orchestrator.cancel()

        monkeypatch.setattr(orchestrator, "_clear_files", clear_then_cancel)

        with pytest.raises(PipelineCancelledError):
            asyncio.run(orchestrator.run())

        notes = orchestrator.state.step(StepName.CLEAR_FILES).notes
        assert notes[-1].kind is NoteKind.WARNING
        assert "removed but not regenerated" in notes[-1].text
        assert orchestrator.state.step(StepName.GENERATE_CLIENT).status is StepStatus.PENDING
