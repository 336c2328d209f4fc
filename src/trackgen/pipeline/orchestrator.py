"""Pipeline Orchestrator: load plan, clear stale files, generate, run hook.

The four steps run strictly in sequence. Progress is published as a stream
of immutable ``PipelineState`` snapshots, one per status transition and per
appended note, through an asyncio queue consumed by ``stream()``.

Recoverable failures (registry fetch, unreadable files while clearing, the
after script) become warning notes on the running step. Fatal failures end
the run and are re-raised to whoever consumes the stream, after the last
snapshot has been delivered.

Example:
    >>> orchestrator = Orchestrator(load_config())
    >>> async for state in orchestrator.stream():
    ...     render(state)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from ..codegen import GeneratedFile, GenerationOptions, generate
from ..config import GeneratorConfig, resolve_token
from ..exceptions import (
    OutputDirectoryError,
    PipelineCancelledError,
    PlanError,
    PlanFetchError,
    PlanLoadError,
)
from ..plan import (
    Delta,
    NormalizedEvent,
    RawTrackingPlan,
    RegistryClient,
    compute_delta,
    load_tracking_plan,
    normalize,
    write_tracking_plan,
)
from ..plan.store import plan_path
from ..reconcile import clear_generated_files
from .state import NoteKind, PipelineState, StepName, StepStatus

logger = logging.getLogger(__name__)

_DONE = object()


class Orchestrator:
    """Runs one generation pass for a configuration.

    One instance per run. Only the orchestrator changes pipeline state;
    consumers see frozen snapshots.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        registry: Optional[RegistryClient] = None,
        token: Optional[str] = None,
    ) -> None:
        self.config = config
        self.registry = registry or RegistryClient(
            api_url=config.api.url, timeout=config.api.timeout_seconds
        )
        self._token = token
        self._state = PipelineState()
        self._queue: Optional[asyncio.Queue] = None
        self._cancel_requested = False
        self._cleared = False

        # Results, filled in as the steps complete
        self.plan: Optional[RawTrackingPlan] = None
        self.events: List[NormalizedEvent] = []
        self.delta: Optional[Delta] = None
        self.files: List[GeneratedFile] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    def cancel(self) -> None:
        """Request cancellation. Honoured at the next step boundary."""
        self._cancel_requested = True

    async def stream(self) -> AsyncIterator[PipelineState]:
        """Run the pipeline, yielding a snapshot after every change.

        Raises:
            TrackgenError: The fatal error that ended the run, after the
                final snapshot.
        """
        self._queue = asyncio.Queue()
        yield self._state
        task = asyncio.ensure_future(self._execute())
        try:
            while True:
                item = await self._queue.get()
                if item is _DONE:
                    break
                yield item
            await task
        finally:
            if not task.done():
                task.cancel()

    async def run(self) -> PipelineState:
        """Run to completion without observing intermediate snapshots."""
        async for _ in self.stream():
            pass
        return self._state

    # ── state changes ─────────────────────────────────────────────────

    def _publish(self, state: PipelineState) -> None:
        self._state = state
        if self._queue is not None:
            self._queue.put_nowait(state)

    def _move(self, step: StepName, status: StepStatus) -> None:
        self._publish(self._state.transition(step, status))

    def _note(self, step: StepName, text: str) -> None:
        logger.debug("%s: %s", step.value, text)
        self._publish(self._state.note(step, text))

    def _warn(self, step: StepName, text: str) -> None:
        logger.warning("%s", text)
        self._publish(self._state.note(step, text, NoteKind.WARNING))

    # ── sequencing ────────────────────────────────────────────────────

    async def _execute(self) -> None:
        try:
            await self._run_step(StepName.LOAD_PLAN, self._load_plan)
            self._check_cancelled(StepName.LOAD_PLAN)
            await self._run_step(StepName.CLEAR_FILES, self._clear_files)
            self._check_cancelled(StepName.CLEAR_FILES)
            await self._run_step(StepName.GENERATE_CLIENT, self._generate_client)
            self._check_cancelled(StepName.GENERATE_CLIENT)
            if self.config.scripts.after:
                await self._run_step(StepName.AFTER_SCRIPT, self._after_script)
            else:
                self._move(StepName.AFTER_SCRIPT, StepStatus.SKIPPED)
        finally:
            if self._queue is not None:
                self._queue.put_nowait(_DONE)

    async def _run_step(
        self, step: StepName, body: Callable[[StepName], Awaitable[None]]
    ) -> None:
        self._move(step, StepStatus.RUNNING)
        await body(step)
        self._move(step, StepStatus.DONE)

    def _check_cancelled(self, after: StepName) -> None:
        if not self._cancel_requested:
            return
        if self._cleared and not self.files:
            self._warn(
                after,
                f"Cancelled after clearing {self.config.output_path}: "
                "generated files were removed but not regenerated",
            )
        raise PipelineCancelledError(after.value)

    # ── steps ─────────────────────────────────────────────────────────

    async def _load_plan(self, step: StepName) -> None:
        directory = self.config.plan_directory
        cache_error: Optional[PlanError] = None
        try:
            cached = await asyncio.to_thread(load_tracking_plan, directory)
        except PlanError as e:
            if not self.config.update:
                raise
            cached, cache_error = None, e
            self._warn(step, f"Ignoring unreadable cached plan: {e.message}")

        fetched = await self._fetch_plan(step) if self.config.update else None

        if fetched is not None:
            plan = fetched
        elif cached is not None:
            self._note(step, f"Loading from {plan_path(directory)}")
            plan = cached
        elif cache_error is not None:
            raise cache_error
        else:
            raise PlanLoadError(
                f"No tracking plan available: nothing cached at {plan_path(directory)} "
                "and no plan was fetched",
                path=str(plan_path(directory)),
            )

        self._note(step, f"Using {plan.display_name or plan.id or 'cached tracking plan'}")
        events = normalize(plan)
        if fetched is not None:
            # Only a plan that normalizes replaces the cache
            await asyncio.to_thread(write_tracking_plan, directory, fetched)
        self.plan = plan
        self.events = events
        self.delta = compute_delta(self._previous_events(cached), self.events)
        if self.config.update:
            self._note(step, self.delta.summary())

    def _previous_events(self, cached: Optional[RawTrackingPlan]) -> List[NormalizedEvent]:
        if cached is None:
            return []
        try:
            return normalize(cached)
        except PlanError as e:
            # A broken old cache only costs the delta report
            logger.debug("Cached plan does not normalize, reporting all events as added: %s", e)
            return []

    async def _fetch_plan(self, step: StepName) -> Optional[RawTrackingPlan]:
        plan_config = self.config.tracking_plan
        if not plan_config.is_remote:
            self._warn(step, "No tracking plan id or workspace configured, using cache")
            return None
        token = self._token or resolve_token(self.config)
        if not token:
            self._warn(step, "No API token found (set TRACKGEN_TOKEN), using cache")
            return None

        self._note(step, "Pulling most recent version from registry")
        try:
            return await self.registry.fetch_tracking_plan(
                plan_id=plan_config.id,
                workspace_slug=plan_config.workspace_slug,
                token=token,
            )
        except PlanFetchError as e:
            self._warn(step, f"API request failed, using cache: {e.message}")
            return None

    async def _clear_files(self, step: StepName) -> None:
        result = await asyncio.to_thread(clear_generated_files, self.config.output_path)
        self._cleared = True
        for warning in result.warnings:
            self._warn(step, warning)
        logger.debug("Removed %d generated file(s)", len(result.removed))

    async def _generate_client(self, step: StepName) -> None:
        production = self.config.production
        self._note(step, f"Building for {'production' if production else 'development'}")
        options = GenerationOptions(target=self.config.target, is_development=not production)
        files = generate(self.events, options)

        output = self.config.output_path
        self._note(step, f"Writing to {output}")
        try:
            await asyncio.to_thread(output.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(str(output), e.strerror or str(e))

        results = await asyncio.gather(
            *(asyncio.to_thread(write_generated_file, output, f) for f in files),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            raise errors[0]
        self.files = files

    async def _after_script(self, step: StepName) -> None:
        command = self.config.scripts.after
        self._note(step, command)
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
        except OSError as e:
            self._warn(step, f"After script could not be started: {e}")
            return
        if process.returncode != 0:
            detail = stderr.decode("utf-8", "replace").strip().splitlines()
            message = f"After script exited with status {process.returncode}"
            if detail:
                message += f": {detail[-1]}"
            self._warn(step, message)


def write_generated_file(directory: Path, file: GeneratedFile) -> Path:
    """Write one generated file.

    Raises:
        OutputDirectoryError: If the file cannot be written.
    """
    path = Path(directory) / file.path
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(file.contents)
    except OSError as e:
        raise OutputDirectoryError(str(path), e.strerror or str(e))
    logger.debug("Wrote %s", path)
    return path
