"""
Replay Engine for flowreplay.

The ReplayEngine replays a recorded user flow against a live page and
records the outcome in the TaskStore. It coordinates between:
- Template preprocessing: ``${name}`` inputs are substituted into the flow text
- Selector resolution: the first usable candidate is picked for each step
- Step actions: each step type is dispatched to its registered action
- Assertions: a step's asserted events are awaited after its action

Execution Flow:
    1. launch() creates a pending task and schedules replay() on the event loop
    2. replay() reads, substitutes and parses the flow once
    3. For each step, in document order:
        a. Resolve selectors (fatal if candidates exist but none is usable)
        b. Execute the action (unknown types are logged and skipped)
        c. Wait for asserted events
    4. The task is marked completed, or failed with the first error's message

Design Principles:
    - Fail-fast: the first fatal error aborts the remaining steps, no retries
    - Single writer: only the replay() call for a task id writes its terminal state
    - No resume: a failed replay is restarted from the first step
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from flowreplay.assertions import AssertionEvaluator
from flowreplay.config import Settings
from flowreplay.errors import (
    FlowNotFoundError,
    FlowReplayError,
    SelectorResolutionError,
    StepExecutionError,
    error_message,
)
from flowreplay.schema import Flow, StepBase, parse_flow
from flowreplay.selectors import SelectorResolver
from flowreplay.steps import StepContext, StepRegistry, default_registry
from flowreplay.store import TaskStore, generate_task_id
from flowreplay.template import preprocess

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

SUCCESS_RESULT = {"successReplay": True}


@dataclass
class ReplayHandle:
    """
    Handle returned by ReplayEngine.launch().

    The outcome is observed through the store (ReplayEngine.get_status);
    awaiting ``task`` is only needed by callers that own the event loop.

    Attributes:
        task_id: Id of the task in the store
        task: The asyncio task running the replay (resolves to True on success)
    """

    task_id: str
    task: "asyncio.Task[bool]"

    async def wait(self) -> bool:
        """Wait for the replay to finish; never raises for replay failures."""
        return await self.task


class ReplayEngine:
    """
    Replays recorded user flows and tracks their status.

    Usage:
        store = TaskStore()
        engine = ReplayEngine(store=store, settings=load_settings())
        handle = engine.launch("checkout.json", {"email": "a@b.test"}, page)
        ...
        engine.get_status(handle.task_id)  # {"taskId": ..., "status": "completed", ...}

    Attributes:
        store: Task status store shared with status-polling callers
        settings: Flow directory and timeout defaults
        registry: Step actions by step type
        resolver: Selector resolver
        evaluator: Asserted event evaluator
    """

    def __init__(
        self,
        store: TaskStore | None = None,
        settings: Settings | None = None,
        registry: StepRegistry | None = None,
        resolver: SelectorResolver | None = None,
        evaluator: AssertionEvaluator | None = None,
    ) -> None:
        self.store = store if store is not None else TaskStore()
        self.settings = settings or Settings()
        self.registry = registry or default_registry
        self.resolver = resolver or SelectorResolver()
        self.evaluator = evaluator or AssertionEvaluator()
        # Strong references so running tasks are not garbage collected
        self._running: set[asyncio.Task[bool]] = set()

    # -------------------------------------------------------------------------
    # Launch and status
    # -------------------------------------------------------------------------

    def launch(
        self,
        flow_ref: str | Path,
        input_data: Mapping[str, Any] | None,
        page: "Page",
        task_id: str | None = None,
    ) -> ReplayHandle:
        """
        Start a replay in the background and return immediately.

        Must be called from a running event loop. The task is created in the
        pending state before this returns.

        Args:
            flow_ref: Flow file, relative to the flow directory unless absolute
            input_data: Values for the flow's ``${name}`` placeholders
            page: Page to replay against; it must not be shared with another replay
            task_id: Optional id to use instead of a generated one

        Returns:
            ReplayHandle with the task id
        """
        task_id = task_id or generate_task_id()
        self.store.create_pending(task_id)
        task = asyncio.create_task(
            self.replay(flow_ref, input_data, page, task_id),
            name=f"flowreplay-{task_id}",
        )
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        logger.info("launched replay of %s as task %s", flow_ref, task_id)
        return ReplayHandle(task_id=task_id, task=task)

    def get_status(self, task_id: str) -> dict[str, Any]:
        """
        Status of a task as ``{taskId, status, result?, error?}``.

        Raises:
            TaskNotFoundError: If the task id is unknown
        """
        return self.store.require(task_id).to_status()

    # -------------------------------------------------------------------------
    # Flow loading
    # -------------------------------------------------------------------------

    def read_flow_text(self, flow_ref: str | Path) -> str:
        """
        Read the raw text of a flow file.

        Raises:
            FlowNotFoundError: If the file cannot be read
        """
        path = self.settings.resolve_flow(flow_ref)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise FlowNotFoundError(
                flow_ref=str(flow_ref),
                path=str(path),
                message=f"Cannot read flow file {path}: {e.strerror or e}",
            ) from e

    def load_flow(
        self,
        flow_ref: str | Path,
        input_data: Mapping[str, Any] | None = None,
    ) -> Flow:
        """Read a flow, substitute its inputs and parse it."""
        content = preprocess(self.read_flow_text(flow_ref), input_data or {})
        return parse_flow(content, flow_ref=str(flow_ref))

    def input_schema(self, flow_ref: str | Path) -> Any:
        """Return the flow's ``input_schema`` (None when it declares none)."""
        return parse_flow(self.read_flow_text(flow_ref), flow_ref=str(flow_ref)).input_schema

    # -------------------------------------------------------------------------
    # Replay
    # -------------------------------------------------------------------------

    async def replay(
        self,
        flow_ref: str | Path,
        input_data: Mapping[str, Any] | None,
        page: "Page",
        task_id: str,
    ) -> bool:
        """
        Replay a flow and record the outcome for ``task_id``.

        Errors are never raised to the caller; they end up as a failed task
        carrying the error message.

        Returns:
            True if every step and assertion succeeded
        """
        logger.info("task %s: replaying %s", task_id, flow_ref)
        try:
            flow = self.load_flow(flow_ref, input_data)
            for step_index, step in enumerate(flow.steps):
                await self._run_step(step, step_index, page)
        except Exception as e:
            message = error_message(e)
            logger.error("task %s: replay failed: %s", task_id, message)
            self.store.set_failed(task_id, message)
            return False

        logger.info("task %s: replay completed (%d steps)", task_id, len(flow.steps))
        self.store.set_completed(task_id, dict(SUCCESS_RESULT))
        return True

    async def _run_step(self, step: StepBase, step_index: int, page: "Page") -> None:
        """Resolve, execute and assert a single step; raises on any fatal error."""
        timeout = step.effective_timeout(self.settings.default_timeout_ms)
        selector = await self.resolver.resolve(step, page, step_index, timeout)
        context = StepContext(
            page=page,
            selector=selector,
            timeout=timeout,
            step_index=step_index,
        )

        action = self.registry.get_optional(step.type)
        if action is None:
            logger.warning("step<%d>: unsupported step type: %s", step_index, step.type)
        else:
            if action.requires_selector and selector is None:
                raise SelectorResolutionError(
                    step_index=step_index,
                    step_type=step.type,
                    step_json=step.to_json(),
                )
            try:
                await action.execute(step, context)
            except FlowReplayError:
                raise
            except Exception as e:
                raise StepExecutionError(
                    step_index=step_index,
                    step_type=step.type,
                    underlying_error=str(e),
                ) from e

        await self.evaluator.evaluate(step.asserted_events, page, timeout, step_index)
