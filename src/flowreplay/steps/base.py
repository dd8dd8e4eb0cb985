"""
Base classes for step actions.

Each recorded step type is replayed by one StepAction:
- StepAction: Abstract base class that every step kind implements
- StepContext: Everything an action needs for one step (page, selector, timeout)

Design Principles:
    - Actions are stateless; per-step state lives in StepContext
    - Actions raise on failure; the engine turns the exception into a failed task
    - Actions are registered by step type; adding a kind means registering an action
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flowreplay.errors import SelectorResolutionError

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from flowreplay.schema import StepBase
    from flowreplay.selectors import ResolvedSelector


@dataclass
class StepContext:
    """
    Runtime context passed to an action.

    Attributes:
        page: The page being replayed against
        selector: The resolved selector, or None when the step has no candidates
        timeout: Effective timeout for this step in milliseconds
        step_index: Position of the step in the flow (diagnostics only)
    """

    page: "Page"
    selector: "ResolvedSelector | None"
    timeout: int
    step_index: int = 0


class StepAction(ABC):
    """
    Abstract base class for step actions.

    Subclasses must implement:
    - step_type property: The recorder's ``type`` value this action replays
    - execute(): Performs the step against the page

    Example:
        class ReloadAction(StepAction):
            @property
            def step_type(self) -> str:
                return "reload"

            async def execute(self, step, context):
                await context.page.reload(timeout=context.timeout)
    """

    # Steps of kinds that set this fail when no selector was resolved
    requires_selector: bool = False

    @property
    @abstractmethod
    def step_type(self) -> str:
        """The step ``type`` this action handles."""
        ...

    @abstractmethod
    async def execute(self, step: "StepBase", context: StepContext) -> None:
        """
        Replay one step.

        Args:
            step: The parsed step
            context: Page, resolved selector and timeout for this step

        Raises:
            Exception: Any failure; the replay is aborted
        """
        ...

    def locator(self, step: "StepBase", context: StepContext) -> "Locator":
        """Return the resolved locator, failing the step when there is none."""
        if context.selector is None:
            raise SelectorResolutionError(
                step_index=context.step_index,
                step_type=step.type,
                step_json=step.to_json(),
            )
        return context.selector.locator

    def query(self, step: "StepBase", context: StepContext) -> str:
        """Return the resolved query string, failing the step when there is none."""
        self.locator(step, context)
        return context.selector.query

    def __repr__(self) -> str:
        return f"<StepAction: {self.step_type}>"
