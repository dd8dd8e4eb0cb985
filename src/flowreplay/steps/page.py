"""
Page-level step actions.

Steps in this module act on the page as a whole and need no selector:
    - navigate: Load a URL
    - close: Close the page without running unload handlers
    - scroll: Scroll the viewport to an absolute position
    - setViewport: Resize the viewport
    - customStep: Extension point, logged only
"""

import logging
from typing import TYPE_CHECKING

from flowreplay.page_scripts import SCROLL_TO
from flowreplay.schema import (
    CustomStep,
    NavigateStep,
    ScrollStep,
    SetViewportStep,
    StepBase,
)
from flowreplay.steps.base import StepAction, StepContext

if TYPE_CHECKING:
    from flowreplay.steps.registry import StepRegistry

logger = logging.getLogger(__name__)


class NavigateAction(StepAction):
    """Go to the step's url."""

    @property
    def step_type(self) -> str:
        return "navigate"

    async def execute(self, step: NavigateStep, context: StepContext) -> None:
        logger.info("step<%d>: navigating to %s", context.step_index, step.url)
        await context.page.goto(step.url, timeout=context.timeout)


class CloseAction(StepAction):
    @property
    def step_type(self) -> str:
        return "close"

    async def execute(self, step: StepBase, context: StepContext) -> None:
        logger.info("step<%d>: closing the page", context.step_index)
        await context.page.close(run_before_unload=False)


class ScrollAction(StepAction):
    """Scroll the window to (x, y) by evaluating a script in the page."""

    @property
    def step_type(self) -> str:
        return "scroll"

    async def execute(self, step: ScrollStep, context: StepContext) -> None:
        logger.info("step<%d>: scrolling to x=%s y=%s", context.step_index, step.x, step.y)
        await context.page.evaluate(SCROLL_TO, {"x": step.x, "y": step.y})


class SetViewportAction(StepAction):
    """
    Resize the viewport to the step's width and height.

    deviceScaleFactor, isMobile, hasTouch and isLandscape cannot be changed on
    an open page; they are reported in the log and otherwise ignored.
    """

    @property
    def step_type(self) -> str:
        return "setViewport"

    async def execute(self, step: SetViewportStep, context: StepContext) -> None:
        logger.info(
            "step<%d>: setting viewport to %dx%d",
            context.step_index,
            step.width,
            step.height,
        )
        await context.page.set_viewport_size({"width": step.width, "height": step.height})

        ignored = {
            name: value
            for name, value in (
                ("deviceScaleFactor", step.device_scale_factor),
                ("isMobile", step.is_mobile),
                ("hasTouch", step.has_touch),
                ("isLandscape", step.is_landscape),
            )
            if value is not None
        }
        if ignored:
            logger.info("step<%d>: device emulation not applied: %s", context.step_index, ignored)


class CustomStepAction(StepAction):
    """Log custom steps; callers that need behavior register their own action."""

    @property
    def step_type(self) -> str:
        return "customStep"

    async def execute(self, step: CustomStep, context: StepContext) -> None:
        logger.info(
            "step<%d>: custom step %s with parameters %s",
            context.step_index,
            step.name,
            step.parameters,
        )


def register_page_steps(registry: "StepRegistry") -> None:
    """Register the page-level actions in ``registry``."""
    registry.register(NavigateAction())
    registry.register(CloseAction())
    registry.register(ScrollAction())
    registry.register(SetViewportAction())
    registry.register(CustomStepAction())
