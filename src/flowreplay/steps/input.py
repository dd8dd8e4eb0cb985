"""
Input step actions: pointer and keyboard.

Pointer steps (click, doubleClick, hover, change) act on the step's resolved
locator and fail when the step has no usable selector. Keyboard steps send
raw key events to the page and ignore selectors.
"""

import logging
from typing import TYPE_CHECKING

from flowreplay.schema import (
    ChangeStep,
    ClickStep,
    DoubleClickStep,
    KeyDownStep,
    KeyUpStep,
    StepBase,
)
from flowreplay.steps.base import StepAction, StepContext

if TYPE_CHECKING:
    from flowreplay.steps.registry import StepRegistry

logger = logging.getLogger(__name__)


class ClickAction(StepAction):
    """Click the element at the recorded offset."""

    requires_selector = True

    @property
    def step_type(self) -> str:
        return "click"

    async def execute(self, step: ClickStep, context: StepContext) -> None:
        locator = self.locator(step, context)
        logger.info(
            "step<%d>: clicking %s at offset (%s, %s)",
            context.step_index,
            context.selector.query,
            step.offset_x,
            step.offset_y,
        )
        await locator.click(
            position={"x": step.offset_x, "y": step.offset_y},
            timeout=context.timeout,
        )


class DoubleClickAction(StepAction):
    requires_selector = True

    @property
    def step_type(self) -> str:
        return "doubleClick"

    async def execute(self, step: DoubleClickStep, context: StepContext) -> None:
        locator = self.locator(step, context)
        logger.info(
            "step<%d>: double clicking %s at offset (%s, %s)",
            context.step_index,
            context.selector.query,
            step.offset_x,
            step.offset_y,
        )
        await locator.dblclick(
            position={"x": step.offset_x, "y": step.offset_y},
            timeout=context.timeout,
        )


class ChangeAction(StepAction):
    """Set a field's value."""

    requires_selector = True

    @property
    def step_type(self) -> str:
        return "change"

    async def execute(self, step: ChangeStep, context: StepContext) -> None:
        locator = self.locator(step, context)
        logger.info("step<%d>: filling %s", context.step_index, context.selector.query)
        await locator.fill(step.value, timeout=context.timeout)


class HoverAction(StepAction):
    requires_selector = True

    @property
    def step_type(self) -> str:
        return "hover"

    async def execute(self, step: StepBase, context: StepContext) -> None:
        locator = self.locator(step, context)
        logger.info("step<%d>: hovering over %s", context.step_index, context.selector.query)
        await locator.hover(timeout=context.timeout)


class KeyDownAction(StepAction):
    @property
    def step_type(self) -> str:
        return "keyDown"

    async def execute(self, step: KeyDownStep, context: StepContext) -> None:
        logger.info("step<%d>: pressing key %s", context.step_index, step.key)
        await context.page.keyboard.down(step.key)


class KeyUpAction(StepAction):
    @property
    def step_type(self) -> str:
        return "keyUp"

    async def execute(self, step: KeyUpStep, context: StepContext) -> None:
        logger.info("step<%d>: releasing key %s", context.step_index, step.key)
        await context.page.keyboard.up(step.key)


def register_input_steps(registry: "StepRegistry") -> None:
    """Register the pointer and keyboard actions in ``registry``."""
    registry.register(ClickAction())
    registry.register(DoubleClickAction())
    registry.register(ChangeAction())
    registry.register(HoverAction())
    registry.register(KeyDownAction())
    registry.register(KeyUpAction())
