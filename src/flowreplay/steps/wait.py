"""
Wait step actions.

waitForElement runs up to four independent waits, each bounded by the step
timeout: presence/visibility of the selector, the match count compared with
``operator``, then DOM properties and attributes of the first match when the
step declares them. waitForExpression waits for a script expression to
become truthy.
"""

import logging
from typing import TYPE_CHECKING

from flowreplay.page_scripts import ATTRIBUTES_EQUAL, COUNT_MATCHES, PROPERTIES_EQUAL
from flowreplay.schema import WaitForElementStep, WaitForExpressionStep
from flowreplay.steps.base import StepAction, StepContext

if TYPE_CHECKING:
    from flowreplay.steps.registry import StepRegistry

logger = logging.getLogger(__name__)


class WaitForElementAction(StepAction):
    requires_selector = True

    @property
    def step_type(self) -> str:
        return "waitForElement"

    async def execute(self, step: WaitForElementStep, context: StepContext) -> None:
        query = self.query(step, context)
        page = context.page
        timeout = context.timeout

        logger.info(
            "step<%d>: waiting for %s with operator %s count %d",
            context.step_index,
            query,
            step.operator,
            step.count,
        )
        await page.wait_for_selector(
            query,
            state="visible" if step.visible else "attached",
            timeout=timeout,
        )
        await page.wait_for_function(
            COUNT_MATCHES,
            arg={"selector": query, "operator": step.operator, "count": step.count},
            timeout=timeout,
        )
        if step.properties:
            await page.wait_for_function(
                PROPERTIES_EQUAL,
                arg={"selector": query, "properties": step.properties},
                timeout=timeout,
            )
        if step.attributes:
            await page.wait_for_function(
                ATTRIBUTES_EQUAL,
                arg={"selector": query, "attributes": step.attributes},
                timeout=timeout,
            )


class WaitForExpressionAction(StepAction):
    @property
    def step_type(self) -> str:
        return "waitForExpression"

    async def execute(self, step: WaitForExpressionStep, context: StepContext) -> None:
        logger.info(
            "step<%d>: waiting for expression %s (timeout %dms)",
            context.step_index,
            step.expression,
            context.timeout,
        )
        await context.page.wait_for_function(step.expression, timeout=context.timeout)


def register_wait_steps(registry: "StepRegistry") -> None:
    """Register the wait actions in ``registry``."""
    registry.register(WaitForElementAction())
    registry.register(WaitForExpressionAction())
