"""
Asserted event evaluation.

After a step's action succeeds, its ``assertedEvents`` are awaited in order,
each bounded by the step timeout:

    elementBoundingBox  the selector matches an element (presence only)
    elementCount        the selector matches exactly ``count`` elements
    elementText         the first match's textContent equals ``text``
    navigation          the page URL matches ``url``

Unknown event types are logged and skipped. A failed wait raises
AssertionTimeoutError, which aborts the replay.
"""

import logging
from typing import TYPE_CHECKING, Sequence

from flowreplay.errors import AssertionTimeoutError
from flowreplay.page_scripts import COUNT_MATCHES, TEXT_EQUALS
from flowreplay.schema import (
    AssertedEventBase,
    ElementBoundingBoxEvent,
    ElementCountEvent,
    ElementTextEvent,
    NavigationEvent,
)
from flowreplay.selectors import to_query

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


class AssertionEvaluator:
    """Waits for a step's asserted events to hold."""

    async def evaluate(
        self,
        events: Sequence[AssertedEventBase],
        page: "Page",
        timeout: int,
        step_index: int = 0,
    ) -> None:
        """
        Wait for each event in order.

        Args:
            events: The step's asserted events
            page: Page to evaluate against
            timeout: Per-event timeout in milliseconds
            step_index: Position of the step (diagnostics only)

        Raises:
            AssertionTimeoutError: If an event does not hold within ``timeout``
        """
        for event in events:
            try:
                await self._evaluate_one(event, page, timeout, step_index)
            except AssertionTimeoutError:
                raise
            except Exception as e:
                raise AssertionTimeoutError(
                    step_index=step_index,
                    event_type=event.type,
                    timeout_ms=timeout,
                    underlying_error=str(e),
                ) from e

    async def _evaluate_one(
        self,
        event: AssertedEventBase,
        page: "Page",
        timeout: int,
        step_index: int,
    ) -> None:
        if isinstance(event, ElementBoundingBoxEvent):
            logger.info("step<%d>: asserting element %s is present", step_index, event.selector)
            await page.wait_for_selector(to_query(event.selector), state="attached", timeout=timeout)

        elif isinstance(event, ElementCountEvent):
            logger.info(
                "step<%d>: asserting element %s count is %d",
                step_index,
                event.selector,
                event.count,
            )
            await page.wait_for_function(
                COUNT_MATCHES,
                arg={"selector": to_query(event.selector), "operator": "==", "count": event.count},
                timeout=timeout,
            )

        elif isinstance(event, ElementTextEvent):
            logger.info(
                "step<%d>: asserting element %s text is %r",
                step_index,
                event.selector,
                event.text,
            )
            await page.wait_for_function(
                TEXT_EQUALS,
                arg={"selector": to_query(event.selector), "text": event.text},
                timeout=timeout,
            )

        elif isinstance(event, NavigationEvent):
            if not event.url:
                logger.warning("step<%d>: navigation assertion without url, skipped", step_index)
                return
            logger.info("step<%d>: asserting navigation to %s", step_index, event.url)
            await page.wait_for_url(event.url, timeout=timeout)

        else:
            logger.warning("step<%d>: unsupported asserted event type: %s", step_index, event.type)
