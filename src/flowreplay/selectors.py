"""
Selector parsing and resolution.

Recorded steps carry several selector candidates for the same element, for
example ``["aria/Submit", "#submit", "xpath//*[@id=\\"submit\\"]"]``. Each
candidate's syntax family is detected from its prefix:

    aria/..., pierce/..., text/...  -> unsupported, always skipped
    xpath/...                       -> rewritten to Playwright's ``xpath=`` form
    anything else                   -> plain css/query selector

The resolver keeps the first candidate, in order, that matches an element.
Waiting for a late element is bounded by the step timeout.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flowreplay.errors import SelectorResolutionError
from flowreplay.schema import DEFAULT_STEP_TIMEOUT_MS, SelectorFamily

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from flowreplay.schema import StepBase

logger = logging.getLogger(__name__)

UNSUPPORTED_FAMILIES = frozenset({
    SelectorFamily.ARIA,
    SelectorFamily.PIERCE,
    SelectorFamily.TEXT,
})

XPATH_PREFIX_LENGTH = len("xpath/")


@dataclass(frozen=True)
class ParsedSelector:
    """
    A selector candidate tagged with its syntax family.

    Attributes:
        family: Detected syntax family
        raw: The candidate exactly as recorded
        value: The query string handed to the page (``xpath=`` form for xpath)
    """

    family: SelectorFamily
    raw: str
    value: str

    @property
    def supported(self) -> bool:
        return self.family not in UNSUPPORTED_FAMILIES


def parse_selector(candidate: str) -> ParsedSelector:
    """Detect a candidate's family and build its query form."""
    for family in (SelectorFamily.ARIA, SelectorFamily.PIERCE, SelectorFamily.TEXT):
        if candidate.startswith(family.value):
            return ParsedSelector(family=family, raw=candidate, value=candidate)
    if candidate.startswith(SelectorFamily.XPATH.value):
        return ParsedSelector(
            family=SelectorFamily.XPATH,
            raw=candidate,
            value=f"xpath={candidate[XPATH_PREFIX_LENGTH:]}",
        )
    return ParsedSelector(family=SelectorFamily.CSS, raw=candidate, value=candidate)


def to_query(selector: str) -> str:
    """Query form of a single selector (only xpath candidates are rewritten)."""
    return parse_selector(selector).value


@dataclass(frozen=True)
class ResolvedSelector:
    """The candidate chosen for a step and the locator built from it."""

    parsed: ParsedSelector
    locator: "Locator"

    @property
    def query(self) -> str:
        return self.parsed.value


class SelectorResolver:
    """
    Picks the first usable selector candidate for a step.

    Candidates are first checked against the current DOM without waiting.
    When none matches yet, the resolver waits up to the step timeout for any
    of them to attach and then checks again in candidate order.
    """

    async def resolve(
        self,
        step: "StepBase",
        page: "Page",
        step_index: int,
        timeout: int = DEFAULT_STEP_TIMEOUT_MS,
    ) -> ResolvedSelector | None:
        """
        Resolve the step's selector candidates against the page.

        Args:
            step: The step whose ``selectors`` are resolved
            page: Page to resolve against
            step_index: Position of the step (diagnostics only)
            timeout: How long a late element may take to attach, in milliseconds

        Returns:
            The first usable candidate, or None when the step has no candidates

        Raises:
            SelectorResolutionError: If candidates exist but none is usable
        """
        if not step.selectors:
            return None

        candidates: list[tuple[ParsedSelector, "Locator"]] = []
        for candidate in step.selectors:
            parsed = parse_selector(candidate)
            if not parsed.supported:
                logger.debug("step<%d>: skipping %s selector %s", step_index, parsed.family.value, candidate)
                continue
            candidates.append((parsed, page.locator(parsed.value)))

        resolved, candidates = await self._first_attached(candidates, step_index)
        if resolved is None and candidates:
            try:
                await self._wait_for_any(candidates, timeout)
            except Exception as e:
                logger.warning(
                    "step<%d>: no selector attached within %dms (%s)",
                    step_index,
                    timeout,
                    e,
                )
            else:
                resolved, _ = await self._first_attached(candidates, step_index)

        if resolved is not None:
            logger.debug("step<%d>: using selector %s", step_index, resolved.query)
            return resolved

        raise SelectorResolutionError(
            step_index=step_index,
            step_type=step.type,
            step_json=step.to_json(),
            candidates=list(step.selectors),
        )

    async def _first_attached(
        self,
        candidates: list[tuple[ParsedSelector, "Locator"]],
        step_index: int,
    ) -> tuple[ResolvedSelector | None, list[tuple[ParsedSelector, "Locator"]]]:
        """Check the DOM once; returns the first match and the candidates that did not error."""
        valid = []
        for parsed, locator in candidates:
            try:
                count = await locator.count()
            except Exception as e:
                logger.warning(
                    "step<%d>: selector %s not usable (%s), trying next selector",
                    step_index,
                    parsed.value,
                    e,
                )
                continue
            if count > 0:
                return ResolvedSelector(parsed=parsed, locator=locator), valid
            valid.append((parsed, locator))
        return None, valid

    async def _wait_for_any(
        self,
        candidates: list[tuple[ParsedSelector, "Locator"]],
        timeout: int,
    ) -> None:
        combined = candidates[0][1]
        for _, locator in candidates[1:]:
            combined = combined.or_(locator)
        await combined.first.wait_for(state="attached", timeout=timeout)
