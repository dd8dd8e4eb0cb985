"""
Unit tests for asserted event evaluation.

Tests cover:
- Each supported event type, passing and failing
- Unknown event types
- Ordering and error wrapping
"""

import pytest
from conftest import FakeElement, FakePage

from flowreplay.assertions import AssertionEvaluator
from flowreplay.errors import AssertionTimeoutError
from flowreplay.schema import (
    ElementBoundingBoxEvent,
    ElementCountEvent,
    ElementTextEvent,
    NavigationEvent,
    UnknownAssertedEvent,
)


@pytest.fixture
def evaluator() -> AssertionEvaluator:
    return AssertionEvaluator()


class TestAssertionEvaluator:
    """Tests for AssertionEvaluator.evaluate()."""

    @pytest.mark.asyncio
    async def test_no_events(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage()
        await evaluator.evaluate([], page, 5000)
        assert page.calls == []

    @pytest.mark.asyncio
    async def test_bounding_box_presence(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage({"xpath=//dialog": [FakeElement(visible=False)]})
        await evaluator.evaluate([ElementBoundingBoxEvent(selector="xpath//dialog")], page, 5000)
        assert page.calls == [("wait_for_selector", "xpath=//dialog", "attached")]

    @pytest.mark.asyncio
    async def test_count_exact(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage({".row": [FakeElement(), FakeElement()]})
        await evaluator.evaluate([ElementCountEvent(selector=".row", count=2)], page, 5000)

        with pytest.raises(AssertionTimeoutError) as exc_info:
            await evaluator.evaluate([ElementCountEvent(selector=".row", count=3)], page, 750, step_index=4)
        err = exc_info.value
        assert err.event_type == "elementCount"
        assert err.step_index == 4
        assert err.timeout_ms == 750

    @pytest.mark.asyncio
    async def test_text(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage({"h1": [FakeElement(text="Welcome")]})
        await evaluator.evaluate([ElementTextEvent(selector="h1", text="Welcome")], page, 5000)
        with pytest.raises(AssertionTimeoutError):
            await evaluator.evaluate([ElementTextEvent(selector="h1", text="Goodbye")], page, 5000)

    @pytest.mark.asyncio
    async def test_navigation(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage()
        page.url = "https://example.test/done"
        await evaluator.evaluate([NavigationEvent(url="https://example.test/done")], page, 5000)
        with pytest.raises(AssertionTimeoutError):
            await evaluator.evaluate([NavigationEvent(url="https://example.test/other")], page, 5000)

    @pytest.mark.asyncio
    async def test_navigation_without_url_skipped(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage()
        await evaluator.evaluate([NavigationEvent(title="Done")], page, 5000)
        assert page.calls == []

    @pytest.mark.asyncio
    async def test_unknown_event_skipped(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage()
        await evaluator.evaluate([UnknownAssertedEvent(type="screenshot")], page, 5000)
        assert page.calls == []

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, evaluator: AssertionEvaluator) -> None:
        page = FakePage()
        events = [
            ElementBoundingBoxEvent(selector="#missing"),
            NavigationEvent(url="https://example.test"),
        ]
        with pytest.raises(AssertionTimeoutError):
            await evaluator.evaluate(events, page, 5000)
        assert "wait_for_url" not in page.call_names()
