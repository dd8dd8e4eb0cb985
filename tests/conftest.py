"""
Pytest configuration and fixtures for flowreplay tests.

This module provides shared fixtures used across unit and integration tests,
including FakePage: an in-memory stand-in for a Playwright page. Its DOM is a
dict from query string (``#submit``, ``xpath=//li``) to matching elements, and
every page operation is recorded in ``page.calls``.
"""

import json
import operator
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from flowreplay.config import Settings
from flowreplay.engine import ReplayEngine
from flowreplay.page_scripts import (
    ATTRIBUTES_EQUAL,
    COUNT_MATCHES,
    PROPERTIES_EQUAL,
    TEXT_EQUALS,
)
from flowreplay.store import TaskStore

COMPARATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


@dataclass
class FakeElement:
    """An element in the fake DOM."""

    text: str = ""
    visible: bool = True
    properties: dict[str, Any] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)


class FakeKeyboard:
    def __init__(self, page: "FakePage") -> None:
        self._page = page

    async def down(self, key: str) -> None:
        self._page.calls.append(("keyboard.down", key))

    async def up(self, key: str) -> None:
        self._page.calls.append(("keyboard.up", key))


class FakeLocator:
    """Locator over the fake DOM; actions fail when nothing matches."""

    def __init__(self, page: "FakePage", *queries: str) -> None:
        self._page = page
        self.queries = queries

    @property
    def query(self) -> str:
        return " | ".join(self.queries)

    @property
    def first(self) -> "FakeLocator":
        return self

    def or_(self, other: "FakeLocator") -> "FakeLocator":
        return FakeLocator(self._page, *self.queries, *other.queries)

    def _require(self, timeout: Any) -> None:
        if not any(self._page.matches(q) for q in self.queries):
            msg = f"Timeout {timeout}ms exceeded waiting for locator('{self.query}')"
            raise PlaywrightTimeoutError(msg)

    async def wait_for(self, state: str = "visible", timeout: Any = None) -> None:
        self._page.calls.append(("locator.wait_for", self.query, state, timeout))
        attached = [self._page.settle(q, timeout) for q in self.queries]
        if not any(attached):
            msg = f"Timeout {timeout}ms exceeded waiting for locator('{self.query}')"
            raise PlaywrightTimeoutError(msg)

    async def count(self) -> int:
        for query in self.queries:
            self._page.check_syntax(query)
        return sum(len(self._page.matches(q)) for q in self.queries)

    async def click(self, **kwargs: Any) -> None:
        self._require(kwargs.get("timeout"))
        self._page.calls.append(("click", self.query, kwargs))

    async def dblclick(self, **kwargs: Any) -> None:
        self._require(kwargs.get("timeout"))
        self._page.calls.append(("dblclick", self.query, kwargs))

    async def fill(self, value: str, **kwargs: Any) -> None:
        self._require(kwargs.get("timeout"))
        self._page.calls.append(("fill", self.query, value))

    async def hover(self, **kwargs: Any) -> None:
        self._require(kwargs.get("timeout"))
        self._page.calls.append(("hover", self.query, kwargs))


class FakePage:
    """
    In-memory page.

    Attributes:
        elements: Query string -> matching elements
        expressions: waitForExpression script -> truthiness
        url: Current URL, updated by goto()
        unreachable: URLs for which goto() raises a navigation error
        delayed: Query string -> (milliseconds until they attach, elements)
        invalid: Queries the page rejects as malformed
        clock_ms: Virtual time spent waiting for delayed elements
        calls: Recorded operations, in order
    """

    def __init__(self, elements: dict[str, list[FakeElement]] | None = None) -> None:
        self.elements: dict[str, list[FakeElement]] = dict(elements or {})
        self.expressions: dict[str, bool] = {}
        self.url = "about:blank"
        self.unreachable: set[str] = set()
        self.delayed: dict[str, tuple[int, list[FakeElement]]] = {}
        self.invalid: set[str] = set()
        self.clock_ms = 0
        self.closed = False
        self.viewport: dict[str, int] | None = None
        self.calls: list[tuple[Any, ...]] = []
        self.keyboard = FakeKeyboard(self)

    def matches(self, query: str) -> list[FakeElement]:
        return self.elements.get(query, [])

    def delay(self, query: str, after_ms: int, *elements: FakeElement) -> None:
        """Make ``elements`` match ``query`` once ``after_ms`` of waiting has passed."""
        self.delayed[query] = (after_ms, list(elements or [FakeElement()]))

    def settle(self, query: str, timeout: Any) -> bool:
        """Attach delayed elements that appear within ``timeout``; True if ``query`` matches."""
        self.check_syntax(query)
        if query in self.delayed:
            after_ms, elements = self.delayed[query]
            if timeout is None or after_ms <= timeout:
                del self.delayed[query]
                self.clock_ms = max(self.clock_ms, after_ms)
                self.elements.setdefault(query, []).extend(elements)
        return bool(self.matches(query))

    def check_syntax(self, query: str) -> None:
        if query in self.invalid:
            msg = f"Unexpected token in selector '{query}'"
            raise PlaywrightError(msg)

    def locator(self, query: str) -> FakeLocator:
        return FakeLocator(self, query)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def goto(self, url: str, timeout: Any = None) -> None:
        self.calls.append(("goto", url))
        if url in self.unreachable:
            msg = f"net::ERR_NAME_NOT_RESOLVED at {url}"
            raise PlaywrightError(msg)
        self.url = url

    async def close(self, run_before_unload: bool = False) -> None:
        self.calls.append(("close", run_before_unload))
        self.closed = True

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", script, arg))
        return None

    async def set_viewport_size(self, size: dict[str, int]) -> None:
        self.calls.append(("set_viewport_size", size))
        self.viewport = size

    async def wait_for_selector(self, query: str, state: str = "visible", timeout: Any = None) -> None:
        self.calls.append(("wait_for_selector", query, state))
        self.settle(query, timeout)
        found = self.matches(query)
        if state == "visible":
            found = [e for e in found if e.visible]
        if not found:
            msg = f"Timeout {timeout}ms exceeded waiting for selector '{query}' to be {state}"
            raise PlaywrightTimeoutError(msg)

    async def wait_for_url(self, url: str, timeout: Any = None) -> None:
        self.calls.append(("wait_for_url", url))
        if self.url != url:
            msg = f"Timeout {timeout}ms exceeded waiting for navigation to '{url}'"
            raise PlaywrightTimeoutError(msg)

    async def wait_for_function(self, script: str, arg: Any = None, timeout: Any = None) -> None:
        self.calls.append(("wait_for_function", script, arg))
        if not self._holds(script, arg):
            msg = f"Timeout {timeout}ms exceeded waiting for function"
            raise PlaywrightTimeoutError(msg)

    def _holds(self, script: str, arg: Any) -> bool:
        if script == COUNT_MATCHES:
            n = len(self.matches(arg["selector"]))
            return COMPARATORS[arg["operator"]](n, arg["count"])
        if script in (PROPERTIES_EQUAL, ATTRIBUTES_EQUAL, TEXT_EQUALS):
            found = self.matches(arg["selector"])
            if not found:
                return False
            element = found[0]
            if script == PROPERTIES_EQUAL:
                return all(element.properties.get(k) == v for k, v in arg["properties"].items())
            if script == ATTRIBUTES_EQUAL:
                return all(element.attributes.get(k) == v for k, v in arg["attributes"].items())
            return element.text == arg["text"]
        return self.expressions.get(script, False)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def flow_dir(temp_dir: Path) -> Path:
    """Directory holding flow files for a test."""
    path = temp_dir / "flows"
    path.mkdir()
    return path


@pytest.fixture
def write_flow(flow_dir: Path) -> Callable[[str, Any], str]:
    """Write a flow (dict or raw text) into flow_dir and return its reference."""

    def _write(name: str, flow: Any) -> str:
        text = flow if isinstance(flow, str) else json.dumps(flow)
        (flow_dir / name).write_text(text, encoding="utf-8")
        return name

    return _write


@pytest.fixture
def settings(flow_dir: Path) -> Settings:
    """Settings pointing at the test flow directory."""
    return Settings(flow_dir=flow_dir)


@pytest.fixture
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture
def engine(store: TaskStore, settings: Settings) -> ReplayEngine:
    """A ReplayEngine with its own store and the test settings."""
    return ReplayEngine(store=store, settings=settings)


@pytest.fixture
def page() -> FakePage:
    """An empty fake page."""
    return FakePage()


@pytest.fixture
def login_flow() -> dict[str, Any]:
    """A parameterized login flow as exported by the recorder."""
    return {
        "title": "login",
        "input_schema": {
            "type": "object",
            "properties": {"email": {"type": "string"}},
            "required": ["email"],
        },
        "steps": [
            {"type": "navigate", "url": "https://example.test/login"},
            {
                "type": "change",
                "selectors": [["aria/Email"], ["#email"]],
                "value": "${email}",
            },
            {
                "type": "click",
                "selectors": [["aria/Sign in"], ["#submit"]],
                "offsetX": 10,
                "offsetY": 5,
            },
        ],
    }
