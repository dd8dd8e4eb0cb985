"""
Unit tests for the browser session helpers.

Playwright itself is not started; the session is given a fake browser.
"""

from typing import Any

import pytest

from flowreplay.browser import BrowserSession
from flowreplay.config import Settings


class FakeContext:
    def __init__(self, pages: list[Any] | None = None) -> None:
        self.pages = list(pages or [])

    async def new_page(self) -> str:
        page = f"page-{len(self.pages)}"
        self.pages.append(page)
        return page


class FakeBrowser:
    def __init__(self, contexts: list[FakeContext] | None = None) -> None:
        self.contexts = list(contexts or [])

    async def new_context(self) -> FakeContext:
        context = FakeContext()
        self.contexts.append(context)
        return context


def _session(browser: FakeBrowser) -> BrowserSession:
    session = BrowserSession(Settings())
    session._browser = browser
    return session


class TestBrowserSession:
    """Tests for BrowserSession."""

    def test_cdp_url_defaults_to_settings(self) -> None:
        settings = Settings(remote_browser_host="chrome", remote_browser_port=9333)
        assert BrowserSession(settings).cdp_url == "http://chrome:9333"
        assert BrowserSession(settings, cdp_url="http://other:1").cdp_url == "http://other:1"

    def test_browser_requires_open_session(self) -> None:
        with pytest.raises(RuntimeError):
            BrowserSession(Settings()).browser

    @pytest.mark.asyncio
    async def test_reuses_first_open_page(self) -> None:
        browser = FakeBrowser([FakeContext(["existing", "second"])])
        assert await _session(browser).current_page() == "existing"

    @pytest.mark.asyncio
    async def test_creates_context_and_page(self) -> None:
        browser = FakeBrowser()
        page = await _session(browser).current_page()
        assert page == "page-0"
        assert len(browser.contexts) == 1
