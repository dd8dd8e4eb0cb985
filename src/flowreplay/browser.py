"""
Browser session for the command line.

Replays run against a browser that exposes the Chrome DevTools protocol,
normally a long-running remote browser (``REMOTE_BROWSER_HOST`` /
``REMOTE_BROWSER_PORT``). For local use a Chromium can be launched instead.
The page handed to the engine is the first open page of the first context,
or a new one when the browser has none.
"""

import logging
from typing import Any

import httpx
from playwright.async_api import Browser, Page, Playwright, async_playwright

from flowreplay.config import Settings

logger = logging.getLogger(__name__)


def probe_endpoint(endpoint: str, timeout: float = 5.0) -> dict[str, Any]:
    """
    Fetch ``/json/version`` from a DevTools endpoint.

    Returns:
        The endpoint's version document (Browser, Protocol-Version, ...)

    Raises:
        httpx.HTTPError: If the endpoint is unreachable or answers with an error
    """
    with httpx.Client(timeout=timeout) as client:
        response = client.get(f"{endpoint.rstrip('/')}/json/version")
        response.raise_for_status()
        return response.json()


class BrowserSession:
    """
    Async context manager owning the Playwright driver and browser connection.

    Usage:
        async with BrowserSession(settings) as session:
            page = await session.current_page()
    """

    def __init__(
        self,
        settings: Settings,
        cdp_url: str | None = None,
        launch: bool = False,
    ) -> None:
        self.settings = settings
        self.cdp_url = cdp_url or settings.cdp_endpoint
        self.launch = launch
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserSession":
        self._playwright = await async_playwright().start()
        try:
            if self.launch:
                logger.info("launching chromium (headless=%s)", self.settings.headless)
                self._browser = await self._playwright.chromium.launch(
                    headless=self.settings.headless,
                )
            else:
                logger.info("connecting to browser at %s", self.cdp_url)
                self._browser = await self._playwright.chromium.connect_over_cdp(self.cdp_url)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if self._browser is None:
            msg = "BrowserSession is not open"
            raise RuntimeError(msg)
        return self._browser

    async def current_page(self) -> Page:
        """Return the first open page, creating a context and page if needed."""
        contexts = self.browser.contexts
        context = contexts[0] if contexts else await self.browser.new_context()
        if context.pages:
            return context.pages[0]
        return await context.new_page()
