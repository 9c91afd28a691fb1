"""
Direct Playwright Client
========================

Launches Playwright in-process and owns the single browser context and page a
harness run works in. The context is created once; its cookies carry the
authenticated session for every later navigation.

Usage:
    async with PlaywrightClient(headless=True) as client:
        interceptor.attach(client.context)
        browser = Browser(client.page)
"""
from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class PlaywrightClient:
    """
    Direct Playwright client with one shared context and page.

    Example:
        async with PlaywrightClient(browser_type="firefox") as client:
            await client.page.goto("https://example.com")
    """

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
        timeout: int = 30000,
        ignore_https_errors: bool = True,
    ):
        """
        Args:
            browser_type: Browser to use (chromium, firefox, webkit)
            headless: Run in headless mode
            timeout: Default per-call timeout in milliseconds for every driver call
            ignore_https_errors: Accept self-signed certificates (local test sites)
        """
        self.browser_type = browser_type
        self.headless = headless
        self.timeout = timeout
        self.ignore_https_errors = ignore_https_errors

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "PlaywrightClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Launch the browser and create the shared context and page."""
        self._playwright = await async_playwright().start()

        if self.browser_type == "firefox":
            self._browser = await self._playwright.firefox.launch(headless=self.headless)
        elif self.browser_type == "webkit":
            self._browser = await self._playwright.webkit.launch(headless=self.headless)
        else:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
        logger.debug("Launched %s (headless=%s)", self.browser_type, self.headless)

        self._context = await self._browser.new_context(
            ignore_https_errors=self.ignore_https_errors,
            extra_http_headers=DEFAULT_HEADERS,
        )
        self._context.set_default_timeout(self.timeout)
        self._page = await self._context.new_page()

    async def close(self) -> None:
        """Close all connections and cleanup resources."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def context(self) -> BrowserContext:
        """Get the shared context."""
        if not self._context:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return self._context

    @property
    def page(self) -> Page:
        """Get the shared page."""
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page
