"""
Direct Playwright client for the UAT suites.

Launches the browser in-process and opens one context with the human-like
settings the bank expects (desktop viewport, en-US locale, Port of Spain
timezone, UAT certificates accepted, service workers blocked).

Usage:
    async with PlaywrightClient() as client:
        await client.page.goto(settings.login_url)
"""

import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from ibank_uat.config import UatConfig, settings as default_settings

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """
    Owns one Playwright browser plus a default context and page.

    Extra isolated contexts can be opened with :meth:`new_context`; they are
    the caller's to close.
    """

    def __init__(
        self,
        config: Optional[UatConfig] = None,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
    ):
        self.config = config or default_settings
        self.browser_type = browser_type or self.config.browser_type
        self.headless = self.config.playwright_headless if headless is None else headless

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self):
        try:
            await self.connect()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Launch the browser and open the default context and page."""
        self._playwright = await async_playwright().start()
        launcher = getattr(self._playwright, self.browser_type)
        self._browser = await launcher.launch(headless=self.headless)
        logger.debug("Launched %s (headless=%s)", self.browser_type, self.headless)

        self._context = await self.new_context()
        self._page = await self._context.new_page()

    async def new_context(self, **kwargs) -> BrowserContext:
        """
        Create an isolated browser context with the configured defaults.

        Args:
            **kwargs: Overrides for ``Browser.new_context`` options
        """
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        options = self.config.context_options()
        options.update(kwargs)
        context = await self._browser.new_context(**options)
        context.set_default_timeout(self.config.action_timeout_ms)
        context.set_default_navigation_timeout(self.config.timeouts.navigation_ms)
        return context

    async def close(self):
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
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("Client not connected")
        return self._context

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page
