"""
Browser rendering with Playwright: one browser and one page per scrape session.
"""

import logging
from typing import Dict, List, Optional

from playwright.async_api import Browser, Error as PlaywrightError, Page, Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import ScraperSettings, get_settings
from .errors import BrowserError

logger = logging.getLogger(__name__)


ABORT = "abort"
CONTINUE = "continue"

# Sub-resource type -> action. Anything not listed is allowed.
RESOURCE_POLICY: Dict[str, str] = {
    "image": ABORT,
    "stylesheet": ABORT,
    "font": ABORT,
    "media": ABORT,
}

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

_SELECT_TEXTS_JS = """
(selector) => {
    try {
        return Array.from(document.querySelectorAll(selector)).map(
            (el) => (el.textContent || "").trim()
        );
    } catch (e) {
        return null;
    }
}
"""


def resource_action(resource_type: str, policy: Optional[Dict[str, str]] = None) -> str:
    """Action the policy table prescribes for a sub-resource type."""
    table = RESOURCE_POLICY if policy is None else policy
    return table.get(resource_type, CONTINUE)


class LiveDocument:
    """The rendered DOM of an open page."""

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    async def select_texts(self, selector: str) -> List[str]:
        texts = await self.page.evaluate(_SELECT_TEXTS_JS, selector)
        if texts is None:
            logger.debug("Selector %r rejected by the page", selector)
            return []
        return texts


class RenderSession:
    """Owns one browser and one page for the lifetime of a scrape session."""

    def __init__(self, settings: Optional[ScraperSettings] = None, policy: Optional[Dict[str, str]] = None):
        self.settings = settings or get_settings()
        self.policy = RESOURCE_POLICY if policy is None else policy
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    async def launch(self) -> None:
        """Start Chromium and open a page with the resource policy installed."""
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.settings.headless,
                args=LAUNCH_ARGS,
                timeout=self.settings.launch_timeout_ms,
            )
            self.page = await self.browser.new_page()
        except PlaywrightError as e:
            raise BrowserError(f"could not start the browser: {e}") from e

        self.page.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
        await self.page.route("**/*", self._handle_route)

    async def _handle_route(self, route: Route) -> None:
        if resource_action(route.request.resource_type, self.policy) == ABORT:
            await route.abort()
        else:
            await route.continue_()

    async def navigate(self, url: str) -> None:
        """Go to `url` and wait for the network to go idle."""
        if not self.page:
            raise BrowserError("browser not launched", url=url)
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=self.settings.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise BrowserError(
                f"navigation timed out after {self.settings.navigation_timeout_ms}ms", url=url
            ) from e
        except PlaywrightError as e:
            raise BrowserError(f"navigation failed: {e}", url=url) from e

    async def body_html(self) -> str:
        """outerHTML of the rendered body."""
        return await self.page.evaluate("() => document.body ? document.body.outerHTML : ''")

    def document(self) -> LiveDocument:
        return LiveDocument(self.page)

    async def close(self) -> None:
        """Release page, browser and driver. Errors are logged, never raised."""
        if self.page:
            try:
                await self.page.close()
            except Exception as e:
                logger.error("Error closing page: %s", e)
            self.page = None
        if self.browser:
            try:
                await self.browser.close()
            except Exception as e:
                logger.error("Error closing browser: %s", e)
            self.browser = None
        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.error("Error stopping playwright: %s", e)
            self.playwright = None

    async def __aenter__(self):
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
