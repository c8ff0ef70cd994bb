"""Browser session management for discovery requests.

Each discovery request acquires its own BrowserSession (one browser process or
remote connection plus one browser context) and opens one PageContext per
adapter. Closing is idempotent at every level, and closing a session closes
any page it handed out that is still open.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Page,
    Playwright,
    Route,
    async_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from cotrix.config import settings
from cotrix.discovery.errors import (
    BrowserLaunchError,
    NavigationError,
    NavigationTimeoutError,
    PopupNotOpenedError,
    SelectorNotFoundError,
)
from cotrix.discovery.fallback import collect_text_nodes

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--disable-extensions",
]


class PageContext:
    """One page/tab exclusively owned by a single adapter invocation."""

    def __init__(self, page: Page, session: Optional["BrowserSession"] = None):
        self._page = page
        self._session = session
        self._closed = False

    @property
    def page(self) -> Page:
        return self._page

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout: Optional[float] = None) -> None:
        """
        Navigate and wait for DOMContentLoaded.

        Raises:
            NavigationTimeoutError: If the page did not load within timeout
            NavigationError: For any other navigation failure
        """
        timeout = timeout or settings.navigation_timeout_seconds
        logger.debug(f"Navigating to {url}")
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(url, timeout) from e
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

    async def wait_for(
        self,
        selector: str,
        timeout: Optional[float] = None,
        visible: bool = False,
    ) -> Optional[ElementHandle]:
        """
        Wait until selector is attached (or visible) on the page.

        Raises:
            SelectorNotFoundError: If the selector did not show up within timeout
        """
        timeout = timeout or settings.selector_timeout_seconds
        try:
            return await self._page.wait_for_selector(
                selector,
                timeout=timeout * 1000,
                state="visible" if visible else "attached",
            )
        except PlaywrightTimeoutError as e:
            raise SelectorNotFoundError(selector, self._page.url) from e

    async def query_all(self, selector: str) -> List[ElementHandle]:
        return await self._page.query_selector_all(selector)

    async def text_nodes(self) -> List[str]:
        """Text of the page's h3/span/div nodes, for fallback extraction."""
        html = await self._page.content()
        return collect_text_nodes(html)

    async def bring_to_front(self) -> None:
        await self._page.bring_to_front()

    async def open_popup(
        self,
        trigger: Callable[[], Awaitable[None]],
        timeout: Optional[float] = None,
    ) -> "PageContext":
        """
        Run trigger and wait for the popup this page opens.

        Only popups opened by this page are matched; pages opened by other
        adapters sharing the browser context are ignored. The listener lives
        only for the duration of this call.

        The returned popup is tracked by the session, so it is closed on
        session teardown even if the caller fails to close it.

        Raises:
            PopupNotOpenedError: If no new page appeared within timeout
        """
        timeout = timeout or settings.popup_timeout_seconds
        try:
            async with self._page.expect_popup(timeout=timeout * 1000) as page_info:
                await trigger()
            popup = await page_info.value
        except PlaywrightTimeoutError as e:
            raise PopupNotOpenedError(timeout) from e

        popup_context = PageContext(popup, self._session)
        if self._session is not None:
            self._session.track(popup_context)
        return popup_context

    async def close(self) -> None:
        """Close the page. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._page.close()
        except PlaywrightError as e:
            logger.debug(f"Error closing page: {e}")


class BrowserSession:
    """A live browser handle for one discovery request."""

    def __init__(
        self,
        browser: Browser,
        context: BrowserContext,
        playwright: Optional[Playwright] = None,
        blocked_resource_types: Optional[List[str]] = None,
    ):
        self._browser = browser
        self._context = context
        self._playwright = playwright
        self._blocked = set(
            settings.blocked_resource_types if blocked_resource_types is None else blocked_resource_types
        )
        self._pages: List[PageContext] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def track(self, page_context: PageContext) -> None:
        self._pages.append(page_context)

    async def open_page(self) -> PageContext:
        """Open a new page with resource blocking and diagnostic listeners."""
        if self._closed:
            raise BrowserLaunchError("session already closed")

        page = await self._context.new_page()
        page_context = PageContext(page, self)
        self.track(page_context)

        try:
            await page.route("**/*", self._handle_route)
        except PlaywrightError:
            await page_context.close()
            raise

        page.on("console", lambda msg: logger.debug(f"Browser console: {msg.text}"))
        page.on("pageerror", lambda err: logger.warning(f"Page error: {err}"))
        page.on("framenavigated", lambda frame: logger.debug(f"Navigated: {frame.url}"))
        return page_context

    async def _handle_route(self, route: Route) -> None:
        try:
            if route.request.resource_type in self._blocked:
                await route.abort()
            else:
                await route.continue_()
        except PlaywrightError as e:
            logger.debug(f"Error in request interception: {e}")

    async def close(self) -> None:
        """Close every tracked page, then the context and the browser."""
        if self._closed:
            return
        self._closed = True

        for page_context in self._pages:
            await page_context.close()

        try:
            await self._context.close()
        except PlaywrightError as e:
            logger.debug(f"Error closing browser context: {e}")

        try:
            await self._browser.close()
            logger.debug("Browser closed")
        except PlaywrightError as e:
            logger.error(f"Error closing browser: {e}")

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.debug(f"Error stopping playwright: {e}")
            self._playwright = None


class BrowserSessionManager:
    """Acquires browser sessions, either launched locally or over a remote endpoint."""

    def __init__(
        self,
        mode: Optional[str] = None,
        ws_endpoint: Optional[str] = None,
        token: Optional[str] = None,
        headless: Optional[bool] = None,
    ):
        self.mode = (mode or settings.browser_mode).lower()
        self.ws_endpoint = ws_endpoint or settings.browser_ws_endpoint
        self.token = settings.bless_token if token is None else token
        self.headless = settings.headless if headless is None else headless

    async def acquire_session(self) -> BrowserSession:
        """
        Start a browser and a fresh context for one request.

        Raises:
            BrowserLaunchError: If the browser could not be launched or reached
        """
        if self.mode not in ("local", "remote"):
            raise BrowserLaunchError(f"unknown browser mode {self.mode!r}")
        if self.mode == "remote" and not self.token:
            raise BrowserLaunchError("BLESS_TOKEN environment variable is not set")

        playwright = None
        browser = None
        try:
            playwright = await async_playwright().start()
            if self.mode == "remote":
                logger.info("Connecting to remote browser endpoint...")
                browser = await playwright.chromium.connect_over_cdp(
                    f"{self.ws_endpoint}?token={self.token}"
                )
            else:
                logger.info("Launching local chromium...")
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    args=LAUNCH_ARGS,
                )
            context = await browser.new_context(
                user_agent=settings.user_agent,
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            )
        except Exception as e:
            logger.error(f"Failed to start browser ({self.mode}): {e}")
            if browser is not None:
                try:
                    await browser.close()
                except PlaywrightError as close_error:
                    logger.debug(f"Error closing half-started browser: {close_error}")
            if playwright is not None:
                try:
                    await playwright.stop()
                except PlaywrightError as stop_error:
                    logger.debug(f"Error stopping playwright: {stop_error}")
            raise BrowserLaunchError(str(e)) from e

        logger.info(f"Browser session ready ({self.mode})")
        return BrowserSession(browser, context, playwright)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Acquire a session that is closed on every exit path."""
        browser_session = await self.acquire_session()
        try:
            yield browser_session
        finally:
            await browser_session.close()
