"""Shared test doubles for the discovery engine.

Nothing here touches the network or launches a browser. The fakes mirror the
small surface the adapters and the orchestrator use: PageContext,
BrowserSession, BrowserSessionManager and Playwright element handles.
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from cotrix.discovery.errors import BrowserLaunchError, PopupNotOpenedError, SelectorNotFoundError
from cotrix.discovery.fetchers.base import SiteAdapter
from cotrix.discovery.models import CouponCandidate


class FakeElement:
    """Element handle double: children are looked up by exact selector string."""

    def __init__(
        self,
        text: str = "",
        children: Optional[Dict[str, "FakeElement"]] = None,
        attributes: Optional[Dict[str, str]] = None,
        on_click=None,
    ):
        self.text = text
        self.children = children or {}
        self.attributes = attributes or {}
        self.on_click = on_click
        self.clicks = 0

    async def query_selector(self, selector: str):
        return self.children.get(selector)

    async def inner_text(self) -> str:
        return self.text

    async def get_attribute(self, name: str):
        return self.attributes.get(name)

    async def click(self):
        self.clicks += 1
        if self.on_click:
            self.on_click()


class FakePage:
    """PageContext double with resource accounting."""

    def __init__(
        self,
        selectors: Optional[Dict[str, List[FakeElement]]] = None,
        texts: Optional[List[str]] = None,
        goto_error: Optional[Exception] = None,
        popups: Optional[List["FakePage"]] = None,
        goto_delay: float = 0.0,
        popup_delay: float = 0.0,
        wait_out_misses: bool = False,
    ):
        self.selectors = selectors or {}
        self.goto_delay = goto_delay
        self.popup_delay = popup_delay
        self.wait_out_misses = wait_out_misses
        self.texts = texts or []
        self.goto_error = goto_error
        self.popups = list(popups or [])
        self.visited: List[str] = []
        self.opened_popups: List["FakePage"] = []
        self.close_count = 0
        self.closed = False

    @property
    def url(self) -> str:
        return self.visited[-1] if self.visited else "about:blank"

    async def goto(self, url: str, timeout: Optional[float] = None) -> None:
        self.visited.append(url)
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for(self, selector: str, timeout: Optional[float] = None, visible: bool = False):
        matches = self.selectors.get(selector)
        if not matches:
            if self.wait_out_misses and timeout:
                await asyncio.sleep(timeout)
            raise SelectorNotFoundError(selector, self.url)
        return matches[0]

    async def query_all(self, selector: str) -> List[FakeElement]:
        return list(self.selectors.get(selector, []))

    async def text_nodes(self) -> List[str]:
        return list(self.texts)

    async def bring_to_front(self) -> None:
        pass

    async def open_popup(self, trigger, timeout: Optional[float] = None) -> "FakePage":
        await trigger()
        if self.popup_delay:
            await asyncio.sleep(self.popup_delay)
        if not self.popups:
            raise PopupNotOpenedError(timeout or 0)
        popup = self.popups.pop(0)
        self.opened_popups.append(popup)
        return popup

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.close_count += 1


class FakeSession:
    """BrowserSession double that hands out FakePages and counts closes."""

    def __init__(self, page_factory=None):
        self.page_factory = page_factory or FakePage
        self.pages: List[FakePage] = []
        self.close_count = 0
        self.closed = False

    async def open_page(self) -> FakePage:
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.close_count += 1
        for page in self.pages:
            await page.close()


class FakeSessionManager:
    """BrowserSessionManager double recording every session it acquires."""

    def __init__(self, page_factory=None, launch_error: Optional[Exception] = None):
        self.page_factory = page_factory
        self.launch_error = launch_error
        self.sessions: List[FakeSession] = []

    async def acquire_session(self) -> FakeSession:
        if self.launch_error is not None:
            raise self.launch_error
        session = FakeSession(self.page_factory)
        self.sessions.append(session)
        return session

    @property
    def acquired(self) -> int:
        return len(self.sessions)


class CountingAdapter(SiteAdapter):
    """Adapter double returning fixed candidates and counting invocations."""

    def __init__(
        self,
        source: str,
        codes: Optional[List] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        empty_for: Optional[List[str]] = None,
        **kwargs,
    ):
        self.source = source
        self.codes = codes or []
        self.error = error
        self.delay = delay
        self.empty_for = set(empty_for or [])
        self.calls = 0
        self.slugs: List[str] = []
        kwargs.setdefault("fallback_enabled", False)
        super().__init__(**kwargs)

    def build_url(self, slug: str) -> str:
        return f"https://aggregator.test/{self.source}/{slug}"

    async def extract(self, page, slug: str) -> List[CouponCandidate]:
        self.calls += 1
        self.slugs.append(slug)
        await page.goto(self.build_url(slug))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if slug in self.empty_for:
            return []
        candidates = []
        for item in self.codes:
            if isinstance(item, CouponCandidate):
                candidates.append(item)
            else:
                candidates.append(CouponCandidate(code=item, source=self.source))
        return candidates


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def session_manager():
    return FakeSessionManager()


@pytest.fixture
def failing_session_manager():
    return FakeSessionManager(launch_error=BrowserLaunchError("BLESS_TOKEN environment variable is not set"))
