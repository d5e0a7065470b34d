"""
In-memory stand-ins for Playwright ``BrowserContext`` / ``Page`` / elements.

A ``FakeSite`` maps URLs to ``PageSpec`` objects describing what a real
browser would see on that page: anchors in a first and second DOM snapshot,
URLs observed on the network, "Enter" buttons, and failure switches.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout


@dataclass
class ButtonSpec:
    label: str = "Enter"
    visible: bool = True
    click_target: Optional[str] = None      # URL a direct click navigates to
    ancestor_target: Optional[str] = None   # URL the JS ancestor click navigates to
    click_raises: bool = False


@dataclass
class PageSpec:
    links: List[str] = field(default_factory=list)          # first snapshot
    late_links: List[str] = field(default_factory=list)     # appear in second snapshot
    network: List[str] = field(default_factory=list)        # response URLs
    buttons: List[ButtonSpec] = field(default_factory=list)
    html: str = ""
    goto_error: bool = False
    idle_timeout: bool = False


class FakeSite:
    def __init__(self, pages: Optional[Dict[str, PageSpec]] = None):
        self.pages = dict(pages or {})

    def get(self, url: str) -> PageSpec:
        return self.pages.get(url, PageSpec())


class FakeResponse:
    def __init__(self, url: str):
        self.url = url


class FakeElement:
    def __init__(self, page: "FakePage", spec: ButtonSpec):
        self._page = page
        self.spec = spec
        self.clicks = 0
        self.js_clicks = 0

    async def is_visible(self) -> bool:
        return self.spec.visible

    async def evaluate(self, js: str, *args):
        if "closest" in js:
            self.js_clicks += 1
            if self.spec.ancestor_target:
                self._page._navigate(self.spec.ancestor_target)
            return True
        if "innerText" in js:
            return self.spec.label
        return None

    async def click(self, timeout=None):
        self.clicks += 1
        if self.spec.click_raises:
            raise PlaywrightError("element is not attached to the DOM")
        if self.spec.click_target:
            self._page._navigate(self.spec.click_target)


class FakePage:
    def __init__(self, context: "FakeContext"):
        self._context = context
        self.url = "about:blank"
        self.spec = PageSpec()
        self.history: List[str] = []
        self.listeners: Dict[str, list] = {}
        self.elements: List[FakeElement] = []
        self.closed = False
        self._href_calls = 0

    # -- navigation ---------------------------------------------------------
    def _load(self, url: str) -> None:
        self.url = url
        self.spec = self._context.site.get(url)
        self._href_calls = 0
        self.elements = [FakeElement(self, b) for b in self.spec.buttons]

    def _navigate(self, url: str) -> None:
        self.history.append(self.url)
        self._load(url)

    async def goto(self, url, wait_until=None, timeout=None):
        self._context.visited.append(url)
        if self._context.site.get(url).goto_error:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded navigating to {url}")
        self._navigate(url)

    async def go_back(self, wait_until=None, timeout=None):
        if not self.history:
            return None
        self._load(self.history.pop())

    async def wait_for_url(self, predicate, timeout=None, wait_until=None):
        for _ in range(20):
            if predicate(self.url):
                return
            await asyncio.sleep(0)
        raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for URL")

    async def wait_for_load_state(self, state="load", timeout=None):
        if state == "networkidle" and self.spec.idle_timeout:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded")

    async def wait_for_timeout(self, ms):
        for url in self.spec.network:
            for cb in list(self.listeners.get("response", [])):
                cb(FakeResponse(url))

    # -- events -------------------------------------------------------------
    def on(self, event, callback):
        self.listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event, callback):
        self.listeners.get(event, []).remove(callback)

    # -- DOM ----------------------------------------------------------------
    async def evaluate(self, js, *args):
        if "a[href]" in js:
            self._href_calls += 1
            if self._href_calls == 1:
                return list(self.spec.links)
            return list(self.spec.links) + list(self.spec.late_links)
        if "scrollBy" in js:
            return 2400
        return None

    async def query_selector_all(self, selector):
        return list(self.elements)

    async def content(self):
        return self.spec.html

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, site: FakeSite):
        self.site = site
        self.pages: List[FakePage] = []
        self.visited: List[str] = []

    async def new_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        return page
