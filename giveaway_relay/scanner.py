"""
Page Scanner
============
Harvests candidate links from one already-loaded page.

Client-rendered giveaway sites often populate their link list after the
first paint, and some entry links never exist as anchors at all (they are
built from an API response).  A scan therefore unions three channels:

  1. ``a[href]`` targets after load + scroll-and-settle
  2. ``a[href]`` targets again after a fixed delay
  3. response URLs observed on the network that the classifier accepts

This module does NOT own page creation or navigation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .classifier import is_concrete_giveaway
from .run_config import RelayConfig
from .utils import clean_url, dedupe_keep_order, wait_best_effort

logger = logging.getLogger(__name__)


# JS: every anchor target, resolved to an absolute URL by the browser
_COLLECT_HREFS_JS = """() => Array.from(document.querySelectorAll('a[href]'))
    .map(a => a.href)
    .filter(h => typeof h === 'string' && h.length > 0)"""

# JS: scroll by a fixed amount, report current scroll height
_SCROLL_JS = """(amount) => {
    window.scrollBy(0, amount);
    const body = document.body || document.documentElement;
    return body ? body.scrollHeight : 0;
}"""

_SCROLL_TOP_JS = "() => window.scrollTo(0, 0)"

_SCROLL_AMOUNT_PX = 900


@dataclass
class ScanResult:
    """Links harvested from one page, deduplicated in first-seen order."""
    links: List[str] = field(default_factory=list)
    network_url_count: int = 0


async def collect_hrefs(page) -> List[str]:
    """Snapshot all anchor targets currently in the DOM, in document order."""
    try:
        raw = await page.evaluate(_COLLECT_HREFS_JS)
    except Exception as exc:
        logger.debug(f"[scan] href snapshot failed: {exc}")
        return []
    return dedupe_keep_order(
        url for url in (clean_url(href) for href in raw or []) if url
    )


async def scroll_and_settle(page, *, steps: int, pause_ms: int) -> int:
    """Scroll down in steps to trigger lazy-loaded content.

    Stops early once the scroll height is stable for two consecutive steps.
    Returns the last scroll height seen.
    """
    prev_height = 0
    stable = 0
    for _ in range(steps):
        try:
            height = await page.evaluate(_SCROLL_JS, _SCROLL_AMOUNT_PX)
        except Exception:
            break
        await page.wait_for_timeout(pause_ms)
        if height == prev_height:
            stable += 1
            if stable >= 2:
                break
        else:
            stable = 0
            prev_height = height
    try:
        await page.evaluate(_SCROLL_TOP_JS)
    except Exception as exc:
        logger.debug(f"[scan] scroll reset failed: {exc}")
    return prev_height


async def scan_page(page, config: RelayConfig) -> ScanResult:
    """
    Scan an already-navigated page and return every candidate link.

    Waits are best-effort: a page that never reaches ``networkidle`` is
    still scanned.  The response listener is always detached on return.
    """
    observed: List[str] = []

    def on_response(response) -> None:
        url = clean_url(getattr(response, "url", None))
        if url and url not in observed and is_concrete_giveaway(url):
            observed.append(url)

    page.on("response", on_response)
    try:
        await wait_best_effort(page, "domcontentloaded", config.dom_ready_timeout_ms)
        await wait_best_effort(page, "networkidle", config.root_idle_timeout_ms)

        await scroll_and_settle(
            page, steps=config.scroll_steps, pause_ms=config.scroll_pause_ms,
        )

        first = await collect_hrefs(page)
        await page.wait_for_timeout(config.second_pass_delay_ms)
        second = await collect_hrefs(page)
    finally:
        page.remove_listener("response", on_response)

    links = dedupe_keep_order([*first, *second, *observed])
    logger.debug(
        f"[scan] {getattr(page, 'url', '?')[:80]} -> "
        f"first:{len(first)} second:{len(second)} network:{len(observed)}"
    )
    return ScanResult(links=links, network_url_count=len(observed))
