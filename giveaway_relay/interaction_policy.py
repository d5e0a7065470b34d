"""
Interaction Policy
==================
Reveal concrete giveaway URLs hidden behind generic Alphabot project pages.

Some project pages (``/_/<slug>``) expose their raffle only after the user
presses an "Enter" button; the target URL is never present as an anchor.
``reveal_by_clicking`` simulates that interaction:

  1. **discover_enter_candidates**: visible button / link / ARIA-button
     elements whose label starts with "enter" (case-insensitive)
  2. **click_and_wait_for_navigation**: direct click raced against a
     bounded wait for the URL to change
  3. **JS ancestor click**: fallback when the direct click does not
     navigate: ``click()`` on the nearest enclosing interactive ancestor
  4. **return_to_origin**: go back before the next attempt

Attempts are isolated: a failed attempt is logged and the next candidate is
tried.  This module does NOT own page creation.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Set

from playwright.async_api import Error as PlaywrightError

from .classifier import is_concrete_giveaway
from .run_config import RelayConfig
from .utils import clean_url, wait_best_effort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selector catalogue
# ---------------------------------------------------------------------------
CLICKABLE_SELECTOR = ', '.join([
    'button:not([disabled])',
    'a',
    '[role="button"]:not([aria-disabled="true"])',
])

_ENTER_LABEL_RE = re.compile(r"^\s*enter\b", re.IGNORECASE)

# JS: visible label of an element (text first, aria-label as fallback)
_LABEL_JS = """el => {
    const text = (el.innerText || el.textContent || '').trim();
    return text || el.getAttribute('aria-label') || '';
}"""

# JS: click the nearest interactive ancestor (bypasses overlays / visibility)
_ANCESTOR_CLICK_JS = """el => {
    const sel = 'a, button, [role="button"], [onclick]';
    const parent = el.parentElement ? el.parentElement.closest(sel) : null;
    (parent || el).click();
    return true;
}"""


# ---------------------------------------------------------------------------
# Candidate discovery
# ---------------------------------------------------------------------------

async def discover_enter_candidates(page, limit: int) -> List:
    """Return up to *limit* visible "Enter"-labelled clickable elements."""
    found = []
    try:
        elements = await page.query_selector_all(CLICKABLE_SELECTOR)
    except PlaywrightError as exc:
        logger.debug(f"[reveal] candidate query failed: {exc}")
        return found

    for el in elements:
        if len(found) >= limit:
            break
        try:
            if not await el.is_visible():
                continue
            label = await el.evaluate(_LABEL_JS)
        except PlaywrightError:
            continue
        if label and _ENTER_LABEL_RE.match(label):
            found.append(el)
    return found


# ---------------------------------------------------------------------------
# Click helpers
# ---------------------------------------------------------------------------

async def _race_navigation(page, action, timeout_ms: int) -> bool:
    """
    Run *action* and report whether the page URL changed because of it.

    The URL watcher is armed before the action so a fast navigation is not
    missed; its *timeout_ms* budget starts only once the action returns.
    The watcher task is always cancelled and collected before returning.
    """
    start_url = page.url
    # timeout=0 disables Playwright's own deadline; the budget is applied below
    nav = asyncio.ensure_future(
        page.wait_for_url(
            lambda u: u != start_url,
            timeout=0,
            wait_until="domcontentloaded",
        )
    )
    try:
        await action()
        done, _ = await asyncio.wait({nav}, timeout=timeout_ms / 1000)
        if nav not in done:
            return False
        nav.result()
        return True
    except PlaywrightError as exc:
        logger.debug(f"[reveal] click or navigation failed: {exc}")
        return False
    finally:
        if not nav.done():
            nav.cancel()
        await asyncio.gather(nav, return_exceptions=True)


async def click_and_wait_for_navigation(page, element, timeout_ms: int) -> bool:
    """Direct click first; JS click on the interactive ancestor as fallback."""
    if await _race_navigation(
        page, lambda: element.click(timeout=timeout_ms), timeout_ms,
    ):
        return True
    logger.debug("[reveal] direct click did not navigate; trying ancestor click")
    return await _race_navigation(
        page, lambda: element.evaluate(_ANCESTOR_CLICK_JS), timeout_ms,
    )


async def return_to_origin(page, origin_url: str, config: RelayConfig) -> None:
    """Go back to *origin_url*; reload it directly if history is unavailable."""
    try:
        await page.go_back(
            wait_until="domcontentloaded", timeout=config.child_nav_timeout_ms,
        )
    except PlaywrightError as exc:
        logger.debug(f"[reveal] go_back failed: {exc}")
    if page.url != origin_url:
        await page.goto(
            origin_url,
            wait_until="domcontentloaded",
            timeout=config.child_nav_timeout_ms,
        )
    await wait_best_effort(page, "networkidle", config.child_idle_timeout_ms)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def reveal_by_clicking(
    page,
    max_attempts: int,
    config: RelayConfig,
) -> Set[str]:
    """
    Click up to *max_attempts* "Enter" affordances on an already-loaded page.

    Each candidate is re-discovered after returning to the origin page,
    because element handles do not survive navigation.

    Returns:
        Classifier-accepted URLs the page navigated to.
    """
    origin_url = page.url
    revealed: Set[str] = set()

    for attempt in range(max_attempts):
        try:
            candidates = await discover_enter_candidates(page, limit=attempt + 1)
            if len(candidates) <= attempt:
                logger.debug(f"[reveal] no candidate #{attempt + 1} on {origin_url[:80]}")
                break

            navigated = await click_and_wait_for_navigation(
                page, candidates[attempt], config.click_nav_timeout_ms,
            )
            if not navigated:
                logger.debug(f"[reveal] attempt {attempt + 1}: no navigation")
                continue

            landed = clean_url(page.url)
            if landed and is_concrete_giveaway(landed):
                revealed.add(landed)
                logger.info(f"[reveal] attempt {attempt + 1}: {landed}")
            else:
                logger.debug(f"[reveal] attempt {attempt + 1}: landed on {page.url[:80]}")

            await return_to_origin(page, origin_url, config)
        except Exception as exc:
            logger.debug(f"[reveal] attempt {attempt + 1} failed: {exc}")

    logger.info(
        f"[reveal] {origin_url[:80]} -> {len(revealed)} revealed "
        f"(max_attempts={max_attempts})"
    )
    return revealed
