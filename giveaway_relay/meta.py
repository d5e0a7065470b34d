"""
Giveaway page metadata (title / description) for notifications.

Fetched on demand right before a notification is sent; never persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup

from .run_config import RelayConfig
from .utils import wait_best_effort

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New giveaway"
MAX_TITLE_CHARS = 240
MAX_DESCRIPTION_CHARS = 1900


@dataclass(frozen=True)
class Meta:
    title: str = ""
    description: str = ""


def _meta_content(soup: BeautifulSoup, prop: str) -> str:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def parse_meta(html: str) -> Meta:
    """Extract og:title / og:description, falling back to ``<title>``."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = _meta_content(soup, "og:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()
    description = _meta_content(soup, "og:description")

    return Meta(
        title=(title or DEFAULT_TITLE)[:MAX_TITLE_CHARS],
        description=description[:MAX_DESCRIPTION_CHARS],
    )


async def fetch_meta(context, url: str, config: RelayConfig) -> Meta:
    """Open *url* in a fresh page and read its metadata.

    Any failure yields an empty ``Meta``; the notification still goes out
    with the default title.
    """
    page = None
    try:
        page = await context.new_page()
        await page.goto(
            url, wait_until="domcontentloaded", timeout=config.meta_nav_timeout_ms,
        )
        await wait_best_effort(page, "networkidle", config.child_idle_timeout_ms)
        return parse_meta(await page.content())
    except Exception as exc:
        logger.debug(f"[meta] {url}: {exc}")
        return Meta()
    finally:
        if page is not None:
            try:
                await page.close()
            except Exception as exc:
                logger.debug(f"[meta] page close failed: {exc}")
