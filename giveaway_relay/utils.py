"""
Utility Functions
URL helpers and best-effort Playwright waits shared by the crawler modules.
"""

import logging
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urlparse

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


def is_valid_url(url: str) -> bool:
    """Check if URL is an absolute http(s) URL."""
    try:
        parsed = urlparse(url)
        return all([parsed.scheme in ('http', 'https'), parsed.netloc])
    except (ValueError, TypeError, AttributeError):
        return False


def clean_url(url) -> Optional[str]:
    """Strip whitespace and fragment; return None for non-http(s) values."""
    if not isinstance(url, str):
        return None
    url = url.strip()
    if not url:
        return None
    url = urldefrag(url)[0]
    return url if is_valid_url(url) else None


def extract_domain(url: str) -> str:
    """Extract domain (netloc) from URL."""
    try:
        return urlparse(url).netloc.lower()
    except ValueError:
        return ''


def same_host(a: str, b: str) -> bool:
    """True when both URLs parse and share the same host (incl. port)."""
    host_a, host_b = extract_domain(a), extract_domain(b)
    return bool(host_a) and host_a == host_b


def dedupe_keep_order(items: Iterable[str]) -> List[str]:
    """Remove duplicates, keeping the first occurrence."""
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


async def wait_best_effort(page, state: str, timeout_ms: int) -> bool:
    """
    Wait for a load state without ever raising.

    Some sites never reach ``networkidle``; a timeout simply means the page
    is used as-is.  Returns True if the state was reached.
    """
    try:
        await page.wait_for_load_state(state, timeout=timeout_ms)
        return True
    except PlaywrightError:
        logger.debug(f"[wait] '{state}' not reached within {timeout_ms}ms")
        return False
