"""
URL Classifier
==============
Decides whether a URL points at a *concrete* giveaway page on one of the
supported platforms, as opposed to a generic project / profile / listing
page that must never be posted.

Each platform is a member of the closed ``HostFamily`` enum and owns exactly
one rule function in ``_RULES``.  Supporting another platform means adding
one enum member and one rule; nothing else in the classifier changes.

All checks fail closed: unparseable URLs, non-HTTP(S) schemes and unknown
hosts classify as ``False``.

Public API
----------
- ``is_concrete_giveaway(url)``     : the classification decision
- ``is_generic_project_page(url)``  : Alphabot ``/_/<slug>`` container pages
- ``host_family(url)``              : which platform a URL belongs to
- ``project_slug(url)``             : Atlas3 ``/project/<slug>`` scope key
- ``looks_promising_path(path)``    : child-page exploration heuristic
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------
# Host families
# -----------------------------------------------------------------------

class HostFamily(Enum):
    """Supported giveaway platforms, keyed by registrable domain."""

    ALPHABOT = "alphabot.app"   # raffle aggregator
    ATLAS3 = "atlas3.io"        # quest/giveaway platform keyed by project
    SUBBER = "subber.xyz"       # allowlist / campaign platform

    @property
    def domain(self) -> str:
        return self.value

    def matches_host(self, host: str) -> bool:
        return self.value in host

    def accepts(self, path: str) -> bool:
        """Apply this family's rule to an already lower-cased path."""
        return _RULES[self](path)


# -----------------------------------------------------------------------
# Parsed URL representation
# -----------------------------------------------------------------------

class _ParsedURL(NamedTuple):
    host: str            # lower-cased, port stripped
    path: str            # lower-cased, always starts with "/"
    segments: List[str]  # non-empty path segments


def _parse(url: str) -> Optional[_ParsedURL]:
    if not url or not isinstance(url, str):
        return None
    try:
        p = urlparse(url.strip())
        host = (p.hostname or "").lower()
    except ValueError:
        return None
    if p.scheme.lower() not in ("http", "https") or not host:
        return None
    path = (p.path or "/").lower()
    if not path.startswith("/"):
        path = "/" + path
    segments = [s for s in path.split("/") if s]
    return _ParsedURL(host=host, path=path, segments=segments)


# -----------------------------------------------------------------------
# Shared patterns
# -----------------------------------------------------------------------

# Last segment ends in ".ext" with 1-6 alphanumerics (assets, feeds, API docs)
_FILE_EXT_RE = re.compile(r"\.[a-z0-9]{1,6}$")

# ---- Alphabot ----
_ALPHABOT_CONCRETE_RE = re.compile(r"/(?:r|raffle|giveaway|claim|winners?)/[^/]+")
_ALPHABOT_FLAT_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9-]{2,}$")
_ALPHABOT_GENERIC_RE = re.compile(r"^/_/[^/]+/?$")
_ALPHABOT_INFO_ROUTES = frozenset({
    "tos", "terms", "privacy", "status", "support", "about",
    "contact", "brand", "api", "pricing", "blog",
})

# ---- Atlas3 ----
_ATLAS3_CONCRETE_RE = re.compile(
    r"^/(?:project/[^/]+/(?:giveaway|giveaways|raffle|campaign|campaigns)/[^/]+"
    r"|giveaway/[^/]+)/?$"
)
_ATLAS3_PROJECT_RE = re.compile(r"^/project/([^/]+)")

# ---- Subber ----
_SUBBER_CONTAINER_SEGMENTS = frozenset({"giveaway", "giveaways", "campaign", "campaigns"})

_PROMISING_FRAGMENTS = ("/project/", "/giveaway", "/r/", "/raffle", "/_/")


def _has_file_extension(path: str) -> bool:
    return bool(_FILE_EXT_RE.search(path.rstrip("/")))


# -----------------------------------------------------------------------
# Per-family rules
# -----------------------------------------------------------------------

def _alphabot_rule(path: str) -> bool:
    if path in ("", "/"):
        return False
    if path.startswith("/_/") or path.startswith("/login"):
        return False
    if _has_file_extension(path):
        return False
    segments = [s for s in path.split("/") if s]
    if not segments or segments[0] in _ALPHABOT_INFO_ROUTES:
        return False

    if _ALPHABOT_CONCRETE_RE.search(path):
        return True

    # Flat slug (/<slug>): broad; may also match single-segment marketing pages
    return len(segments) == 1 and bool(_ALPHABOT_FLAT_SLUG_RE.match(segments[0]))


def _atlas3_rule(path: str) -> bool:
    return bool(_ATLAS3_CONCRETE_RE.match(path))


def _subber_rule(path: str) -> bool:
    if _has_file_extension(path):
        return False
    segments = [s for s in path.split("/") if s]
    # Container segment must be followed by a slug
    return any(seg in _SUBBER_CONTAINER_SEGMENTS for seg in segments[:-1])


_RULES: Dict[HostFamily, Callable[[str], bool]] = {
    HostFamily.ALPHABOT: _alphabot_rule,
    HostFamily.ATLAS3: _atlas3_rule,
    HostFamily.SUBBER: _subber_rule,
}


# -----------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------

def host_family(url: str) -> Optional[HostFamily]:
    """Return the platform a URL belongs to, or ``None`` if unsupported."""
    parsed = _parse(url)
    if parsed is None:
        return None
    return _family_for_host(parsed.host)


def _family_for_host(host: str) -> Optional[HostFamily]:
    for family in HostFamily:
        if family.matches_host(host):
            return family
    return None


def is_concrete_giveaway(url: str) -> bool:
    """
    Return True if *url* denotes one concrete giveaway on a known platform.

    Generic container pages (Alphabot ``/_/<slug>``, Atlas3
    ``/project/<slug>``), informational routes and static assets are
    rejected.
    """
    parsed = _parse(url)
    if parsed is None:
        return False
    family = _family_for_host(parsed.host)
    if family is None:
        return False
    return family.accepts(parsed.path)


def is_generic_project_page(url: str) -> bool:
    """True for Alphabot ``/_/<slug>`` project pages (reveal-by-click targets)."""
    parsed = _parse(url)
    if parsed is None or _family_for_host(parsed.host) is not HostFamily.ALPHABOT:
        return False
    return bool(_ALPHABOT_GENERIC_RE.match(parsed.path))


def project_slug(url: str) -> Optional[str]:
    """
    Return ``<slug>`` for Atlas3 URLs under ``/project/<slug>``, else ``None``.

    Crawls rooted at a project only report giveaways of that same project.
    """
    parsed = _parse(url)
    if parsed is None or _family_for_host(parsed.host) is not HostFamily.ATLAS3:
        return None
    m = _ATLAS3_PROJECT_RE.match(parsed.path)
    return m.group(1) if m else None


def in_project_scope(url: str, slug: Optional[str]) -> bool:
    """True when no project scope applies or *url* lies under ``/project/<slug>/``."""
    if not slug:
        return True
    parsed = _parse(url)
    if parsed is None:
        return False
    return f"/project/{slug}/" in parsed.path + "/"


def looks_promising_path(path: str) -> bool:
    """Heuristic for child pages worth opening when a listing has no direct hits."""
    lowered = (path or "").lower()
    return any(fragment in lowered for fragment in _PROMISING_FRAGMENTS)
