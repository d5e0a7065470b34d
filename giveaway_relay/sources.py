"""
Source Feed
===========
Loads the list of pages to watch, merging (in this precedence order):

1. a local line-oriented text file  (``sources.txt``)
2. an optional remote text resource (``SOURCES_TXT_URL``, e.g. a Gist raw URL)
3. an optional remote CSV resource  (``SHEET_CSV_URL``, e.g. a published sheet)
4. an optional local JSON list      (``sources.json``)

Entries are deduplicated by URL; the first occurrence wins.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import requests

from .run_config import RelayConfig
from .utils import is_valid_url

logger = logging.getLogger(__name__)

_CSV_HEADER_RE = re.compile(r"name\s*,\s*url", re.IGNORECASE)


@dataclass(frozen=True)
class Source:
    name: str
    url: str


def _make_source(name: str, url: str) -> Optional[Source]:
    url = (url or "").strip()
    if not is_valid_url(url):
        return None
    name = (name or "").strip()
    return Source(name=name or url, url=url)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_txt(raw: str) -> List[Source]:
    """Parse ``name|url`` or bare-URL lines; ``#`` comments and blanks skipped."""
    out = []
    for line in (raw or "").splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        if "|" in s:
            name, url = s.split("|", 1)
            # Only the first two fields count
            url = url.split("|", 1)[0]
            src = _make_source(name, url)
        else:
            src = _make_source(s, s)
        if src:
            out.append(src)
    return out


def parse_csv(raw: str) -> List[Source]:
    """Parse ``name,url`` rows; a header row (any line 1 mentioning url) is skipped."""
    lines = [ln for ln in (raw or "").splitlines() if ln]
    if not lines:
        return []
    has_header = bool(_CSV_HEADER_RE.search(lines[0])) or "url" in lines[0].lower()
    out = []
    for line in lines[1 if has_header else 0:]:
        line = line.strip()
        if not line:
            continue
        parts = line.split(",")
        if len(parts) >= 2:
            src = _make_source(parts[0], ",".join(parts[1:]))
        else:
            src = _make_source("", parts[0])
        if src:
            out.append(src)
    return out


def parse_json_list(raw: str) -> List[Source]:
    """Parse a JSON array of ``{"name"?, "url"}`` objects."""
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("sources JSON must be a list")
    out = []
    for item in data:
        if not isinstance(item, dict):
            continue
        src = _make_source(str(item.get("name") or ""), str(item.get("url") or ""))
        if src:
            out.append(src)
    return out


def dedupe_sources(sources: Iterable[Source]) -> List[Source]:
    seen = set()
    out = []
    for src in sources:
        if src.url not in seen:
            seen.add(src.url)
            out.append(src)
    return out


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

def read_local_txt(path: str) -> List[Source]:
    p = Path(path)
    if not p.exists():
        return []
    return parse_txt(p.read_text(encoding="utf-8"))


def read_local_json(path: str) -> List[Source]:
    p = Path(path)
    if not p.exists():
        return []
    try:
        return parse_json_list(p.read_text(encoding="utf-8"))
    except (ValueError, OSError) as exc:
        logger.warning(f"[sources] Ignoring unreadable {path}: {exc}")
        return []


def _fetch_text(url: str, config: RelayConfig) -> str:
    """GET *url*; returns "" on any network error or non-2xx response."""
    if not url:
        return ""
    try:
        resp = requests.get(
            url,
            headers={"User-Agent": config.user_agent},
            timeout=config.http_timeout_s,
        )
    except requests.RequestException as exc:
        logger.warning(f"[sources] Fetch failed {url}: {exc}")
        return ""
    if not resp.ok:
        logger.warning(f"[sources] HTTP {resp.status_code} for {url}")
        return ""
    return resp.text


def read_remote_txt(url: str, config: RelayConfig) -> List[Source]:
    return parse_txt(_fetch_text(url, config))


def read_remote_csv(url: str, config: RelayConfig) -> List[Source]:
    return parse_csv(_fetch_text(url, config))


def load_sources(config: RelayConfig) -> List[Source]:
    """Merge all configured feeds in precedence order."""
    sources = dedupe_sources([
        *read_local_txt(config.sources_file),
        *read_remote_txt(config.sources_txt_url, config),
        *read_remote_csv(config.sheet_csv_url, config),
        *read_local_json(config.sources_json),
    ])
    logger.info(f"Sources loaded: {len(sources)}")
    for i, src in enumerate(sources, 1):
        logger.info(f"  [{i}] {src.name} -> {src.url}")
    return sources
