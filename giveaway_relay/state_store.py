"""
Seen-State Store
================
Persists the URLs already handled across runs.

File format::

    {"seen": {"https://www.alphabot.app/r/abc": 1718000000000, ...}}

Responsibilities:
    1. Load state at run start (missing / corrupt file → empty state)
    2. Record first-seen timestamps idempotently (never overwrite)
    3. Write the whole state back atomically at run end
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class SeenState:
    """In-memory URL → first-seen epoch-milliseconds mapping."""

    def __init__(self, seen: Optional[Dict[str, int]] = None):
        self._seen: Dict[str, int] = dict(seen or {})

    def __contains__(self, url: str) -> bool:
        return url in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)

    def is_empty(self) -> bool:
        return not self._seen

    def mark(self, url: str, timestamp_ms: Optional[int] = None) -> bool:
        """Record *url* if new.  Returns False (and changes nothing) if already seen."""
        if not url or url in self._seen:
            return False
        self._seen[url] = now_ms() if timestamp_ms is None else int(timestamp_ms)
        return True

    def first_seen(self, url: str) -> Optional[int]:
        return self._seen.get(url)

    def to_dict(self) -> dict:
        return {"seen": dict(self._seen)}


class SeenStateStore:
    """Reads and writes ``SeenState`` as JSON on disk."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> SeenState:
        if not self.path.exists():
            logger.info(f"[state] No state file at {self.path}, starting empty")
            return SeenState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            logger.warning(f"[state] Corrupt state file {self.path}: {exc}, starting empty")
            return SeenState()

        raw = data.get("seen") if isinstance(data, dict) else None
        if not isinstance(raw, dict):
            logger.warning(f"[state] Unexpected state layout in {self.path}, starting empty")
            return SeenState()

        seen: Dict[str, int] = {}
        for url, ts in raw.items():
            try:
                seen[str(url)] = int(ts)
            except (TypeError, ValueError, OverflowError):
                continue
        logger.info(f"[state] Loaded {len(seen)} seen URLs from {self.path}")
        return SeenState(seen)

    def save(self, state: SeenState) -> None:
        """Overwrite the state file atomically (temp file + rename)."""
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state.to_dict(), fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.info(f"[state] Saved {len(state)} seen URLs to {self.path}")
