"""
Webhook notifier: one Discord-style embed per newly discovered giveaway.

Delivery failures are logged and NOT retried; they never abort a run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from .meta import DEFAULT_TITLE, Meta
from .run_config import RelayConfig

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """Formats and POSTs notification payloads to the configured webhook."""

    def __init__(self, config: RelayConfig):
        self.config = config
        self._keyword_re = config.keyword_pattern

    def matches_keywords(self, url: str, meta: Meta) -> bool:
        """True when no filter is configured or the filter matches title+description+url."""
        if self._keyword_re is None:
            return True
        haystack = f"{meta.title} {meta.description} {url}"
        return bool(self._keyword_re.search(haystack))

    def build_payload(
        self,
        source_name: str,
        url: str,
        meta: Meta,
        now: Optional[datetime] = None,
    ) -> dict:
        now = now or datetime.now(timezone.utc)
        description = f"{meta.description}\n\n" if meta.description else ""
        description += f"📌 Source: **{source_name}**"

        payload = {
            "username": self.config.webhook_username,
            "embeds": [{
                "title": meta.title or DEFAULT_TITLE,
                "url": url,
                "description": description,
                "timestamp": now.isoformat(),
            }],
        }
        if self.config.mention_content:
            payload["content"] = self.config.mention_content
        return payload

    def send(self, source_name: str, url: str, meta: Meta) -> bool:
        """POST one notification.  Returns True on a 2xx response."""
        payload = self.build_payload(source_name, url, meta)
        try:
            resp = requests.post(
                self.config.webhook_url,
                json=payload,
                timeout=self.config.http_timeout_s,
            )
        except requests.RequestException as exc:
            logger.warning(f"[notify] delivery failed for {url}: {exc}")
            return False
        if not resp.ok:
            logger.warning(f"[notify] HTTP {resp.status_code} for {url}")
            return False
        logger.info(f"[notify] posted {url}")
        return True
