"""
Run Configuration
=================
Single source of truth for relay defaults and runtime limits.

The environment (plus an optional ``.env`` file loaded by the CLI) is read
exactly once, in ``RelayConfig.from_env``.  Every other module receives the
resulting immutable ``RelayConfig`` and never touches ``os.environ``.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Fatal configuration problem; the run must not start."""


# ---------------------------------------------------------------------------
# Canonical defaults. The ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "state_file": "state.json",
    "sources_file": "sources.txt",
    "sources_json": "sources.json",
    "seed_on_first_run": True,
    "max_child_pages": 8,
    "headless": True,
    "user_agent": "Mozilla/5.0 GiveawayRelay",
    "webhook_username": "Giveaways Relay",
    # Navigation timeouts (ms)
    "root_nav_timeout_ms": 45000,
    "child_nav_timeout_ms": 30000,
    "meta_nav_timeout_ms": 45000,
    "dom_ready_timeout_ms": 45000,
    "root_idle_timeout_ms": 10000,
    "child_idle_timeout_ms": 8000,
    # Scanner tuning
    "second_pass_delay_ms": 3000,
    "scroll_steps": 6,
    "scroll_pause_ms": 500,
    # Reveal tuning
    "reveal_max_attempts": 3,
    "click_nav_timeout_ms": 5000,
    # Notification pacing
    "notify_delay_s": 0.8,
    "http_timeout_s": 20.0,
}

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (got {raw!r})")


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {raw!r})") from None
    if value < 0:
        raise ConfigError(f"{name} must be >= 0 (got {value})")
    return value


@dataclass(frozen=True)
class RelayConfig:
    """
    Immutable configuration consumed by the crawler, notifier and pipeline.

    Populate via:
      - ``RelayConfig(webhook_url=...)``          → all other defaults
      - ``RelayConfig.from_env(os.environ)``      → environment-provided
      - ``cfg.with_overrides(max_child_pages=3)`` → CLI overrides (new object)
    """

    # ---- Required ----
    webhook_url: str = ""

    # ---- Sources ----
    sources_file: str = _DEFAULTS["sources_file"]
    sources_json: str = _DEFAULTS["sources_json"]
    sources_txt_url: str = ""
    sheet_csv_url: str = ""

    # ---- State ----
    state_file: str = _DEFAULTS["state_file"]
    seed_on_first_run: bool = _DEFAULTS["seed_on_first_run"]

    # ---- Notification ----
    keywords: str = ""
    mention_role_id: str = ""
    webhook_username: str = _DEFAULTS["webhook_username"]
    notify_delay_s: float = _DEFAULTS["notify_delay_s"]
    http_timeout_s: float = _DEFAULTS["http_timeout_s"]

    # ---- Browser ----
    headless: bool = _DEFAULTS["headless"]
    user_agent: str = _DEFAULTS["user_agent"]

    # ---- Crawl limits ----
    max_child_pages: int = _DEFAULTS["max_child_pages"]
    root_nav_timeout_ms: int = _DEFAULTS["root_nav_timeout_ms"]
    child_nav_timeout_ms: int = _DEFAULTS["child_nav_timeout_ms"]
    meta_nav_timeout_ms: int = _DEFAULTS["meta_nav_timeout_ms"]
    dom_ready_timeout_ms: int = _DEFAULTS["dom_ready_timeout_ms"]
    root_idle_timeout_ms: int = _DEFAULTS["root_idle_timeout_ms"]
    child_idle_timeout_ms: int = _DEFAULTS["child_idle_timeout_ms"]

    # ---- Scanner ----
    second_pass_delay_ms: int = _DEFAULTS["second_pass_delay_ms"]
    scroll_steps: int = _DEFAULTS["scroll_steps"]
    scroll_pause_ms: int = _DEFAULTS["scroll_pause_ms"]

    # ---- Interaction revealing ----
    reveal_max_attempts: int = _DEFAULTS["reveal_max_attempts"]
    click_nav_timeout_ms: int = _DEFAULTS["click_nav_timeout_ms"]

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """Build and validate a config from an environment mapping."""
        env = os.environ if environ is None else environ
        cfg = cls(
            webhook_url=(env.get("DISCORD_WEBHOOK_URL") or "").strip(),
            sources_file=env.get("SOURCES_FILE") or _DEFAULTS["sources_file"],
            sources_json=env.get("SOURCES_JSON") or _DEFAULTS["sources_json"],
            sources_txt_url=(env.get("SOURCES_TXT_URL") or "").strip(),
            sheet_csv_url=(env.get("SHEET_CSV_URL") or "").strip(),
            state_file=env.get("STATE_FILE") or _DEFAULTS["state_file"],
            seed_on_first_run=_parse_bool(
                "SEED_ON_FIRST_RUN", env.get("SEED_ON_FIRST_RUN"),
                _DEFAULTS["seed_on_first_run"],
            ),
            keywords=(env.get("KEYWORDS") or "").strip(),
            mention_role_id=(env.get("MENTION_ROLE_ID") or "").strip(),
            max_child_pages=_parse_int(
                "MAX_CHILD_PAGES", env.get("MAX_CHILD_PAGES"),
                _DEFAULTS["max_child_pages"],
            ),
        )
        cfg.validate()
        return cfg

    def with_overrides(self, **overrides) -> "RelayConfig":
        """Return a validated copy with the non-``None`` overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        cfg = replace(self, **changes)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Raise ``ConfigError`` for anything that must abort the run."""
        if not self.webhook_url:
            raise ConfigError("DISCORD_WEBHOOK_URL is not set")
        if self.keywords:
            try:
                re.compile(self.keywords, re.IGNORECASE)
            except re.error as exc:
                raise ConfigError(f"KEYWORDS is not a valid regex: {exc}") from None
        if self.max_child_pages < 0:
            raise ConfigError("max_child_pages must be >= 0")

    # -----------------------------------------------------------------------
    # Derived values
    # -----------------------------------------------------------------------
    @property
    def keyword_pattern(self) -> Optional[re.Pattern]:
        if not self.keywords:
            return None
        return re.compile(self.keywords, re.IGNORECASE)

    @property
    def mention_content(self) -> str:
        return f"<@&{self.mention_role_id}>" if self.mention_role_id else ""

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a structured summary to the logger (webhook masked)."""
        masked = self.webhook_url[:32] + "..." if len(self.webhook_url) > 32 else "(set)"
        logger.info("=" * 60)
        logger.info("RELAY RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Webhook:          {masked}")
        logger.info(f"  Sources file:     {self.sources_file}")
        logger.info(f"  Sources JSON:     {self.sources_json}")
        if self.sources_txt_url:
            logger.info(f"  Remote TXT:       {self.sources_txt_url}")
        if self.sheet_csv_url:
            logger.info(f"  Remote CSV:       {self.sheet_csv_url}")
        logger.info(f"  State file:       {self.state_file}")
        logger.info(f"  Seed first run:   {self.seed_on_first_run}")
        logger.info(f"  Max child pages:  {self.max_child_pages}")
        if self.keywords:
            logger.info(f"  Keyword filter:   /{self.keywords}/i")
        if self.mention_role_id:
            logger.info(f"  Mention role:     {self.mention_role_id}")
        logger.info(f"  Headless:         {self.headless}")
        logger.info("=" * 60)
