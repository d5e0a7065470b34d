"""
Relay Pipeline
==============
One complete run: sources → crawl → dedupe against seen-state → notify.

Pipeline stages (per source, strictly sequential):
1. **Crawl**: ``RaffleCrawler.collect`` returns concrete giveaway URLs
2. **Dedupe**: URLs already in ``SeenState`` are skipped
3. **Seed**: on a first run (empty state, seeding enabled) new URLs are
   recorded silently, no notification burst against live sources
4. **Describe**: page metadata fetched for each genuinely new URL
5. **Filter**: optional keyword regex over title + description + URL
6. **Notify**: webhook POST, followed by a fixed anti-flood pause

State is written once, after every source has been processed.  A crash
outside the per-source / per-child isolation loses that run's discoveries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import async_playwright

from .engine import RaffleCrawler
from .meta import Meta, fetch_meta
from .notifier import WebhookNotifier
from .run_config import RelayConfig
from .sources import Source, load_sources
from .state_store import SeenState, SeenStateStore

logger = logging.getLogger(__name__)

MetaFetcher = Callable[[object, str, RelayConfig], Awaitable[Meta]]


@dataclass
class RunSummary:
    """Counters reported at the end of a run."""
    sources: int = 0
    discovered: int = 0
    seeded: int = 0
    filtered: int = 0
    published: int = 0
    failed_deliveries: int = 0
    elapsed_s: float = 0.0


async def process_sources(
    config: RelayConfig,
    sources: List[Source],
    context,
    state: SeenState,
    *,
    crawler: Optional[RaffleCrawler] = None,
    notifier: Optional[WebhookNotifier] = None,
    meta_fetcher: MetaFetcher = fetch_meta,
) -> RunSummary:
    """
    Crawl every source and notify about URLs not yet in *state*.

    *state* is mutated in place; persisting it is the caller's job.
    """
    crawler = crawler or RaffleCrawler(config)
    notifier = notifier or WebhookNotifier(config)
    summary = RunSummary(sources=len(sources))
    t_start = time.monotonic()

    # Decided once: marking the first URL must not end seeding mid-run
    seeding = config.seed_on_first_run and state.is_empty()
    if seeding:
        logger.info("[state] Empty state, seeding this run without notifications")

    loop = asyncio.get_running_loop()

    for src in sources:
        logger.info(f"→ Opening: {src.url}")
        urls = await crawler.collect(context, src.url)
        summary.discovered += len(urls)
        logger.info(f"[{src.name}] total candidates: {len(urls)}")

        for url in sorted(urls):
            if url in state:
                continue

            if seeding:
                state.mark(url)
                summary.seeded += 1
                continue

            meta = await meta_fetcher(context, url, config)

            if not notifier.matches_keywords(url, meta):
                logger.info(f"[notify] filtered by keywords: {url}")
                state.mark(url)
                summary.filtered += 1
                continue

            delivered = await loop.run_in_executor(
                None, notifier.send, src.name, url, meta,
            )
            state.mark(url)
            if delivered:
                summary.published += 1
            else:
                summary.failed_deliveries += 1

            await asyncio.sleep(config.notify_delay_s)

    summary.elapsed_s = time.monotonic() - t_start
    return summary


async def run_relay(
    config: RelayConfig,
    *,
    sources: Optional[List[Source]] = None,
) -> RunSummary:
    """Load sources and state, crawl with a headless browser, save state."""
    if sources is None:
        sources = load_sources(config)

    store = SeenStateStore(config.state_file)
    state = store.load()

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=config.headless,
            args=["--no-sandbox"],
        )
        try:
            context = await browser.new_context(user_agent=config.user_agent)
            summary = await process_sources(config, sources, context, state)
        finally:
            await browser.close()

    store.save(state)
    log_summary(summary)
    return summary


def log_summary(summary: RunSummary) -> None:
    logger.info("=" * 60)
    logger.info("RELAY RUN COMPLETE")
    logger.info("=" * 60)
    logger.info(f"  Sources:            {summary.sources}")
    logger.info(f"  Candidates found:   {summary.discovered}")
    if summary.seeded:
        logger.info(f"  Seeded (silent):    {summary.seeded}")
    if summary.filtered:
        logger.info(f"  Keyword-filtered:   {summary.filtered}")
    if summary.failed_deliveries:
        logger.info(f"  Failed deliveries:  {summary.failed_deliveries}")
    logger.info(f"  Elapsed:            {summary.elapsed_s:.1f}s")
    logger.info("=" * 60)
    logger.info(f"Done. New items published: {summary.published}")
