"""
Crawl Engine
============
Soft (depth-1) crawl of one source URL.

Per source:

1. Root scan: navigate, scan, keep classifier-accepted links
   (project-scoped for Atlas3 ``/project/<slug>`` sources)
2. Reveal: if nothing was found and the root is an Alphabot generic
   project page, simulate "Enter" clicks
3. Children: if still nothing, open up to ``max_child_pages`` promising
   same-host links, scanning (and revealing) each, stopping at the first
   child that yields a hit

Everything is sequential.  A root failure yields an empty result; a child
failure is logged and the next child is tried.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set
from urllib.parse import urlparse

from .classifier import (
    in_project_scope,
    is_concrete_giveaway,
    is_generic_project_page,
    looks_promising_path,
    project_slug,
)
from .interaction_policy import reveal_by_clicking
from .run_config import RelayConfig
from .scanner import scan_page
from .utils import clean_url, dedupe_keep_order, same_host, wait_best_effort

logger = logging.getLogger(__name__)


class RaffleCrawler:
    """
    Discover concrete giveaway URLs reachable from a source page.

    Usage::

        crawler = RaffleCrawler(config)
        urls = await crawler.collect(context, "https://www.alphabot.app/_/proj")
    """

    def __init__(self, config: RelayConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def collect(self, context, source_url: str) -> Set[str]:
        """Return the set of concrete giveaway URLs found for *source_url*."""
        candidates: Set[str] = set()
        slug = project_slug(source_url)

        page = None
        try:
            page = await context.new_page()
            await page.goto(
                source_url,
                wait_until="domcontentloaded",
                timeout=self.config.root_nav_timeout_ms,
            )
            await wait_best_effort(page, "networkidle", self.config.root_idle_timeout_ms)

            scan = await scan_page(page, self.config)
            direct = self._scoped_hits(scan.links, slug)
            candidates.update(direct)
            logger.info(
                f"[root] links:{len(scan.links)} resp:{scan.network_url_count} "
                f"candidates:{len(direct)}"
            )

            if not candidates and is_generic_project_page(source_url):
                revealed = await reveal_by_clicking(
                    page, self.config.reveal_max_attempts, self.config,
                )
                candidates.update(self._scoped_hits(revealed, slug))

            if not candidates:
                children = self._select_children(scan.links, source_url, slug)
                logger.info(f"[crawl] children to explore: {len(children)}")
                await self._explore_children(context, children, slug, candidates)

        except Exception as exc:
            logger.warning(f"[root] error {source_url}: {exc}")
        finally:
            await self._close_quietly(page)

        return candidates

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _scoped_hits(links: Iterable[str], slug: Optional[str]) -> List[str]:
        """Classifier-accepted links, restricted to the source project if any."""
        hits = []
        for link in links:
            url = clean_url(link)
            if url and is_concrete_giveaway(url) and in_project_scope(url, slug):
                hits.append(url)
        return sorted(set(hits))

    def _select_children(
        self,
        links: Iterable[str],
        source_url: str,
        slug: Optional[str],
    ) -> List[str]:
        """Same-host, not-yet-accepted links whose path looks promising, in page order."""
        source = clean_url(source_url)
        picked = []
        for link in links:
            url = clean_url(link)
            if not url or url == source:
                continue
            if not same_host(url, source_url):
                continue
            if is_concrete_giveaway(url):
                continue
            if not looks_promising_path(urlparse(url).path):
                continue
            if not in_project_scope(url, slug):
                continue
            picked.append(url)
        return dedupe_keep_order(picked)[: self.config.max_child_pages]

    async def _explore_children(
        self,
        context,
        children: List[str],
        slug: Optional[str],
        candidates: Set[str],
    ) -> None:
        visited: Set[str] = set()
        for child in children:
            if child in visited:
                continue
            visited.add(child)

            page = None
            try:
                page = await context.new_page()
                await page.goto(
                    child,
                    wait_until="domcontentloaded",
                    timeout=self.config.child_nav_timeout_ms,
                )
                await wait_best_effort(
                    page, "networkidle", self.config.child_idle_timeout_ms,
                )
                scan = await scan_page(page, self.config)
                hits = self._scoped_hits(scan.links, slug)

                if not hits and is_generic_project_page(child):
                    revealed = await reveal_by_clicking(
                        page, self.config.reveal_max_attempts, self.config,
                    )
                    hits = self._scoped_hits(revealed, slug)

                logger.info(
                    f"[child] {child} -> links:{len(scan.links)} "
                    f"resp:{scan.network_url_count} cand:{len(hits)}"
                )
                candidates.update(hits)
            except Exception as exc:
                logger.warning(f"[child] error {child}: {exc}")
            finally:
                await self._close_quietly(page)

            # One hit is enough for this source
            if candidates:
                break

    @staticmethod
    async def _close_quietly(page) -> None:
        if page is None:
            return
        try:
            await page.close()
        except Exception as exc:
            logger.debug(f"[crawl] page close failed: {exc}")
