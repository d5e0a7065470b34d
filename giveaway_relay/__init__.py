"""
Giveaway Relay
Watches public giveaway platforms and relays newly discovered concrete
giveaways to a webhook.

CLI Usage:
    python -m giveaway_relay [options]

    Options:
        --state-file        Seen-state JSON path
        --sources-file      Local text source list
        --sources-json      Local JSON source list
        --max-child-pages   Child pages explored per source (default: 8)
        --headed            Show the browser window
        --no-seed           Notify even on the very first run
"""

from .classifier import (
    HostFamily,
    host_family,
    is_concrete_giveaway,
    is_generic_project_page,
    project_slug,
)
from .engine import RaffleCrawler
from .interaction_policy import reveal_by_clicking
from .meta import Meta, parse_meta
from .notifier import WebhookNotifier
from .pipeline import RunSummary, process_sources, run_relay
from .run_config import ConfigError, RelayConfig
from .scanner import ScanResult, scan_page
from .sources import Source, load_sources
from .state_store import SeenState, SeenStateStore

__all__ = [
    'HostFamily',
    'host_family',
    'is_concrete_giveaway',
    'is_generic_project_page',
    'project_slug',
    'RaffleCrawler',
    'reveal_by_clicking',
    'Meta',
    'parse_meta',
    'WebhookNotifier',
    'RunSummary',
    'process_sources',
    'run_relay',
    'ConfigError',
    'RelayConfig',
    'ScanResult',
    'scan_page',
    'Source',
    'load_sources',
    'SeenState',
    'SeenStateStore',
]

__version__ = '1.0.0'
