#!/usr/bin/env python3
"""
Giveaway Relay CLI
==================
One invocation = one run: crawl every configured source, post new
giveaways to the webhook, persist the seen-state, exit.

Configuration comes from the environment (and a ``.env`` file if present);
flags below override individual values.

Run with: python -m giveaway_relay
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from .pipeline import run_relay
from .run_config import ConfigError, RelayConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='giveaway-relay',
        description='Discover new giveaways on Alphabot / Atlas3 / Subber and relay them to a webhook',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  DISCORD_WEBHOOK_URL   (required) webhook to post to
  SOURCES_TXT_URL       remote text source list
  SHEET_CSV_URL         remote CSV source list
  KEYWORDS              case-insensitive regex filter
  MENTION_ROLE_ID       role to mention in each post
  SEED_ON_FIRST_RUN     seed silently when state is empty (default: true)

Examples:
  python -m giveaway_relay
  python -m giveaway_relay --state-file data/state.json --max-child-pages 4
        """
    )
    parser.add_argument('--state-file', type=str, help='Seen-state JSON path (default: state.json)')
    parser.add_argument('--sources-file', type=str, help='Local text source list (default: sources.txt)')
    parser.add_argument('--sources-json', type=str, help='Local JSON source list (default: sources.json)')
    parser.add_argument('--max-child-pages', type=int, help='Child pages explored per source (default: 8)')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument(
        '--no-seed', action='store_true',
        help='Notify immediately even when the state file is empty',
    )
    parser.add_argument(
        '--log-level', type=str, default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)',
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S',
    )
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    load_dotenv()

    try:
        cfg = RelayConfig.from_env().with_overrides(
            state_file=args.state_file,
            sources_file=args.sources_file,
            sources_json=args.sources_json,
            max_child_pages=args.max_child_pages,
            headless=False if args.headed else None,
            seed_on_first_run=False if args.no_seed else None,
        )
    except ConfigError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1

    cfg.log_summary()
    asyncio.run(run_relay(cfg))
    return 0


if __name__ == '__main__':
    sys.exit(main())
