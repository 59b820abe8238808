from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

from readstory.adapters.registry import build_default_registry
from readstory.config import config as app_config
from readstory.core.batch_scheduler import BatchScheduler
from readstory.core.crawl_service import CrawlService
from readstory.database.connection import db_manager
from readstory.database.story_store import SQLAlchemyStoryStore
from readstory.utils.http_client import close_http_client
from readstory.utils.logger import logger
from readstory.workers.crawl_launcher import CrawlLauncher


def parse_cli_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="readstory",
        description=(
            "Crawl one or more story URLs into the database. Each URL runs as an "
            "independent background crawl; the command exits once all of them finish."
        ),
    )
    parser.add_argument("urls", nargs="+", help="Story page URL(s) on a supported site.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help=f"Chapters per batch window (default {app_config.BATCH_SIZE}).",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help=f"Seconds to wait between batch windows (default {app_config.BATCH_DELAY_SECONDS:g}).",
    )
    parser.add_argument(
        "--database-url",
        dest="database_url",
        default=None,
        help="SQLAlchemy async URL; overrides DATABASE_URL.",
    )
    return parser.parse_args(argv)


async def main(argv: Sequence[str] | None = None) -> None:
    args = parse_cli_args(argv)

    db_manager.initialize(args.database_url)
    try:
        await db_manager.create_tables()
        store = SQLAlchemyStoryStore(db_manager)
        registry = build_default_registry()
        scheduler = BatchScheduler(store, batch_size=args.batch_size, delay_seconds=args.delay)
        launcher = CrawlLauncher(CrawlService(store, registry=registry, scheduler=scheduler))

        for url in args.urls:
            launcher.start_crawl(url)
        logger.info(f"[MAIN] {launcher.active_count} crawl(s) running")
        await launcher.drain()
    finally:
        await close_http_client()
        await db_manager.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
