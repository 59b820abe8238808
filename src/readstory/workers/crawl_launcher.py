from __future__ import annotations

import asyncio

from readstory.core.crawl_service import CrawlService
from readstory.utils.errors import classify_crawl_exception
from readstory.utils.logger import logger


class CrawlLauncher:
    """Fire-and-forget entry point for crawl jobs.

    :meth:`start_crawl` schedules the crawl on the running loop and returns at
    once. Callers get no handle: a started crawl cannot be observed, awaited,
    cancelled or timed out, and its failures only reach the log. Task
    references are kept in ``_tasks`` solely so the loop does not drop them.
    """

    def __init__(self, service: CrawlService) -> None:
        self._service = service
        self._tasks: set[asyncio.Task[None]] = set()

    def start_crawl(self, url: str) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise RuntimeError(
                "CrawlLauncher.start_crawl() requires an active asyncio event loop"
            ) from exc

        logger.info(f"[LAUNCHER] Crawl accepted for {url}")
        task = asyncio.create_task(self._run(url), name=f"crawl:{url}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, url: str) -> None:
        try:
            await self._service.crawl(url)
        except Exception as exc:
            logger.exception(
                f"[LAUNCHER] Background crawl failed for {url} "
                f"(kind={classify_crawl_exception(exc).value}): {exc}"
            )

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every crawl started so far; used at process shutdown."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
