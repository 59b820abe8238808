from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from readstory.adapters.base_site_adapter import BaseSiteAdapter, ChapterTask
from readstory.config.config import BATCH_DELAY_SECONDS, BATCH_SIZE
from readstory.database.models import Story
from readstory.database.story_store import ChapterRow, StoryStore
from readstory.utils.batch_utils import split_windows
from readstory.utils.errors import classify_crawl_exception
from readstory.utils.logger import chapter_error_logger, progress_logger

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class BatchReport:
    windows: int = 0
    attempted: int = 0
    inserted: int = 0
    failed_keys: list[int] = field(default_factory=list)


class BatchScheduler:
    """Fetch pending chapters window by window and bulk-insert each window.

    Tasks inside a window run one after another, never concurrently. A chapter
    that fails is logged and left out of its window's insert; it stays missing
    from the store and is picked up again by the next crawl of the same URL.
    Between two windows the scheduler sleeps ``delay_seconds``; there is no
    sleep after the last window.
    """

    def __init__(
        self,
        store: StoryStore,
        *,
        batch_size: int | None = None,
        delay_seconds: float | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.store = store
        self.batch_size = batch_size if batch_size is not None else BATCH_SIZE
        self.delay_seconds = delay_seconds if delay_seconds is not None else BATCH_DELAY_SECONDS
        if self.batch_size < 1:
            raise ValueError("batch_size must be a positive integer")
        self._sleep = sleep

    async def _fetch_window(
        self, adapter: BaseSiteAdapter, story: Story, window: Sequence[ChapterTask], report: BatchReport
    ) -> list[ChapterRow]:
        rows: list[ChapterRow] = []
        for task in window:
            report.attempted += 1
            try:
                payload = await adapter.parse_chapter(story, task)
            except Exception as exc:
                report.failed_keys.append(task.index)
                chapter_error_logger.error(
                    f"[{adapter.site_key}] Failed to crawl chapter {task.name!r} "
                    f"(key={task.index}, story={story.slug}, kind={classify_crawl_exception(exc).value}): {exc}"
                )
                continue
            rows.append({"title": payload.title or task.name, "key": task.index, "content": payload.content})
        return rows

    async def run(self, adapter: BaseSiteAdapter, story: Story, tasks: Sequence[ChapterTask]) -> BatchReport:
        windows = split_windows(tasks, self.batch_size)
        report = BatchReport(windows=len(windows))

        for i, window in enumerate(windows, start=1):
            progress_logger.info(
                f"[{adapter.site_key}] Processing batch {i}/{len(windows)} ({len(window)} chapters) for {story.slug}"
            )
            rows = await self._fetch_window(adapter, story, window, report)

            if rows:
                await self.store.insert_chapter_batch(story.id, rows)
                report.inserted += len(rows)
                progress_logger.info(f"[{adapter.site_key}] Batch {i} inserted {len(rows)} chapters")
            else:
                progress_logger.warning(f"[{adapter.site_key}] Batch {i} produced no chapters")

            if i < len(windows):
                progress_logger.info(f"[{adapter.site_key}] Sleeping {self.delay_seconds:g}s before next batch...")
                await self._sleep(self.delay_seconds)

        return report
