from __future__ import annotations

from readstory.adapters.registry import AdapterRegistry, build_default_registry
from readstory.core.batch_scheduler import BatchReport, BatchScheduler
from readstory.core.chapter_filter import filter_new_tasks
from readstory.database.models import Story
from readstory.database.story_store import StoryStore
from readstory.utils.logger import logger


class CrawlService:
    """Drives one crawl from URL to stored chapters.

    Adapter resolution, story parsing and chapter listing are all-or-nothing:
    any failure there propagates out of :meth:`crawl` before a single chapter
    is written. Individual chapter failures are handled by the batch scheduler.
    """

    def __init__(
        self,
        store: StoryStore,
        *,
        registry: AdapterRegistry | None = None,
        scheduler: BatchScheduler | None = None,
    ) -> None:
        self.store = store
        self.registry = registry or build_default_registry()
        self.scheduler = scheduler or BatchScheduler(store)

    async def _upsert_story(self, parsed: Story) -> Story:
        story = await self.store.find_story_by_slug(parsed.slug)
        if story is not None:
            return story
        return await self.store.insert_story(parsed.slug, parsed.title or parsed.slug, parsed.source)

    async def crawl(self, url: str) -> BatchReport | None:
        adapter = self.registry.resolve(url)
        logger.info(f"[CRAWL] Starting crawl for URL: {url} (site={adapter.site_key})")

        parsed = await adapter.parse_story(url)
        story = await self._upsert_story(parsed)

        tasks = await adapter.parse_chapter_tasks(url, story)
        logger.info(f"[CRAWL] Found {len(tasks)} chapter tasks for {story.slug}")

        existing_keys = await self.store.find_existing_chapter_keys(story.id)
        pending = filter_new_tasks(tasks, existing_keys)
        if not pending:
            logger.info(f"[CRAWL] No new chapters to crawl for {story.slug}")
            return None

        logger.info(
            f"[CRAWL] {len(pending)} new chapters for {story.slug} "
            f"({len(existing_keys)} already stored)"
        )
        report = await self.scheduler.run(adapter, story, pending)
        logger.info(
            f"[CRAWL] Crawl completed for story: {story.slug} "
            f"(inserted={report.inserted}, failed={len(report.failed_keys)}, batches={report.windows})"
        )
        return report
