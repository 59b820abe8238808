"""Site adapter for truyenfull"""

from readstory.adapters.base_site_adapter import BaseSiteAdapter, ChapterPayload, ChapterTask
from readstory.analyze.truyenfull_parse import (
    extract_story_slug,
    parse_chapter_content,
    parse_chapter_options,
    parse_story_id,
)
from readstory.config.config import BASE_URLS
from readstory.database.models import SourceSite, Story
from readstory.utils.http_client import HttpClient
from readstory.utils.logger import logger


class TruyenFullAdapter(BaseSiteAdapter):
    """Adapter for truyenfull: plain HTML pages plus an ajax chapter dropdown."""

    site_key = "truyenfull"
    source = SourceSite.TRUYEN_FULL

    def __init__(self, base_url: str | None = None, http_client: HttpClient | None = None) -> None:
        super().__init__(base_url or BASE_URLS[self.site_key], http_client)

    def _chapter_list_url(self, story_id: str) -> str:
        return f"{self.base_url}/ajax.php?type=chapter_option&data={story_id}"

    def _chapter_url(self, story: Story, task: ChapterTask) -> str:
        return f"{self.base_url}/{story.slug}/{task.raw_key}"

    async def parse_story(self, url: str) -> Story:
        # The story page is not fetched here; the slug doubles as the title.
        slug = extract_story_slug(url)
        return Story(slug=slug, title=slug, source=self.source)

    async def parse_chapter_tasks(self, url: str, story: Story) -> list[ChapterTask]:
        html = await self.fetch_html(url)
        story_id = parse_story_id(html)
        logger.info(f"[{self.site_key}] Found truyen-id {story_id} for {story.slug}")

        options_html = await self.fetch_html(self._chapter_list_url(story_id))
        return [
            ChapterTask(name=label, index=key, raw_key=raw_key)
            for label, raw_key, key in parse_chapter_options(options_html)
        ]

    async def parse_chapter(self, story: Story, task: ChapterTask) -> ChapterPayload:
        chapter_url = self._chapter_url(story, task)
        logger.info(f"[{self.site_key}] Fetching chapter content from: {chapter_url}")

        html = await self.fetch_html(chapter_url)
        content, title = parse_chapter_content(html)
        return ChapterPayload(content=content, title=title)
