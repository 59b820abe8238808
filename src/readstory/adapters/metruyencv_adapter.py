"""Site adapter for metruyencv"""

from urllib.parse import quote

from readstory.adapters.base_site_adapter import BaseSiteAdapter, ChapterPayload, ChapterTask
from readstory.analyze.metruyencv_parse import (
    extract_key_codes,
    extract_story_slug,
    find_bundle_url,
    parse_book_id,
    parse_chapter_api,
    parse_encrypted_content,
    parse_story_title,
)
from readstory.config.config import BACKEND_METRUYENCV, BASE_URLS, MTC_DEFAULT_KEY
from readstory.database.models import SourceSite, Story
from readstory.utils.chapter_crypto import KeyCache, decrypt_content, key_from_char_codes
from readstory.utils.errors import FetchError, ParseError
from readstory.utils.http_client import HttpClient
from readstory.utils.logger import logger


class MeTruyenCVAdapter(BaseSiteAdapter):
    """Adapter for metruyencv.

    Chapter bodies are AES encrypted with a key that rotates with the site's
    client bundle. The adapter owns a :class:`KeyCache`: until a key has been
    pulled from the bundle it decrypts with ``default_key`` and, on each chapter
    page, looks for the bundle URL so the cache can be filled for the next
    chapters. Decryption never waits for that refresh.
    """

    site_key = "metruyencv"
    source = SourceSite.MTC

    def __init__(
        self,
        base_url: str | None = None,
        http_client: HttpClient | None = None,
        *,
        backend_url: str | None = None,
        default_key: str | None = None,
    ) -> None:
        super().__init__(base_url or BASE_URLS[self.site_key], http_client)
        self.backend_url = (backend_url or BACKEND_METRUYENCV).rstrip("/")
        self.default_key = default_key or MTC_DEFAULT_KEY
        self.key_cache = KeyCache()

    def _chapter_api_url(self, book_id: str) -> str:
        return (
            f"{self.backend_url}/api/chapters"
            f"?filter[book_id]={quote(book_id)}&filter[type]=published"
        )

    def _chapter_url(self, story: Story, task: ChapterTask) -> str:
        return f"{self.base_url}/truyen/{story.slug}/chuong-{task.index}"

    async def parse_story(self, url: str) -> Story:
        slug = extract_story_slug(url)
        html = await self.fetch_html(url)
        title = parse_story_title(html) or slug
        return Story(slug=slug, title=title, source=self.source)

    async def parse_chapter_tasks(self, url: str, story: Story) -> list[ChapterTask]:
        html = await self.fetch_html(url)
        book_id = parse_book_id(html)
        logger.info(f"[{self.site_key}] Found book_id {book_id} for {story.slug}")

        payload = await self.http.get_json(self._chapter_api_url(book_id))
        return [
            ChapterTask(name=name, index=key, raw_key=raw_index)
            for name, raw_index, key in parse_chapter_api(payload)
        ]

    async def parse_chapter(self, story: Story, task: ChapterTask) -> ChapterPayload:
        chapter_url = self._chapter_url(story, task)
        logger.info(f"[{self.site_key}] Crawling {chapter_url}")

        html = await self.fetch_html(chapter_url)
        encoded = parse_encrypted_content(html)

        cached_key = await self.key_cache.read()
        bundle_url = find_bundle_url(html, self.base_url) if cached_key is None else None

        content = ""
        if encoded:
            content = decrypt_content(encoded, cached_key or self.default_key)
            if not content:
                # Kept as-is: dedup will not retry this chapter on a later crawl.
                logger.warning(
                    f"[{self.site_key}] Chapter {task.index} of {story.slug} decrypted to empty content"
                )

        if bundle_url:
            await self.refresh_key(bundle_url)

        if not encoded:
            raise ParseError(f"Could not find encoded content in chapter page: {chapter_url}")
        return ChapterPayload(content=content, title=None)

    async def refresh_key(self, bundle_url: str) -> None:
        """Pull a fresh key out of the client bundle; failures only get logged."""
        logger.info(f"[{self.site_key}] Fetching JS bundle for key extraction: {bundle_url}")
        try:
            js_source = await self.http.get_text(bundle_url)
        except FetchError as exc:
            logger.warning(f"[{self.site_key}] Could not fetch JS bundle: {exc}")
            return

        codes = extract_key_codes(js_source)
        if codes is None:
            logger.warning(f"[{self.site_key}] Could not find key codes in JS bundle")
            return
        try:
            new_key = key_from_char_codes(codes)
        except (ValueError, OverflowError):
            logger.warning(f"[{self.site_key}] Key codes in JS bundle are not valid characters")
            return

        await self.key_cache.replace(new_key)
        logger.info(f"[{self.site_key}] Cached new AES key from JS bundle")
