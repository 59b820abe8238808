from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, NamedTuple

from readstory.database.models import SourceSite, Story
from readstory.utils.http_client import HttpClient, get_http_client


@dataclass(frozen=True)
class ChapterTask:
    """A chapter discovered on the listing but not fetched yet."""

    name: str
    index: int
    raw_key: str


class ChapterPayload(NamedTuple):
    content: str
    title: str | None = None


class BaseSiteAdapter(ABC):
    """Base contract that all site adapters must follow."""

    #: Identifier used by the registry and in log prefixes.
    site_key: ClassVar[str]
    #: Value stored in ``Story.source`` for stories from this site.
    source: ClassVar[SourceSite]

    def __init__(self, base_url: str, http_client: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client

    @classmethod
    def get_site_key(cls) -> str:
        """Return the declared ``site_key`` for the adapter."""

        key = getattr(cls, "site_key", "")
        if not isinstance(key, str) or not key:
            raise NotImplementedError(
                f"Adapter {cls.__name__} must define a non-empty `site_key` class attribute."
            )
        return key

    @property
    def http(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = get_http_client()
        return self._http_client

    def supports(self, url: str) -> bool:
        return url.startswith(self.base_url)

    async def fetch_html(self, url: str) -> str:
        """Fetch a page through the shared client; raises ``FetchError``."""
        return await self.http.get_text(url)

    @abstractmethod
    async def parse_story(self, url: str) -> Story:
        """Build an unsaved :class:`Story` (slug, title, source) for ``url``."""

    @abstractmethod
    async def parse_chapter_tasks(self, url: str, story: Story) -> list[ChapterTask]:
        """Return every chapter the site currently lists for ``story``."""

    @abstractmethod
    async def parse_chapter(self, story: Story, task: ChapterTask) -> ChapterPayload:
        """Fetch one chapter body and an optional title that overrides ``task.name``."""
