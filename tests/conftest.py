from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone

import httpx
import pytest

from readstory.adapters.base_site_adapter import BaseSiteAdapter, ChapterPayload, ChapterTask
from readstory.database.models import SourceSite, Story
from readstory.utils.errors import FetchError, PersistError
from readstory.utils.http_client import HttpClient


class FakeStore:
    """In-memory stand-in for the story store contract."""

    def __init__(self) -> None:
        self.stories: dict[str, Story] = {}
        self.chapters: dict[tuple[int, int], dict] = {}
        self.batches: list[tuple[int, list[dict]]] = []

    async def find_story_by_slug(self, slug: str) -> Story | None:
        return self.stories.get(slug)

    async def insert_story(self, slug, title, source) -> Story:
        story = Story(
            id=len(self.stories) + 1,
            slug=slug,
            title=title,
            source=SourceSite.from_value(source),
            created_at=datetime.now(timezone.utc),
        )
        self.stories[slug] = story
        return story

    async def find_existing_chapter_keys(self, story_id: int) -> set[int]:
        return {key for (sid, key) in self.chapters if sid == story_id}

    async def insert_chapter_batch(self, story_id: int, rows: Sequence[dict]) -> None:
        if not rows:
            return
        for row in rows:
            if (story_id, row["key"]) in self.chapters:
                raise PersistError(f"duplicate chapter key {row['key']}")
        self.batches.append((story_id, [dict(row) for row in rows]))
        for row in rows:
            self.chapters[(story_id, row["key"])] = dict(row)


class ScriptedAdapter(BaseSiteAdapter):
    """Adapter whose listing and chapter bodies are supplied by the test."""

    site_key = "scripted"
    source = SourceSite.MTC

    def __init__(self, tasks: list[ChapterTask], failing_keys: set[int] = frozenset(), base_url="https://scripted.test"):
        super().__init__(base_url)
        self.tasks = tasks
        self.failing_keys = set(failing_keys)
        self.fetched: list[int] = []

    async def parse_story(self, url: str) -> Story:
        return Story(slug=url.rstrip("/").rsplit("/", 1)[-1], title="Scripted Story", source=self.source)

    async def parse_chapter_tasks(self, url: str, story: Story) -> list[ChapterTask]:
        return list(self.tasks)

    async def parse_chapter(self, story: Story, task: ChapterTask) -> ChapterPayload:
        self.fetched.append(task.index)
        if task.index in self.failing_keys:
            raise FetchError(f"{self.base_url}/{task.raw_key}", "HTTP 503", status_code=503)
        return ChapterPayload(content=f"body {task.index}", title=None)


def make_tasks(*keys: int) -> list[ChapterTask]:
    return [ChapterTask(name=f"Chapter {key}", index=key, raw_key=f"chuong-{key}") for key in keys]


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
    return HttpClient(transport=httpx.MockTransport(handler))


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
