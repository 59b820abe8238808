"""Persistence contract used by the crawl core and its SQLAlchemy implementation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypedDict

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from readstory.database.connection import DatabaseManager, db_manager
from readstory.database.models import Chapter, SourceSite, Story
from readstory.utils.errors import PersistError
from readstory.utils.logger import logger


class ChapterRow(TypedDict):
    title: str | None
    key: int
    content: str


class StoryStore(Protocol):
    async def find_story_by_slug(self, slug: str) -> Story | None: ...

    async def insert_story(self, slug: str, title: str | None, source: SourceSite | str | None) -> Story: ...

    async def find_existing_chapter_keys(self, story_id: int) -> set[int]: ...

    async def insert_chapter_batch(self, story_id: int, rows: Sequence[ChapterRow]) -> None: ...


class SQLAlchemyStoryStore:
    """:class:`StoryStore` backed by the shared async engine.

    Every method runs in its own short session; nothing here spans more than a
    single statement's transaction.
    """

    def __init__(self, manager: DatabaseManager | None = None) -> None:
        self._manager = manager or db_manager

    async def find_story_by_slug(self, slug: str) -> Story | None:
        try:
            async with self._manager.get_session() as session:
                result = await session.execute(select(Story).where(Story.slug == slug))
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistError(f"Failed to look up story '{slug}'") from exc

    async def insert_story(self, slug: str, title: str | None, source: SourceSite | str | None) -> Story:
        story = Story(slug=slug, title=title, source=SourceSite.from_value(source))
        try:
            async with self._manager.get_session() as session:
                session.add(story)
                await session.flush()
                await session.refresh(story)
        except SQLAlchemyError as exc:
            raise PersistError(f"Failed to insert story '{slug}'") from exc
        logger.info(f"[DB] Created story '{slug}' (id={story.id}, source={story.source.value})")
        return story

    async def find_existing_chapter_keys(self, story_id: int) -> set[int]:
        try:
            async with self._manager.get_session() as session:
                result = await session.execute(select(Chapter.key).where(Chapter.story_id == story_id))
                return set(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistError(f"Failed to load chapter keys for story {story_id}") from exc

    async def insert_chapter_batch(self, story_id: int, rows: Sequence[ChapterRow]) -> None:
        if not rows:
            return
        values = [
            {
                "story_id": story_id,
                "title": row["title"],
                "key": row["key"],
                "content": row["content"],
            }
            for row in rows
        ]
        try:
            async with self._manager.get_session() as session:
                await session.execute(insert(Chapter).values(values))
        except SQLAlchemyError as exc:
            raise PersistError(f"Failed to insert {len(values)} chapters for story {story_id}") from exc
