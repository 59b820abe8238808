from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from readstory.config.config import DEFAULT_DATABASE_URL
from readstory.database.connection import DatabaseManager
from readstory.database.models import SourceSite
from readstory.database.story_store import SQLAlchemyStoryStore
from readstory.utils.errors import PersistError


def _run_with_store(tmp_path: Path, scenario):
    async def _run():
        manager = DatabaseManager()
        manager.initialize(f"sqlite+aiosqlite:///{(tmp_path / 'store.db').as_posix()}")
        await manager.create_tables()
        try:
            return await scenario(SQLAlchemyStoryStore(manager))
        finally:
            await manager.close()

    return asyncio.run(_run())


def test_insert_and_find_story(tmp_path: Path) -> None:
    async def scenario(store: SQLAlchemyStoryStore):
        created = await store.insert_story("van-co-than-de", "Vạn Cổ Thần Đế", "MTC")
        found = await store.find_story_by_slug("van-co-than-de")
        missing = await store.find_story_by_slug("khong-ton-tai")
        return created, found, missing

    created, found, missing = _run_with_store(tmp_path, scenario)

    assert created.id is not None
    assert created.created_at is not None
    assert found.id == created.id
    assert found.title == "Vạn Cổ Thần Đế"
    assert found.source is SourceSite.MTC
    assert missing is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        (SourceSite.MTC, SourceSite.MTC),
        ("mtc", SourceSite.MTC),
        (" TRUYEN_FULL ", SourceSite.TRUYEN_FULL),
        ("webnovel", SourceSite.TRUYEN_FULL),
        (None, SourceSite.TRUYEN_FULL),
    ],
)
def test_source_site_normalisation(raw, expected) -> None:
    assert SourceSite.from_value(raw) is expected


def test_unknown_source_is_stored_as_default(tmp_path: Path) -> None:
    async def scenario(store: SQLAlchemyStoryStore):
        await store.insert_story("mystery", None, "unknown-site")
        return await store.find_story_by_slug("mystery")

    story = _run_with_store(tmp_path, scenario)
    assert story.source is SourceSite.TRUYEN_FULL
    assert story.title is None


def test_chapter_batches_and_existing_keys(tmp_path: Path) -> None:
    async def scenario(store: SQLAlchemyStoryStore):
        story = await store.insert_story("tien-nghich", "Tiên Nghịch", SourceSite.TRUYEN_FULL)
        other = await store.insert_story("other", "Other", SourceSite.TRUYEN_FULL)
        before = await store.find_existing_chapter_keys(story.id)
        await store.insert_chapter_batch(
            story.id,
            [
                {"title": "Chương 1", "key": 1, "content": "một"},
                {"title": "Chương 2", "key": 2, "content": "hai"},
            ],
        )
        await store.insert_chapter_batch(story.id, [])
        await store.insert_chapter_batch(other.id, [{"title": "Chương 1", "key": 1, "content": "x"}])
        return before, await store.find_existing_chapter_keys(story.id), await store.find_existing_chapter_keys(other.id)

    before, after, other_keys = _run_with_store(tmp_path, scenario)

    assert before == set()
    assert after == {1, 2}
    assert other_keys == {1}


def test_duplicate_chapter_key_rejects_whole_batch(tmp_path: Path) -> None:
    async def scenario(store: SQLAlchemyStoryStore):
        story = await store.insert_story("tien-nghich", "Tiên Nghịch", SourceSite.TRUYEN_FULL)
        await store.insert_chapter_batch(story.id, [{"title": "Chương 1", "key": 1, "content": "một"}])
        with pytest.raises(PersistError):
            await store.insert_chapter_batch(
                story.id,
                [
                    {"title": "Chương 2", "key": 2, "content": "hai"},
                    {"title": "Chương 1", "key": 1, "content": "lặp"},
                ],
            )
        return await store.find_existing_chapter_keys(story.id)

    assert _run_with_store(tmp_path, scenario) == {1}


def test_duplicate_slug_is_persist_error(tmp_path: Path) -> None:
    async def scenario(store: SQLAlchemyStoryStore):
        await store.insert_story("tien-nghich", "Tiên Nghịch", SourceSite.TRUYEN_FULL)
        with pytest.raises(PersistError):
            await store.insert_story("tien-nghich", "Again", SourceSite.TRUYEN_FULL)

    _run_with_store(tmp_path, scenario)


def test_default_sqlite_url_creates_missing_folder(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    async def _run():
        manager = DatabaseManager()
        manager.initialize(DEFAULT_DATABASE_URL)
        try:
            await manager.create_tables()
            store = SQLAlchemyStoryStore(manager)
            await store.insert_story("tien-nghich", "Tiên Nghịch", SourceSite.TRUYEN_FULL)
            return await store.find_story_by_slug("tien-nghich")
        finally:
            await manager.close()

    story = asyncio.run(_run())
    assert story is not None
    assert (tmp_path / "state" / "readstory.db").is_file()


def test_nested_sqlite_path_is_created(tmp_path: Path) -> None:
    db_path = tmp_path / "a" / "b" / "crawl.db"

    async def _run():
        manager = DatabaseManager()
        manager.initialize(f"sqlite+aiosqlite:///{db_path.as_posix()}")
        try:
            await manager.create_tables()
        finally:
            await manager.close()

    asyncio.run(_run())
    assert db_path.is_file()
