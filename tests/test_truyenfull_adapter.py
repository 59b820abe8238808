from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import mock_http_client
from readstory.adapters.base_site_adapter import ChapterTask
from readstory.adapters.truyenfull_adapter import TruyenFullAdapter
from readstory.analyze.truyenfull_parse import chapter_key_from_locator, parse_chapter_content
from readstory.database.models import SourceSite, Story
from readstory.utils.errors import FetchError, ParseError

BASE = "https://truyenfull.vision"

STORY_PAGE = """
<html><body>
  <h3 class="title">Tiên Nghịch</h3>
  <input id="truyen-id" type="hidden" value="4521">
</body></html>
"""

CHAPTER_OPTIONS = """
<select class="btn btn-success btn-block chapter_jump" name="chapter_jump">
  <option value="chuong-1">Chương 1</option>
  <option value="chuong-2">Chương 2</option>
  <option value="quyen-1-chuong-3">Chương 3</option>
  <option value="chuong-abc">Chương đặc biệt</option>
  <option value="gioi-thieu">Giới thiệu</option>
  <option value="muc-luc-ngoai">Phụ lục</option>
  <option value="noidash">Không hợp lệ</option>
</select>
"""

CHAPTER_WITH_CONTAINER = """
<div id="chapter-big-container">
  <a class="chapter-title" href="/tien-nghich/chuong-1/" title="Chương 1: Ly hương">Chương 1</a>
  <div id="chapter-c">Vương Lâm rời thôn.</div>
</div>
"""

CHAPTER_WITHOUT_CONTAINER = """
<div class="wrapper">
  <a class="chapter-title" href="/tien-nghich/chuong-2/" title="Chương 2: Tiên nhân">Chương 2</a>
  <div id="chapter-c">Nội dung chương hai.</div>
</div>
"""


def _story() -> Story:
    return Story(id=1, slug="tien-nghich", title="tien-nghich", source=SourceSite.TRUYEN_FULL)


def test_supports_only_its_base_url() -> None:
    adapter = TruyenFullAdapter(base_url=BASE)
    assert adapter.supports(f"{BASE}/tien-nghich/")
    assert not adapter.supports("https://metruyencv.com/truyen/tien-nghich")


def test_parse_story_uses_last_path_segment() -> None:
    adapter = TruyenFullAdapter(base_url=BASE)
    story = asyncio.run(adapter.parse_story(f"{BASE}/tien-nghich/"))
    assert story.slug == "tien-nghich"
    assert story.title == "tien-nghich"
    assert story.source is SourceSite.TRUYEN_FULL
    assert story.id is None


def test_parse_chapter_tasks_reads_ajax_dropdown() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.path == "/tien-nghich/":
            return httpx.Response(200, text=STORY_PAGE)
        if request.url.path == "/ajax.php":
            assert request.url.params["type"] == "chapter_option"
            assert request.url.params["data"] == "4521"
            return httpx.Response(200, text=CHAPTER_OPTIONS)
        return httpx.Response(404)

    adapter = TruyenFullAdapter(base_url=BASE, http_client=mock_http_client(handler))
    tasks = asyncio.run(adapter.parse_chapter_tasks(f"{BASE}/tien-nghich/", _story()))

    assert [(t.raw_key, t.index) for t in tasks] == [
        ("chuong-1", 1),
        ("chuong-2", 2),
        ("quyen-1-chuong-3", 3),
        ("chuong-abc", 0),
        ("gioi-thieu", 0),
        ("muc-luc-ngoai", 0),
    ]
    assert tasks[0].name == "Chương 1"
    assert len(requested) == 2


def test_parse_chapter_tasks_without_story_id_is_parse_error() -> None:
    adapter = TruyenFullAdapter(
        base_url=BASE,
        http_client=mock_http_client(lambda request: httpx.Response(200, text="<html></html>")),
    )
    with pytest.raises(ParseError):
        asyncio.run(adapter.parse_chapter_tasks(f"{BASE}/tien-nghich/", _story()))


def test_parse_chapter_prefers_container() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/tien-nghich/chuong-1"
        return httpx.Response(200, text=CHAPTER_WITH_CONTAINER)

    adapter = TruyenFullAdapter(base_url=BASE, http_client=mock_http_client(handler))
    task = ChapterTask(name="Chương 1", index=1, raw_key="chuong-1")
    payload = asyncio.run(adapter.parse_chapter(_story(), task))

    assert payload.title == "Chương 1: Ly hương"
    assert payload.content.startswith('<div id="chapter-c">')
    assert "Vương Lâm rời thôn." in payload.content


def test_parse_chapter_falls_back_to_whole_document() -> None:
    content, title = parse_chapter_content(CHAPTER_WITHOUT_CONTAINER)
    assert title == "Chương 2: Tiên nhân"
    assert "Nội dung chương hai." in content


def test_parse_chapter_without_content_is_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_chapter_content("<div id='chapter-big-container'><p>trống</p></div>")
    with pytest.raises(ParseError):
        parse_chapter_content("<html><body>404</body></html>")


def test_parse_chapter_without_title_returns_none() -> None:
    content, title = parse_chapter_content("<div id='chapter-c'>chỉ có nội dung</div>")
    assert title is None
    assert "chỉ có nội dung" in content


def test_http_error_becomes_fetch_error() -> None:
    adapter = TruyenFullAdapter(
        base_url=BASE,
        http_client=mock_http_client(lambda request: httpx.Response(503)),
    )
    task = ChapterTask(name="Chương 1", index=1, raw_key="chuong-1")
    with pytest.raises(FetchError) as excinfo:
        asyncio.run(adapter.parse_chapter(_story(), task))
    assert excinfo.value.status_code == 503


def test_chapter_key_from_locator() -> None:
    assert chapter_key_from_locator("chuong-12") == 12
    assert chapter_key_from_locator("chuong-12a") == 0
