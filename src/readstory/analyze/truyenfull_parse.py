"""Parsing functions for truyenfull

Pure HTML parsing for the story page, the ``ajax.php`` chapter dropdown and
chapter pages. Nothing here performs network I/O.
"""

from urllib.parse import urlparse

from bs4 import BeautifulSoup

from readstory.utils.errors import ParseError
from readstory.utils.logger import logger


def extract_story_slug(url: str) -> str:
    """Return the last non-empty path segment of a story URL.

    Example: https://truyenfull.vision/tien-nghich/ -> tien-nghich
    """
    path = urlparse(url).path.rstrip('/')
    slug = path.rsplit('/', 1)[-1]
    if not slug:
        raise ParseError(f"Cannot derive story slug from URL: {url}")
    return slug


def parse_story_id(html: str) -> str:
    """Read the numeric story id from ``<input id="truyen-id" value="...">``."""
    soup = BeautifulSoup(html, 'html.parser')
    node = soup.select_one('#truyen-id')
    value = node.get('value') if node else None
    if not value:
        raise ParseError("Could not find truyen-id on story page")
    return str(value).strip()


def chapter_key_from_locator(raw_key: str) -> int:
    """``chuong-12`` -> 12. Unparseable suffixes map to 0."""
    try:
        return int(raw_key.rsplit('-', 1)[-1])
    except ValueError:
        return 0


def parse_chapter_options(html: str) -> list[tuple[str, str, int]]:
    """Parse ``select.chapter_jump option`` into (label, locator, key) tuples.

    Locators without a dash-delimited suffix are not chapters and are skipped.
    """
    soup = BeautifulSoup(html, 'html.parser')
    chapters = []
    for option in soup.select('select.chapter_jump option'):
        raw_key = option.get('value', '') or ''
        if len(raw_key.split('-')) < 2:
            continue
        label = option.get_text()
        chapters.append((label, raw_key, chapter_key_from_locator(raw_key)))

    logger.debug(f"[truyenfull] Parsed {len(chapters)} chapter options")
    return chapters


def parse_chapter_content(html: str) -> tuple[str, str | None]:
    """Return (content_html, title) for a chapter page.

    Looks inside ``#chapter-big-container`` first; when the page has no such
    container the whole document is searched instead.
    """
    soup = BeautifulSoup(html, 'html.parser')
    container = soup.select_one('#chapter-big-container')
    scope = container if container is not None else soup

    title_node = scope.select_one('a.chapter-title')
    title = title_node.get('title') if title_node else None

    content_node = scope.select_one('#chapter-c')
    if content_node is None:
        if container is not None:
            raise ParseError("Could not find #chapter-c inside chapter container")
        raise ParseError("Could not find chapter container or content")

    return str(content_node), title
