"""Parsing functions for metruyencv

Story and chapter pages embed their data in inline ``<script>`` blocks
(``window.bookData`` / ``window.chapterData``); the chapter list comes from a
JSON API and chapter bodies are AES encrypted.
"""

import re
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from readstory.utils.errors import ParseError

_BOOK_ID_RE = re.compile(r'"id":\s*(\d+)')
_CONTENT_RE = re.compile(r'\bcontent\s*:\s*"([^"]+)"')
# Sixteen comma separated char codes, e.g. [84,103,66,57,...]
_KEY_CODES_RE = re.compile(r'\[(\d+(?:,\s*\d+){15})\]')
_BUNDLE_SELECTOR = 'script[src*="/build/assets/app-"]'


def _find_script(soup: BeautifulSoup, marker: str) -> str | None:
    for script in soup.find_all('script'):
        text = script.string or script.get_text()
        if text and marker in text:
            return text
    return None


def extract_story_slug(url: str) -> str:
    slug = urlparse(url).path.rstrip('/').rsplit('/', 1)[-1]
    if not slug:
        raise ParseError(f"Cannot derive story slug from URL: {url}")
    return slug


def parse_story_title(html: str) -> str | None:
    soup = BeautifulSoup(html, 'html.parser')
    heading = soup.find('h1')
    if heading is None:
        return None
    title = heading.get_text(strip=True)
    return title or None


def parse_book_id(html: str) -> str:
    """Pull the numeric book id out of the ``window.bookData`` script."""
    soup = BeautifulSoup(html, 'html.parser')
    script = _find_script(soup, 'window.bookData')
    if script is None:
        raise ParseError("Could not find window.bookData script")
    match = _BOOK_ID_RE.search(script)
    if not match:
        raise ParseError("Could not find book_id in window.bookData")
    return match.group(1)


def parse_chapter_api(payload: Any) -> list[tuple[str, str, int]]:
    """Turn the ``/api/chapters`` JSON body into (name, raw_index, key) tuples."""
    if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
        raise ParseError("Chapter API response has no 'data' list")

    chapters = []
    for item in payload['data']:
        if not isinstance(item, dict):
            continue
        raw_index = str(item.get('index', '')).strip()
        try:
            key = int(raw_index)
        except ValueError:
            key = 0
        chapters.append((str(item.get('name') or ''), raw_index, key))
    return chapters


def parse_encrypted_content(html: str) -> str | None:
    """Return the base64 chapter body from ``window.chapterData`` with ``\\/`` unescaped."""
    soup = BeautifulSoup(html, 'html.parser')
    script = _find_script(soup, 'window.chapterData')
    if script is None:
        return None
    match = _CONTENT_RE.search(script)
    if not match:
        return None
    return match.group(1).replace('\\/', '/')


def find_bundle_url(html: str, base_url: str) -> str | None:
    """Locate the client bundle (``/build/assets/app-*.js``) referenced by a page."""
    soup = BeautifulSoup(html, 'html.parser')
    tag = soup.select_one(_BUNDLE_SELECTOR)
    if tag is None:
        return None
    src = tag.get('src')
    if not src:
        return None
    if src.startswith('/'):
        return urljoin(base_url + '/', src)
    return src


def extract_key_codes(js_source: str) -> list[int] | None:
    match = _KEY_CODES_RE.search(js_source)
    if not match:
        return None
    return [int(code) for code in re.split(r',\s*', match.group(1))]
