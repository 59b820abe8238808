"""Crawl exception types and helpers for normalising error handling."""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx
from sqlalchemy.exc import SQLAlchemyError


class CrawlerError(Exception):
    """Base class for every failure raised by the crawl core."""


class NoStrategyFound(CrawlerError):
    """No registered site adapter accepts the requested URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No strategy found for URL: {url}")
        self.url = url


class FetchError(CrawlerError):
    """Transport or HTTP-level failure while fetching a page or API response."""

    def __init__(self, url: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class ParseError(CrawlerError):
    """A page was fetched but the expected structure was not there."""


class PersistError(CrawlerError):
    """The story store rejected a read or write."""


class CrawlError(str, Enum):
    """Categorised crawl error types used to tag log lines."""

    TIMEOUT = "timeout"
    ANTI_BOT = "anti_bot"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    CONNECTION = "connection"
    TEMPORARY = "temporary"
    PARSE = "parse"
    WRITE_FAIL = "write_fail"
    UNKNOWN = "unknown"


def classify_crawl_exception(exc: BaseException) -> CrawlError:
    """Best-effort mapping from arbitrary exceptions to :class:`CrawlError`."""

    if isinstance(exc, ParseError):
        return CrawlError.PARSE
    if isinstance(exc, (PersistError, SQLAlchemyError)):
        return CrawlError.WRITE_FAIL

    status = _extract_status_code(exc)
    if status is not None:
        if status == 404:
            return CrawlError.NOT_FOUND
        if status in (401, 403):
            return CrawlError.ANTI_BOT
        if status == 429:
            return CrawlError.RATE_LIMIT
        if 500 <= status < 600:
            return CrawlError.TEMPORARY

    cause = exc.__cause__ if isinstance(exc, FetchError) else exc
    if isinstance(cause, (asyncio.TimeoutError, httpx.TimeoutException)):
        return CrawlError.TIMEOUT
    if isinstance(cause, httpx.RequestError):
        return CrawlError.CONNECTION

    return CrawlError.UNKNOWN


def _extract_status_code(exc: BaseException) -> int | None:
    if isinstance(exc, FetchError):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


__all__ = [
    "CrawlError",
    "CrawlerError",
    "FetchError",
    "NoStrategyFound",
    "ParseError",
    "PersistError",
    "classify_crawl_exception",
]
