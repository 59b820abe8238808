from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from readstory.config.env_loader import (
    EnvironmentConfigurationError,
    get_bool,
    get_float,
    get_int,
    get_str,
)

BASE_URL_ENV_MAP: dict[str, str] = {
    "truyenfull": "BASE_TRUYENFULL",
    "metruyencv": "BASE_METRUYENCV",
}

BASE_URL_DEFAULTS: dict[str, str] = {
    "truyenfull": "https://truyenfull.vision",
    "metruyencv": "https://metruyencv.com",
}

BACKEND_METRUYENCV_DEFAULT = "https://backend.metruyencv.com"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Last key known to decrypt metruyencv chapters; used until the bundle yields a fresh one.
DEFAULT_MTC_KEY = "cNdR17YqKmWx9BgT"

DEFAULT_BATCH_SIZE = 400
DEFAULT_BATCH_DELAY_SECONDS = 300.0
DEFAULT_TIMEOUT_REQUEST = 30
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./state/readstory.db"


def _sanitize_base_url(raw_value: str | None, env_name: str) -> str:
    """Normalize BASE_URL style inputs to avoid malformed URLs."""

    if raw_value is None:
        raise EnvironmentConfigurationError(f"Missing environment variable {env_name}")

    candidate = raw_value.strip()
    candidate = candidate.rstrip("!?#'\"")
    candidate = candidate.rstrip("/ \t\n\r")
    if not candidate:
        raise EnvironmentConfigurationError(f"Environment variable {env_name} must not be empty")

    parsed = urlparse(candidate)
    if not parsed.scheme:
        candidate = f"https://{candidate}"
    return candidate


def _load_base_urls() -> dict[str, str]:
    base_urls: dict[str, str] = {}
    for site_key, env_name in BASE_URL_ENV_MAP.items():
        raw_value = get_str(env_name) or BASE_URL_DEFAULTS[site_key]
        base_urls[site_key] = _sanitize_base_url(raw_value, env_name)
    return base_urls


def _load_settings() -> dict[str, Any]:
    batch_size = get_int("CRAWL_BATCH_SIZE")
    if batch_size is None:
        batch_size = DEFAULT_BATCH_SIZE
    if batch_size < 1:
        raise EnvironmentConfigurationError(
            f"CRAWL_BATCH_SIZE must be a positive integer, got {batch_size}"
        )

    batch_delay = get_float("CRAWL_BATCH_DELAY_SECONDS")
    if batch_delay is None:
        batch_delay = DEFAULT_BATCH_DELAY_SECONDS
    if batch_delay < 0:
        raise EnvironmentConfigurationError(
            f"CRAWL_BATCH_DELAY_SECONDS must not be negative, got {batch_delay}"
        )

    timeout_request = get_int("TIMEOUT_REQUEST") or DEFAULT_TIMEOUT_REQUEST

    return {
        "BASE_URLS": _load_base_urls(),
        "BACKEND_METRUYENCV": _sanitize_base_url(
            get_str("BACKEND_METRUYENCV") or BACKEND_METRUYENCV_DEFAULT, "BACKEND_METRUYENCV"
        ),
        "BATCH_SIZE": batch_size,
        "BATCH_DELAY_SECONDS": batch_delay,
        "USER_AGENT": get_str("CRAWL_USER_AGENT") or DEFAULT_USER_AGENT,
        "MTC_DEFAULT_KEY": get_str("MTC_DEFAULT_KEY") or DEFAULT_MTC_KEY,
        "TIMEOUT_REQUEST": max(timeout_request, 1),
        "DATABASE_URL": get_str("DATABASE_URL") or DEFAULT_DATABASE_URL,
        "DB_POOL_SIZE": get_int("DB_POOL_SIZE") or 10,
        "DB_MAX_OVERFLOW": get_int("DB_MAX_OVERFLOW") or 20,
        "DB_ECHO": bool(get_bool("DB_ECHO")),
    }


_SETTINGS = _load_settings()

BASE_URLS: dict[str, str] = _SETTINGS["BASE_URLS"]
BACKEND_METRUYENCV: str = _SETTINGS["BACKEND_METRUYENCV"]
BATCH_SIZE: int = _SETTINGS["BATCH_SIZE"]
BATCH_DELAY_SECONDS: float = _SETTINGS["BATCH_DELAY_SECONDS"]
USER_AGENT: str = _SETTINGS["USER_AGENT"]
MTC_DEFAULT_KEY: str = _SETTINGS["MTC_DEFAULT_KEY"]
TIMEOUT_REQUEST: int = _SETTINGS["TIMEOUT_REQUEST"]
DATABASE_URL: str = _SETTINGS["DATABASE_URL"]
DB_POOL_SIZE: int = _SETTINGS["DB_POOL_SIZE"]
DB_MAX_OVERFLOW: int = _SETTINGS["DB_MAX_OVERFLOW"]
DB_ECHO: bool = _SETTINGS["DB_ECHO"]


def get_default_headers() -> dict[str, str]:
    """Headers sent with every outbound request; some sites reject bare clients."""

    return {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "vi-VN,vi;q=0.9,en-US;q=0.8,en;q=0.7",
    }
