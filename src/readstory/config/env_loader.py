"""Typed access to environment settings, with ``.env`` loading on import."""
from __future__ import annotations

import os
import sys
from collections.abc import Callable
from typing import TypeVar

from dotenv import find_dotenv, load_dotenv

__all__ = [
    "EnvironmentConfigurationError",
    "get_bool",
    "get_float",
    "get_int",
    "get_str",
]

# Applied under pytest after `.env.example`; never overrides an exported value.
_TEST_ENV = {
    "CRAWL_BATCH_SIZE": "400",
    "CRAWL_BATCH_DELAY_SECONDS": "0",
    "TIMEOUT_REQUEST": "5",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "ENABLE_FILE_LOGS": "false",
}

_BOOL_WORDS = {
    **dict.fromkeys(("1", "true", "t", "yes", "y", "on"), True),
    **dict.fromkeys(("0", "false", "f", "no", "n", "off"), False),
}

_T = TypeVar("_T")


class EnvironmentConfigurationError(RuntimeError):
    """A setting is missing, empty or cannot be converted to its type."""


def _running_under_pytest() -> bool:
    if "pytest" in sys.modules:
        return True
    return any(name in os.environ for name in ("PYTEST_CURRENT_TEST", "PYTEST_ADDOPTS", "PYTEST_WORKER"))


def _load_env_files() -> None:
    # A developer's `.env` (real database, long delays) must not leak into tests.
    candidates = (".env.example",) if _running_under_pytest() else (".env", ".env.example")
    for name in candidates:
        path = find_dotenv(name, usecwd=True)
        if path:
            load_dotenv(path, override=False)
            break

    if _running_under_pytest():
        for name, value in _TEST_ENV.items():
            os.environ.setdefault(name, value)


_load_env_files()


def _lookup(name: str, *, required: bool, allow_empty: bool = False) -> str | None:
    value = os.environ.get(name)
    if value is not None and not allow_empty:
        value = value.strip() or None

    if value is None and required:
        if name in os.environ:
            raise EnvironmentConfigurationError(f"Environment variable {name} must not be empty")
        raise EnvironmentConfigurationError(f"Missing required environment variable: {name}")
    return value


def _typed(name: str, required: bool, convert: Callable[[str], _T]) -> _T | None:
    raw = _lookup(name, required=required)
    if raw is None:
        return None
    try:
        return convert(raw)
    except (TypeError, ValueError) as exc:
        raise EnvironmentConfigurationError(
            f"Environment variable {name} has invalid value: {raw!r}"
        ) from exc


def _to_bool(raw: str) -> bool:
    try:
        return _BOOL_WORDS[raw.lower()]
    except KeyError:
        raise ValueError(raw) from None


def get_str(name: str, *, required: bool = False, allow_empty: bool = False) -> str | None:
    """String value, or ``None`` when unset or blank."""
    return _lookup(name, required=required, allow_empty=allow_empty)


def get_int(name: str, *, required: bool = False) -> int | None:
    return _typed(name, required, int)


def get_float(name: str, *, required: bool = False) -> float | None:
    return _typed(name, required, float)


def get_bool(name: str, *, required: bool = False) -> bool | None:
    """Accepts 1/0, true/false, yes/no, on/off (any case)."""
    return _typed(name, required, _to_bool)
