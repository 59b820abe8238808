from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def split_windows(items: Sequence[T], window_size: int) -> list[list[T]]:
    """Split ``items`` into consecutive windows of ``window_size`` (last may be shorter)."""
    if window_size < 1:
        raise ValueError("window_size must be a positive integer")
    return [list(items[start:start + window_size]) for start in range(0, len(items), window_size)]
