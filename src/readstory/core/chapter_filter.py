from __future__ import annotations

from collections.abc import Iterable

from readstory.adapters.base_site_adapter import ChapterTask


def filter_new_tasks(tasks: Iterable[ChapterTask], existing_keys: set[int]) -> list[ChapterTask]:
    """Drop tasks whose key is already stored, keeping listing order.

    A key listed twice by the site is kept only once (first occurrence), so a
    single batch never tries to insert the same ``(story_id, key)`` pair twice.
    """
    seen = set(existing_keys)
    pending: list[ChapterTask] = []
    for task in tasks:
        if task.index in seen:
            continue
        seen.add(task.index)
        pending.append(task)
    return pending
