"""Asyncio synchronization primitives that are safe to create at import time."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

__all__ = ["LoopBoundRWLock"]


class _RWState:
    __slots__ = ("condition", "readers", "writer")

    def __init__(self) -> None:
        self.condition = asyncio.Condition()
        self.readers = 0
        self.writer = False


class LoopBoundRWLock:
    """A shared/exclusive lock that lazily binds to the current running event loop.

    Any number of coroutines may hold the lock in shared mode at once; exclusive
    mode waits until there are no readers and no other writer. Like the other
    loop-bound primitives, the underlying :class:`asyncio.Condition` is created
    on first use inside a running loop and a separate instance is kept per loop,
    so the lock can be built at import time or in ``__init__`` of objects that
    outlive a single ``asyncio.run`` call.
    """

    def __init__(self) -> None:
        self._states: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, _RWState] = (
            weakref.WeakKeyDictionary()
        )

    def _get_state(self) -> _RWState:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise RuntimeError("LoopBoundRWLock requires an active asyncio event loop") from exc

        state = self._states.get(loop)
        if state is None:
            state = _RWState()
            self._states[loop] = state
        return state

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        state = self._get_state()
        async with state.condition:
            await state.condition.wait_for(lambda: not state.writer)
            state.readers += 1
        try:
            yield
        finally:
            async with state.condition:
                state.readers -= 1
                if state.readers == 0:
                    state.condition.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        state = self._get_state()
        async with state.condition:
            await state.condition.wait_for(lambda: not state.writer and state.readers == 0)
            state.writer = True
        try:
            yield
        finally:
            async with state.condition:
                state.writer = False
                state.condition.notify_all()
