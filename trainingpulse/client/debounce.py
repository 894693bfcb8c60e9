"""Per-key debouncing on the running event loop."""

import asyncio
from typing import Any, Awaitable, Callable, Hashable


class KeyedDebouncer:
    """
    Run only the newest call per key, ``delay`` seconds after it was scheduled.

    A call can be replaced or cancelled only while it is still waiting out its
    delay. Once it has started it runs to completion, and a newer call for the
    same key waits its own delay independently.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._pending: dict[Hashable, asyncio.Task] = {}
        self._running: dict[asyncio.Task, None] = {}

    @classmethod
    def from_settings(cls, settings) -> "KeyedDebouncer":
        return cls(settings.STATUS_AUTOSAVE_DEBOUNCE_MS / 1000)

    def schedule(self, key: Hashable, coro_fn: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, coro_fn))
        self._pending[key] = task
        return task

    async def _run(self, key: Hashable, coro_fn: Callable[[], Awaitable[Any]]) -> Any:
        task = asyncio.current_task()
        try:
            await asyncio.sleep(self.delay)
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]
        self._running[task] = None
        try:
            return await coro_fn()
        finally:
            self._running.pop(task, None)

    def is_pending(self, key: Hashable) -> bool:
        """True while a call for ``key`` is waiting out its delay."""
        return key in self._pending

    def cancel(self, key: Hashable) -> None:
        task = self._pending.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    def cancel_all(self) -> None:
        for key in list(self._pending):
            self.cancel(key)

    async def flush(self) -> list[Any]:
        """Wait for every started or waiting call. Results (or exceptions) come back in start order."""
        tasks = list(self._running) + list(self._pending.values())
        if not tasks:
            return []
        return await asyncio.gather(*tasks, return_exceptions=True)
