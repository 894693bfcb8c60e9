"""Keyed query cache with in-flight deduplication and optimistic mutations."""

import asyncio
import copy
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)

QueryKey = tuple
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class _Entry:
    data: Any
    updated_at: float


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryClient:
    """
    Cache of query results keyed by tuples such as ``("course", course_id)``.

    Concurrent ``fetch`` calls for one key share a single in-flight task.
    Keys fetched with a fetcher stay registered as active so ``invalidate``
    can refetch them.
    """

    def __init__(self, stale_time: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self._clock = clock
        self._entries: dict[QueryKey, _Entry] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}
        self._fetchers: dict[QueryKey, Fetcher] = {}

    def _is_fresh(self, entry: _Entry) -> bool:
        return self._clock() - entry.updated_at < self.stale_time

    async def fetch(self, key: QueryKey, fn: Fetcher) -> Any:
        """Return cached data when fresh, otherwise join or start a fetch."""
        self._fetchers[key] = fn
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.data

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._run(key, fn))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _run(self, key: QueryKey, fn: Fetcher) -> Any:
        try:
            data = await fn()
            self._entries[key] = _Entry(data, self._clock())
            return data
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._inflight

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_query_data(self, key: QueryKey, value_or_updater: Any) -> Any:
        """Replace cached data. A callable receives the current data and returns the new data."""
        if callable(value_or_updater):
            value = value_or_updater(self.get_query_data(key))
        else:
            value = value_or_updater
        self._entries[key] = _Entry(value, self._clock())
        return value

    def cancel(self, key: QueryKey) -> None:
        """Cancel an in-flight fetch so it cannot overwrite newer local data."""
        task = self._inflight.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    def forget(self, key: QueryKey) -> None:
        """Stop treating ``key`` as active (its consumer went away)."""
        self._fetchers.pop(key, None)

    async def invalidate(self, prefix: QueryKey) -> None:
        """Drop every entry under ``prefix`` and refetch the active ones."""
        keys = [k for k in set(self._entries) | set(self._fetchers) if _matches(k, prefix)]
        for key in keys:
            self._entries.pop(key, None)

        active = [(k, self._fetchers[k]) for k in keys if k in self._fetchers]
        if not active:
            return
        results = await asyncio.gather(*(self.fetch(k, fn) for k, fn in active), return_exceptions=True)
        for (key, _), result in zip(active, results):
            if isinstance(result, Exception):
                logger.warning(f"Refetch of {key} failed: {result}")


@dataclass
class Snapshot:
    """Cache state captured before an optimistic write."""

    key: QueryKey
    previous: Any

    def rollback(self, query_client: QueryClient) -> None:
        if self.previous is not None:
            query_client.set_query_data(self.key, self.previous)


def optimistic_update(query_client: QueryClient, key: QueryKey, apply: Callable[[Any], Any]) -> Snapshot:
    """Cancel the key's fetch, snapshot its data, then apply ``apply`` to the cached value."""
    query_client.cancel(key)
    previous = copy.deepcopy(query_client.get_query_data(key))
    if previous is not None:
        query_client.set_query_data(key, apply)
    return Snapshot(key, previous)


class Mutation:
    """
    A server write with lifecycle callbacks.

    ``on_mutate(variables)`` runs first and its return value is passed as the
    context to the other callbacks. ``on_settled`` always runs last.
    Callbacks may be plain functions or coroutines.
    """

    def __init__(
        self,
        query_client: QueryClient,
        fn: Callable[[Any], Awaitable[Any]],
        on_mutate: Optional[Callable] = None,
        on_success: Optional[Callable] = None,
        on_error: Optional[Callable] = None,
        on_settled: Optional[Callable] = None,
    ):
        self.query_client = query_client
        self.fn = fn
        self.on_mutate = on_mutate
        self.on_success = on_success
        self.on_error = on_error
        self.on_settled = on_settled
        self.pending = 0

    async def mutate(self, variables: Any) -> Any:
        self.pending += 1
        context = None
        try:
            if self.on_mutate:
                context = await _maybe_await(self.on_mutate(variables))
            result = await self.fn(variables)
        except Exception as exc:
            if self.on_error:
                await _maybe_await(self.on_error(exc, variables, context))
            if self.on_settled:
                await _maybe_await(self.on_settled(None, exc, variables, context))
            raise
        finally:
            self.pending -= 1

        if self.on_success:
            await _maybe_await(self.on_success(result, variables, context))
        if self.on_settled:
            await _maybe_await(self.on_settled(result, None, variables, context))
        return result

    @property
    def is_pending(self) -> bool:
        return self.pending > 0
