"""Internal fetch coordination for QueryClient.

Owns:
- the serve-from-cache / join-in-flight / start-fetch decision
- the loading -> success/error transitions of every fetch
- the one-shot completion signal joining callers await
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from querycache._redact import redact_for_log
from querycache.config import QueryCacheConfig
from querycache.exceptions import QueryConfigError, QueryFetchError
from querycache.state.policy import is_fresh
from querycache.state.query import QueryState, QueryStatus
from querycache.state.store import FetchFn, QueryStore


def _consume_exception(future: asyncio.Future[Any]) -> None:
    # Failures are recorded in the store; a fetch nobody awaits must not
    # trigger "exception was never retrieved".
    if not future.cancelled():
        future.exception()


class FetchCoordinator:
    def __init__(
        self,
        *,
        config: QueryCacheConfig,
        store: QueryStore,
        clock: Callable[[], float],
        logger: logging.Logger,
    ) -> None:
        self._config = config
        self._store = store
        self._clock = clock
        self._logger = logger
        self._tasks: set[asyncio.Task[None]] = set()

    def resolve_stale_time(self, stale_time: float | None) -> float:
        if stale_time is None:
            return self._config.default_stale_time
        # NaN compares false both ways.
        if not stale_time >= 0:
            raise QueryConfigError(f"stale_time must be >= 0, got {stale_time}")
        return float(stale_time)

    def begin(self, key: str, fetch_fn: FetchFn, stale_time: float) -> asyncio.Future[Any]:
        """Run the synchronous part of ``fetch_query``.

        Everything up to and including the ``loading`` transition happens
        here without yielding to the event loop, so concurrent callers for
        the same key always observe either a fresh hit or the in-flight
        signal. The returned future settles with the query's outcome.
        """
        self._store.remember_fetch_fn(key, fetch_fn)
        loop = asyncio.get_running_loop()
        state = self._store.get(key)

        if is_fresh(state, now=self._clock(), stale_time=stale_time):
            assert state is not None  # noqa: S101
            self._logger.debug("Query %r served from cache", key)
            hit: asyncio.Future[Any] = loop.create_future()
            hit.set_result(state.data)
            return hit

        in_flight = self._store.get_in_flight(key)
        if state is not None and state.status is QueryStatus.LOADING and in_flight is not None:
            self._logger.debug("Query %r joining in-flight fetch", key)
            return in_flight

        return self._start(loop, key, fetch_fn, state, stale_time)

    def _start(
        self,
        loop: asyncio.AbstractEventLoop,
        key: str,
        fetch_fn: FetchFn,
        previous: QueryState | None,
        stale_time: float,
    ) -> asyncio.Future[Any]:
        base = previous if previous is not None else QueryState()
        loading = base.loading(stale_time=stale_time)

        future: asyncio.Future[Any] = loop.create_future()
        future.add_done_callback(_consume_exception)
        self._store.set_in_flight(key, future)

        self._logger.debug("Query %r fetch started (stale_time=%ss)", key, stale_time)
        self._store.set(key, loading)

        task = loop.create_task(self._run(key, fetch_fn, future), name=f"querycache-fetch:{key}")
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_task_done(key, future, done))
        return future

    async def _run(self, key: str, fetch_fn: FetchFn, future: asyncio.Future[Any]) -> None:
        try:
            result = fetch_fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            self._fail(key, future, QueryFetchError.from_exception(key, exc))
            return
        self._succeed(key, future, result)

    def _owns(self, key: str, future: asyncio.Future[Any]) -> bool:
        return self._store.get_in_flight(key) is future

    def _succeed(self, key: str, future: asyncio.Future[Any], result: Any) -> None:
        if self._owns(key, future):
            self._store.set_in_flight(key, None)
            state = self._store.get(key) or QueryState()
            self._store.set(key, state.succeeded(result, fetched_at=self._clock()))
        else:
            self._logger.debug("Query %r was invalidated during fetch; result not stored", key)
        if self._config.log_results:
            self._logger.debug(
                "Query %r fetch succeeded: %r",
                key,
                redact_for_log(result, max_string=self._config.log_max_string),
            )
        else:
            self._logger.debug("Query %r fetch succeeded", key)
        if not future.done():
            future.set_result(result)

    def _fail(self, key: str, future: asyncio.Future[Any], error: QueryFetchError) -> None:
        if self._owns(key, future):
            self._store.set_in_flight(key, None)
            state = self._store.get(key) or QueryState()
            self._store.set(key, state.failed(error))
        self._logger.debug("Query %r fetch failed: %s", key, error)
        if not future.done():
            future.set_exception(error)

    def _on_task_done(self, key: str, future: asyncio.Future[Any], task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        # A cancelled fetch task still has to leave ``loading`` and release
        # its waiters.
        if not future.done():
            self._fail(key, future, QueryFetchError("fetch cancelled", key=key))
