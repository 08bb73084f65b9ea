"""High-level query cache client."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from querycache._client.fetch import FetchCoordinator
from querycache.config import QueryCacheConfig
from querycache.state.notifier import Listener, Notifier, Subscription
from querycache.state.query import QueryState
from querycache.state.store import QueryStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryClient:
    """In-memory data-fetching cache.

    One instance is meant to be shared by every caller of a given cache;
    independent instances never share state.

    Usage::

        client = QueryClient()
        todos = await client.fetch_query("todos", load_todos, stale_time=30)
        with client.subscribe("todos", rerender):
            client.invalidate_query("todos")
    """

    def __init__(
        self,
        config: QueryCacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config if config is not None else QueryCacheConfig()
        self._clock = clock
        self._notifier = Notifier()
        self._store = QueryStore(self._notifier)
        self._fetch = FetchCoordinator(
            config=self._config,
            store=self._store,
            clock=clock,
            logger=_logger,
        )

    @property
    def config(self) -> QueryCacheConfig:
        return self._config

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def fetch_query(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]] | Callable[[], T],
        *,
        stale_time: float | None = None,
    ) -> T:
        """Return the value for *key*, fetching it at most once per freshness window.

        A fresh ``success`` state is returned without side effects. While a
        fetch for *key* is running, the call joins it instead of invoking
        *fetch_fn* again. Otherwise *fetch_fn* is run and its result stored.

        Parameters
        ----------
        key : str
            Query key shared by every caller of the same data.
        fetch_fn : callable
            Zero-argument callable returning the value or an awaitable of
            it. Remembered for :meth:`invalidate_query` on every call.
        stale_time : float or None
            Seconds a successful result stays fresh. ``None`` uses
            ``config.default_stale_time``.

        Raises
        ------
        QueryFetchError
            The fetch (this call's or the one it joined) failed.
        QueryConfigError
            *stale_time* is negative.
        """
        resolved = self._fetch.resolve_stale_time(stale_time)
        future = self._fetch.begin(key, fetch_fn, resolved)
        # Cancelling this caller must not cancel the shared fetch.
        result: T = await asyncio.shield(future)
        return result

    def invalidate_query(self, key: str) -> None:
        """Discard the state for *key* and refetch with its last fetch function.

        No-op for keys that were never fetched. Must be called while the
        event loop is running; the refetch runs in the background and its
        outcome is only observable through :meth:`get_state` and listeners.
        """
        fetch_fn = self._store.get_fetch_fn(key)
        if fetch_fn is None:
            return
        # Fail before discarding so a call outside the loop keeps the state.
        asyncio.get_running_loop()
        state = self._store.get(key)
        stale_time = state.stale_time if state is not None else self._config.default_stale_time
        _logger.debug("Query %r invalidated", key)
        self._store.discard(key)
        self._fetch.begin(key, fetch_fn, stale_time)

    def get_state(self, key: str) -> QueryState | None:
        """Return the current immutable state for *key*, or ``None``."""
        return self._store.get(key)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, key: str, listener: Listener) -> Subscription:
        """Call *listener* (no arguments) after every state change of *key*.

        Returns a :class:`Subscription`; call it (or its ``unsubscribe``
        method) to stop receiving notifications.
        """
        return self._notifier.subscribe(key, listener)

