"""In-memory query store.

This is the only component allowed to replace a key's ``QueryState``.
Every replacement notifies that key's listeners exactly once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from querycache.state.notifier import Notifier
from querycache.state.query import QueryState

FetchFn = Callable[[], Any]


@dataclass
class QueryEntry:
    """Registry entry for one key.

    ``in_flight`` is the one-shot completion signal of the running fetch; it
    is set exactly while the stored state is ``loading``.
    """

    state: QueryState | None = None
    fetch_fn: FetchFn | None = None
    in_flight: asyncio.Future[Any] | None = None


class QueryStore:
    """Per-key states, remembered fetch functions and in-flight signals."""

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._entries: dict[str, QueryEntry] = {}

    def _entry(self, key: str) -> QueryEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = QueryEntry()
            self._entries[key] = entry
        return entry

    def get(self, key: str) -> QueryState | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.state

    def set(self, key: str, state: QueryState) -> None:
        """Replace the state for *key* and notify its listeners."""
        self._entry(key).state = state
        self._notifier.notify(key)

    def discard(self, key: str) -> None:
        """Forget the state for *key*, keeping its remembered fetch function.

        Any running fetch is detached: it still settles its own waiters but
        can no longer write state.
        """
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.state = None
        entry.in_flight = None

    def get_fetch_fn(self, key: str) -> FetchFn | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.fetch_fn

    def remember_fetch_fn(self, key: str, fetch_fn: FetchFn) -> None:
        self._entry(key).fetch_fn = fetch_fn

    def get_in_flight(self, key: str) -> asyncio.Future[Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.in_flight

    def set_in_flight(self, key: str, future: asyncio.Future[Any] | None) -> None:
        self._entry(key).in_flight = future
