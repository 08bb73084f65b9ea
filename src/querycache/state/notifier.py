"""Per-key listener registry and change notification."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from types import TracebackType

_logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Subscription:
    """Handle returned by :meth:`Notifier.subscribe`.

    Calling the handle (or :meth:`unsubscribe`) removes exactly the listener
    it was created for. Releasing is idempotent. The handle also works as a
    context manager::

        with client.subscribe("todos", rerender):
            ...
    """

    __slots__ = ("_notifier", "_key", "_token")

    def __init__(self, notifier: Notifier, key: str, token: int) -> None:
        self._notifier: Notifier | None = notifier
        self._key = key
        self._token = token

    @property
    def key(self) -> str:
        return self._key

    @property
    def active(self) -> bool:
        return self._notifier is not None and self._notifier.has_token(self._key, self._token)

    def unsubscribe(self) -> None:
        notifier = self._notifier
        if notifier is None:
            return
        self._notifier = None
        notifier.remove(self._key, self._token)

    def __call__(self) -> None:
        self.unsubscribe()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(key={self._key!r}, active={self.active})"


class Notifier:
    """Synchronous pub/sub keyed by query key.

    Listeners take no arguments; they read fresh state from the store
    themselves. Delivery order is subscription order. A listener raising an
    exception is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        # Insertion-ordered per key; the token gives O(1) removal by identity.
        self._listeners: dict[str, dict[int, Listener]] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, key: str, listener: Listener) -> Subscription:
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {type(listener).__name__}")
        token = next(self._tokens)
        self._listeners.setdefault(key, {})[token] = listener
        return Subscription(self, key, token)

    def remove(self, key: str, token: int) -> None:
        listeners = self._listeners.get(key)
        if listeners is None:
            return
        listeners.pop(token, None)
        if not listeners:
            self._listeners.pop(key, None)

    def has_token(self, key: str, token: int) -> bool:
        listeners = self._listeners.get(key)
        return listeners is not None and token in listeners

    def listener_count(self, key: str) -> int:
        return len(self._listeners.get(key, ()))

    def notify(self, key: str) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return
        for token, listener in list(listeners.items()):
            # Skip listeners released by an earlier listener in this delivery.
            if not self.has_token(key, token):
                continue
            try:
                listener()
            except Exception:
                _logger.warning("Listener for query %r raised", key, exc_info=True)
