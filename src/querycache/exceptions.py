"""Custom exception hierarchy for querycache."""

from __future__ import annotations


class QueryCacheError(Exception):
    """Base exception for all querycache errors."""


class QueryConfigError(QueryCacheError):
    """Invalid or missing configuration."""


class QueryFetchError(QueryCacheError):
    """A fetch function failed.

    This is the only failure kind the cache itself stores and propagates.
    Whatever the fetch function raised is normalized into this exception;
    the original is kept on :attr:`original` (and as ``__cause__`` when
    re-raised).
    """

    def __init__(
        self,
        message: str,
        *,
        key: str = "",
        original: BaseException | None = None,
    ) -> None:
        self.key = key
        self.original = original
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    @classmethod
    def from_exception(cls, key: str, exc: BaseException) -> QueryFetchError:
        """Normalize *exc* into a :class:`QueryFetchError`.

        An existing :class:`QueryFetchError` is returned unchanged so that
        nested caches do not wrap the same failure twice.
        """
        if isinstance(exc, QueryFetchError):
            return exc
        message = str(exc) or type(exc).__name__
        error = cls(message, key=key, original=exc)
        error.__cause__ = exc
        return error


class QueryTransportError(QueryCacheError):
    """HTTP-level failure inside :class:`~querycache.JsonFetcher`."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
