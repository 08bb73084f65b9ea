"""querycache - In-memory async data-fetching cache with request deduplication."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("querycache")
except PackageNotFoundError:
    __version__ = "0+local"
from querycache._transport import JsonFetcher
from querycache.client import QueryClient
from querycache.config import QueryCacheConfig
from querycache.exceptions import (
    QueryCacheError,
    QueryConfigError,
    QueryFetchError,
    QueryTransportError,
)
from querycache.keys import query_key
from querycache.state.notifier import Subscription
from querycache.state.query import QueryState, QueryStatus

__all__ = [
    "__version__",
    "JsonFetcher",
    "QueryCacheConfig",
    "QueryCacheError",
    "QueryClient",
    "QueryConfigError",
    "QueryFetchError",
    "QueryState",
    "QueryStatus",
    "QueryTransportError",
    "Subscription",
    "query_key",
]
