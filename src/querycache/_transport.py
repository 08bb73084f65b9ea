"""aiohttp-backed fetch functions.

The cache never looks inside a fetch function; this module only provides a
ready-made one for the common "GET a JSON document" case.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from querycache.exceptions import QueryTransportError

_logger = logging.getLogger(__name__)


class JsonFetcher:
    """Zero-argument async callable that GETs *url* and decodes JSON.

    Usage::

        async with aiohttp.ClientSession() as session:
            todos = await client.fetch_query(
                "todos",
                JsonFetcher(session, "https://example.test/todos"),
                stale_time=30,
            )

    The session is borrowed, never closed here.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._http = session
        self._url = url
        self._params = dict(params) if params else None
        self._headers = dict(headers) if headers else None

    @property
    def url(self) -> str:
        return self._url

    async def __call__(self) -> Any:
        _logger.debug("GET %s", self._url)

        try:
            async with self._http.get(self._url, params=self._params, headers=self._headers) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise QueryTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        url=self._url,
                    )
        except QueryTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise QueryTransportError(
                f"Request to {self._url} failed: {exc}",
                url=self._url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise QueryTransportError(
                f"Invalid JSON from {self._url}: {text[:200]}",
                status_code=resp.status,
                url=self._url,
            ) from exc

    def __repr__(self) -> str:
        return f"JsonFetcher({self._url!r})"
