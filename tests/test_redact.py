from __future__ import annotations

import logging

import pytest

from querycache._redact import redact_for_log
from querycache.client import QueryClient
from querycache.config import QueryCacheConfig


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "user": "ada",
        "password": "pw",
        "session": {"accessToken": "abc", "expires": 60},
        "headers": [{"Authorization": "Bearer x"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["user"] == "ada"
    assert redacted["password"] == "<redacted>"
    assert redacted["session"]["accessToken"] == "<redacted>"
    assert redacted["session"]["expires"] == 60
    assert redacted["headers"][0]["Authorization"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_summarizes_bytes_and_objects() -> None:
    class Blob:
        def __repr__(self) -> str:
            return "Blob()"

    assert redact_for_log(b"\x00\x01") == "<bytes:2b>"
    assert redact_for_log(Blob()) == "Blob()"
    assert redact_for_log((1, "a")) == [1, "a"]


@pytest.mark.asyncio
async def test_results_logged_redacted_only_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    async def fetch() -> dict[str, str]:
        return {"name": "ada", "token": "s3cret"}

    quiet = QueryClient()
    with caplog.at_level(logging.DEBUG, logger="querycache"):
        await quiet.fetch_query("profile", fetch)
    assert "Query 'profile' fetch succeeded" in caplog.text
    assert "ada" not in caplog.text

    caplog.clear()
    verbose = QueryClient(QueryCacheConfig(log_results=True))
    with caplog.at_level(logging.DEBUG, logger="querycache"):
        await verbose.fetch_query("profile", fetch)
    assert "ada" in caplog.text
    assert "<redacted>" in caplog.text
    assert "s3cret" not in caplog.text
