"""Query key composition."""

from __future__ import annotations

from typing import Any

KEY_SEPARATOR = "/"


def query_key(*parts: Any) -> str:
    """Compose *parts* into one stable query key.

    ``query_key("todos", 42)`` gives ``"todos/42"``. Parts are rendered with
    ``str()``; callers choosing parts that themselves contain ``"/"`` are
    responsible for keeping the result unambiguous.
    """
    if not parts:
        raise ValueError("query key needs at least one part")
    key = KEY_SEPARATOR.join(str(part) for part in parts)
    if not key.strip(KEY_SEPARATOR).strip():
        raise ValueError("query key must not be empty")
    return key
