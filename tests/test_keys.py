from __future__ import annotations

import pytest

from querycache.keys import query_key


def test_parts_are_joined() -> None:
    assert query_key("todos") == "todos"
    assert query_key("todos", 42, "comments") == "todos/42/comments"


def test_same_parts_give_same_key() -> None:
    assert query_key("user", 7) == query_key("user", "7")


@pytest.mark.parametrize("parts", [(), ("",), ("", "")])
def test_empty_keys_rejected(parts: tuple[str, ...]) -> None:
    with pytest.raises(ValueError):
        query_key(*parts)
