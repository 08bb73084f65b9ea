from __future__ import annotations

import asyncio

import pytest

from querycache.client import QueryClient
from querycache.exceptions import QueryFetchError
from querycache.state.query import QueryStatus


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_invalidate_unknown_key_is_noop() -> None:
    client = QueryClient()
    notified: list[str] = []
    client.subscribe("ghost", lambda: notified.append("ghost"))

    client.invalidate_query("ghost")

    assert client.get_state("ghost") is None
    assert notified == []


@pytest.mark.asyncio
async def test_invalidate_refetches_with_latest_remembered_function() -> None:
    client = QueryClient()
    calls: list[str] = []

    async def from_first_caller() -> str:
        calls.append("first")
        return "first"

    async def from_second_caller() -> str:
        calls.append("second")
        return "second"

    await client.fetch_query("a", from_first_caller, stale_time=60)
    # Fresh hit, but the function is still remembered.
    assert await client.fetch_query("a", from_second_caller, stale_time=60) == "first"

    client.invalidate_query("a")
    assert client.get_state("a").status is QueryStatus.LOADING  # type: ignore[union-attr]

    # Joins the background refetch instead of starting another one.
    assert await client.fetch_query("a", from_second_caller, stale_time=60) == "second"
    assert calls == ["first", "second"]


@pytest.mark.asyncio
async def test_invalidate_discards_data_and_keeps_stale_time() -> None:
    client = QueryClient()
    seen: list[tuple[QueryStatus, object]] = []
    values = iter(["old", "new"])

    async def fetch() -> str:
        return next(values)

    await client.fetch_query("a", fetch, stale_time=42)

    def listener() -> None:
        state = client.get_state("a")
        assert state is not None
        seen.append((state.status, state.data))

    client.subscribe("a", listener)
    client.invalidate_query("a")
    await _settle()

    assert seen == [(QueryStatus.LOADING, None), (QueryStatus.SUCCESS, "new")]
    state = client.get_state("a")
    assert state is not None
    assert state.stale_time == 42


@pytest.mark.asyncio
async def test_invalidate_failure_is_recorded_without_unretrieved_warning() -> None:
    client = QueryClient()
    attempts = 0

    async def fetch() -> str:
        nonlocal attempts
        attempts += 1
        if attempts > 1:
            raise RuntimeError("gone")
        return "ok"

    await client.fetch_query("a", fetch)
    client.invalidate_query("a")
    await _settle()

    state = client.get_state("a")
    assert state is not None
    assert state.status is QueryStatus.ERROR
    assert state.error is not None
    assert state.error.message == "gone"
    assert state.data is None


@pytest.mark.asyncio
async def test_invalidate_while_in_flight_detaches_the_old_fetch() -> None:
    client = QueryClient()
    gates = [asyncio.Event(), asyncio.Event()]
    calls = 0

    async def fetch() -> str:
        nonlocal calls
        index = calls
        calls += 1
        await gates[index].wait()
        return ["old", "new"][index]

    first = asyncio.create_task(client.fetch_query("a", fetch))
    await _settle()

    client.invalidate_query("a")
    second = asyncio.create_task(client.fetch_query("a", fetch))
    await _settle()

    gates[0].set()
    assert await first == "old"
    assert client.get_state("a").status is QueryStatus.LOADING  # type: ignore[union-attr]

    gates[1].set()
    assert await second == "new"
    state = client.get_state("a")
    assert state is not None
    assert state.status is QueryStatus.SUCCESS
    assert state.data == "new"
    assert calls == 2


@pytest.mark.asyncio
async def test_invalidate_after_error_retries() -> None:
    client = QueryClient()
    outcomes = iter([RuntimeError("first"), "recovered"])

    async def fetch() -> str:
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with pytest.raises(QueryFetchError):
        await client.fetch_query("a", fetch)

    client.invalidate_query("a")
    assert await client.fetch_query("a", fetch) == "recovered"


def test_invalidate_outside_event_loop_keeps_state() -> None:
    client = QueryClient()

    async def fetch() -> str:
        return "cached"

    asyncio.run(client.fetch_query("a", fetch, stale_time=60))
    before = client.get_state("a")
    assert before is not None

    with pytest.raises(RuntimeError):
        client.invalidate_query("a")

    assert client.get_state("a") is before
