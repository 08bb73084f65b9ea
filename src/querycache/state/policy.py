"""Freshness policy.

Pure functions only; the coordinator decides what to do with the answer.
"""

from __future__ import annotations

from querycache.state.query import QueryState, QueryStatus


def age_seconds(state: QueryState, now: float) -> float | None:
    """Seconds since the last successful fetch, ``None`` if there was none."""
    if state.status is not QueryStatus.SUCCESS:
        return None
    return now - state.last_fetched_at


def is_fresh(state: QueryState | None, *, now: float, stale_time: float) -> bool:
    """Return ``True`` when *state* may be served without refetching.

    Only a ``success`` state younger than *stale_time* qualifies; a zero
    stale time therefore never serves from cache.
    """
    if state is None:
        return False
    age = age_seconds(state, now)
    if age is None:
        return False
    return age < stale_time
