"""Immutable per-key query state snapshots."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from querycache.exceptions import QueryFetchError


class QueryStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class QueryState(BaseModel):
    """Snapshot of one query key.

    Parameters
    ----------
    status : QueryStatus
        Exactly one of idle, loading, success or error.
    data : Any
        Last successful result. Kept while revalidating (``loading``) and
        after a failed refetch (``error``).
    error : QueryFetchError or None
        The normalized failure; only set when ``status`` is ``error``.
    last_fetched_at : float
        Clock reading of the last successful fetch, ``0.0`` if none.
    stale_time : float
        Seconds after ``last_fetched_at`` during which ``data`` is fresh.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: QueryFetchError | None = None
    last_fetched_at: float = 0.0
    stale_time: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="after")
    def _check_status_fields(self) -> QueryState:
        if self.status is QueryStatus.ERROR:
            if self.error is None:
                raise ValueError("error state requires an error")
        elif self.error is not None:
            raise ValueError(f"{self.status.value} state must not carry an error")
        return self

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR

    def loading(self, *, stale_time: float) -> QueryState:
        """Transition into ``loading``, keeping data for stale-while-revalidate."""
        return QueryState(
            status=QueryStatus.LOADING,
            data=self.data,
            error=None,
            last_fetched_at=self.last_fetched_at,
            stale_time=stale_time,
        )

    def succeeded(self, data: Any, *, fetched_at: float) -> QueryState:
        return QueryState(
            status=QueryStatus.SUCCESS,
            data=data,
            error=None,
            last_fetched_at=fetched_at,
            stale_time=self.stale_time,
        )

    def failed(self, error: QueryFetchError) -> QueryState:
        """Transition into ``error``; ``data`` and ``last_fetched_at`` survive."""
        return QueryState(
            status=QueryStatus.ERROR,
            data=self.data,
            error=error,
            last_fetched_at=self.last_fetched_at,
            stale_time=self.stale_time,
        )
