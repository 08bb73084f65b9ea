"""Cache configuration for querycache."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from querycache.exceptions import QueryConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[float] | type[int]) -> float | int:
    try:
        return cast(value.strip())
    except ValueError as exc:
        raise QueryConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class QueryCacheConfig:
    """Cache configuration.

    Parameters
    ----------
    default_stale_time : float
        Seconds a successful result stays fresh when ``fetch_query`` is
        called without an explicit ``stale_time``. Defaults to ``0``,
        i.e. every call revalidates unless a fetch is already in flight.
    log_results : bool
        Include (redacted) fetch results in DEBUG logs.
    log_max_string : int
        Strings longer than this are truncated in logged results.
    """

    default_stale_time: float = 0.0
    log_results: bool = False
    log_max_string: int = 512

    def __post_init__(self) -> None:
        if not self.default_stale_time >= 0:
            raise QueryConfigError(f"default_stale_time must be >= 0, got {self.default_stale_time}")
        if self.log_max_string <= 0:
            raise QueryConfigError(f"log_max_string must be > 0, got {self.log_max_string}")

    @classmethod
    def from_env(cls, **overrides: Any) -> QueryCacheConfig:
        """Create configuration from environment variables.

        Reads ``QUERYCACHE_DEFAULT_STALE_TIME``, ``QUERYCACHE_LOG_RESULTS``
        and ``QUERYCACHE_LOG_MAX_STRING``. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        QueryCacheConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        stale_env = env.get("QUERYCACHE_DEFAULT_STALE_TIME")
        if stale_env is not None and "default_stale_time" not in overrides:
            config_kwargs["default_stale_time"] = float(
                _env_number("QUERYCACHE_DEFAULT_STALE_TIME", stale_env, float)
            )

        if "log_results" not in overrides:
            config_kwargs["log_results"] = _env_bool(env.get("QUERYCACHE_LOG_RESULTS"), False)

        max_string_env = env.get("QUERYCACHE_LOG_MAX_STRING")
        if max_string_env is not None and "log_max_string" not in overrides:
            config_kwargs["log_max_string"] = int(
                _env_number("QUERYCACHE_LOG_MAX_STRING", max_string_env, int)
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
