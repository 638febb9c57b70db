"""Retry policy derived from a :class:`NetworkConfig`."""

from __future__ import annotations

from dataclasses import dataclass

from .config import NetworkConfig
from .errors import ErrorKind, NetworkError

RETRY_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


@dataclass(frozen=True, slots=True)
class ConfigRetryPolicy:
    """Fixed-delay retries bounded by ``max_retries``.

    Only classified errors that are retryable qualify. ``no_connection`` is
    excluded because the connectivity check runs once, before any attempt.
    """

    enabled: bool
    max_retries: int
    delay_seconds: float

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "ConfigRetryPolicy":
        return cls(
            enabled=config.enable_retry,
            max_retries=config.max_retries,
            delay_seconds=config.retry_delay,
        )

    def should_retry(
        self,
        *,
        attempt: int,
        error: Exception | None,
        status_code: int | None,
    ) -> bool:
        if not self.enabled or attempt > self.max_retries:
            return False
        if not isinstance(error, NetworkError):
            return False
        return error.is_retryable and error.kind is not ErrorKind.NO_CONNECTION

    def next_delay_seconds(self, *, attempt: int) -> float:
        return self.delay_seconds
