"""Configuration helpers for tamimah-network services."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

DEFAULT_BASE_URL = "https://api.example.com"
DEVELOPMENT_BASE_URL = "https://dev-api.example.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


def default_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


@dataclass(frozen=True, slots=True, repr=False)
class NetworkConfig:
    """Immutable settings for one network service.

    Updates never mutate an instance; use :meth:`copy_with` or one of the
    ``with_*`` helpers to derive a replacement.
    """

    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = DEFAULT_TIMEOUT_SECONDS
    receive_timeout: float = DEFAULT_TIMEOUT_SECONDS
    send_timeout: float = DEFAULT_TIMEOUT_SECONDS
    default_headers: Mapping[str, str] = field(default_factory=default_headers)
    auth_token: str | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    enable_logging: bool = True
    enable_retry: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ValueError("base_url must be a non-empty string")
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("max_retries must be an integer >= 0")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        for name in ("connect_timeout", "receive_timeout", "send_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        # Callers keep their own mapping; the config holds a private copy.
        object.__setattr__(self, "default_headers", dict(self.default_headers))

    @classmethod
    def default(cls) -> "NetworkConfig":
        return cls()

    @classmethod
    def development(cls) -> "NetworkConfig":
        return cls(
            base_url=DEVELOPMENT_BASE_URL,
            connect_timeout=60.0,
            receive_timeout=60.0,
            send_timeout=60.0,
            max_retries=3,
            retry_delay=1.0,
            enable_logging=True,
            enable_retry=True,
        )

    @classmethod
    def production(cls) -> "NetworkConfig":
        return cls(
            base_url=DEFAULT_BASE_URL,
            connect_timeout=30.0,
            receive_timeout=30.0,
            send_timeout=30.0,
            max_retries=2,
            retry_delay=2.0,
            enable_logging=False,
            enable_retry=True,
        )

    def copy_with(self, **changes: Any) -> "NetworkConfig":
        return replace(self, **changes)

    def with_auth_token(self, token: str | None) -> "NetworkConfig":
        return self.copy_with(auth_token=token)

    def with_base_url(self, url: str) -> "NetworkConfig":
        return self.copy_with(base_url=url)

    def with_headers(self, headers: Mapping[str, str]) -> "NetworkConfig":
        merged = dict(self.default_headers)
        merged.update(headers)
        return self.copy_with(default_headers=merged)

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.receive_timeout,
            write=self.send_timeout,
            pool=self.connect_timeout,
        )

    def bearer_token(self) -> str | None:
        return _trim_or_none(self.auth_token)

    def __repr__(self) -> str:
        token = "***" if self.auth_token is not None else None
        return (
            "NetworkConfig("
            f"base_url={self.base_url!r}, "
            f"connect_timeout={self.connect_timeout!r}, "
            f"receive_timeout={self.receive_timeout!r}, "
            f"send_timeout={self.send_timeout!r}, "
            f"default_headers={dict(self.default_headers)!r}, "
            f"auth_token={token!r}, "
            f"max_retries={self.max_retries!r}, "
            f"retry_delay={self.retry_delay!r}, "
            f"enable_logging={self.enable_logging!r}, "
            f"enable_retry={self.enable_retry!r})"
        )


def _trim_or_none(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if trimmed else None
