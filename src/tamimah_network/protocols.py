"""Protocol contracts for tamimah-network extension points."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .hooks import RequestCall


@runtime_checkable
class ConnectivityChecker(Protocol):
    def is_connected(self) -> bool: ...


@runtime_checkable
class AsyncConnectivityChecker(Protocol):
    async def is_connected(self) -> bool: ...


@runtime_checkable
class RetryPolicy(Protocol):
    def should_retry(
        self,
        *,
        attempt: int,
        error: Exception | None,
        status_code: int | None,
    ) -> bool: ...

    def next_delay_seconds(self, *, attempt: int) -> float: ...


@runtime_checkable
class SyncHookMiddleware(Protocol):
    def before(self, call: RequestCall) -> None: ...

    def after(self, call: RequestCall, response: Any) -> None: ...

    def on_error(self, call: RequestCall, error: Exception) -> None: ...


@runtime_checkable
class AsyncHookMiddleware(Protocol):
    async def before(self, call: RequestCall) -> None: ...

    async def after(self, call: RequestCall, response: Any) -> None: ...

    async def on_error(self, call: RequestCall, error: Exception) -> None: ...
