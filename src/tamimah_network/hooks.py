"""Request hook registry and built-in logging middleware."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from .protocols import AsyncHookMiddleware, SyncHookMiddleware

_REDACTED_HEADERS = frozenset({"authorization", "cookie", "proxy-authorization"})


@dataclass(slots=True)
class RequestCall:
    method: str
    path: str
    query: dict[str, Any] | None = None
    json_body: Any | None = None
    headers: dict[str, str] | None = None
    attempt: int = 1


BeforeHook = Callable[[RequestCall], None | Awaitable[None]]
AfterHook = Callable[[RequestCall, Any], None | Awaitable[None]]
ErrorHook = Callable[[RequestCall, Exception], None | Awaitable[None]]


Stage = Literal["before", "after", "error"]


@dataclass(slots=True)
class HookRegistry:
    """Hooks per stage, keyed by upper-case HTTP method or ``"*"``.

    Wildcard hooks run before method-specific ones, each group in
    registration order.
    """

    _hooks: dict[tuple[Stage, str], list[Callable[..., Any]]] = field(default_factory=dict)

    def add_before(self, method: str, hook: BeforeHook) -> None:
        self._add("before", method, hook)

    def add_after(self, method: str, hook: AfterHook) -> None:
        self._add("after", method, hook)

    def add_error(self, method: str, hook: ErrorHook) -> None:
        self._add("error", method, hook)

    def add_middleware(
        self, method: str, middleware: SyncHookMiddleware | AsyncHookMiddleware
    ) -> None:
        before = _require_hook_callable(middleware, "before")
        after = _require_hook_callable(middleware, "after")
        on_error = _require_hook_callable(middleware, "on_error")
        self.add_before(method, before)
        self.add_after(method, after)
        self.add_error(method, on_error)

    def hooks_for(self, stage: Stage, method: str) -> list[Callable[..., Any]]:
        return [*self._hooks.get((stage, "*"), []), *self._hooks.get((stage, _key(method)), [])]

    def run_before(self, call: RequestCall) -> None:
        self._run("before", call)

    def run_after(self, call: RequestCall, response: Any) -> None:
        self._run("after", call, response)

    def run_error(self, call: RequestCall, error: Exception) -> None:
        self._run("error", call, error)

    async def run_before_async(self, call: RequestCall) -> None:
        await self._run_async("before", call)

    async def run_after_async(self, call: RequestCall, response: Any) -> None:
        await self._run_async("after", call, response)

    async def run_error_async(self, call: RequestCall, error: Exception) -> None:
        await self._run_async("error", call, error)

    def _add(self, stage: Stage, method: str, hook: Callable[..., Any]) -> None:
        self._hooks.setdefault((stage, _key(method)), []).append(hook)

    def _run(self, stage: Stage, call: RequestCall, *args: Any) -> None:
        for hook in self.hooks_for(stage, call.method):
            _reject_awaitable(hook(call, *args), stage)

    async def _run_async(self, stage: Stage, call: RequestCall, *args: Any) -> None:
        for hook in self.hooks_for(stage, call.method):
            result = hook(call, *args)
            if inspect.isawaitable(result):
                await result


class LoggingMiddleware:
    """Logs each request, response and failure at DEBUG level."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("tamimah_network.http")

    def before(self, call: RequestCall) -> None:
        self._logger.debug(
            "REQUEST[%s] => PATH: %s attempt=%d headers=%s",
            call.method,
            call.path,
            call.attempt,
            redact_headers(call.headers),
        )

    def after(self, call: RequestCall, response: Any) -> None:
        status = getattr(getattr(response, "response_status", None), "status_code", None)
        self._logger.debug("RESPONSE[%s] => PATH: %s status=%s", call.method, call.path, status)

    def on_error(self, call: RequestCall, error: Exception) -> None:
        self._logger.debug(
            "ERROR[%s] => PATH: %s status=%s message=%s",
            call.method,
            call.path,
            getattr(error, "status_code", None),
            error,
        )


def redact_headers(headers: dict[str, str] | None) -> dict[str, str]:
    return {
        name: "***" if name.lower() in _REDACTED_HEADERS else value
        for name, value in (headers or {}).items()
    }


def _key(method: str) -> str:
    return method if method == "*" else method.upper()


def _reject_awaitable(result: Any, kind: str) -> None:
    if inspect.isawaitable(result):
        # Close coroutine objects before rejecting them so sync flows
        # do not leak "coroutine was never awaited" warnings.
        close = getattr(result, "close", None)
        if callable(close):
            close()
        raise TypeError(f"sync services cannot execute async {kind} hooks")


def _require_hook_callable(middleware: object, name: str) -> Callable[..., Any]:
    hook = getattr(middleware, name, None)
    if not callable(hook):
        raise TypeError(f"hook middleware must provide callable {name}()")
    return hook
