from __future__ import annotations

import asyncio
import logging

import pytest

from tamimah_network.hooks import HookRegistry, LoggingMiddleware, RequestCall, redact_headers


def test_sync_registry_rejects_async_hooks() -> None:
    registry = HookRegistry()

    async def before(_call: RequestCall) -> None:
        return None

    registry.add_before("*", before)
    with pytest.raises(TypeError):
        registry.run_before(RequestCall(method="GET", path="/"))


@pytest.mark.asyncio
async def test_async_registry_executes_async_hooks() -> None:
    registry = HookRegistry()
    events: list[str] = []

    async def before(_call: RequestCall) -> None:
        await asyncio.sleep(0)
        events.append("before")

    async def after(_call: RequestCall, _response: object) -> None:
        await asyncio.sleep(0)
        events.append("after")

    registry.add_before("*", before)
    registry.add_after("*", after)

    call = RequestCall(method="GET", path="/")
    await registry.run_before_async(call)
    await registry.run_after_async(call, {"ok": True})

    assert events == ["before", "after"]


def test_hooks_match_method_case_insensitively_after_wildcards() -> None:
    registry = HookRegistry()
    events: list[str] = []

    registry.add_before("post", lambda _call: events.append("post"))
    registry.add_before("*", lambda _call: events.append("any"))

    registry.run_before(RequestCall(method="POST", path="/users"))
    registry.run_before(RequestCall(method="GET", path="/users"))

    assert events == ["any", "post", "any"]


def test_sync_registry_executes_middleware_in_order() -> None:
    registry = HookRegistry()
    events: list[str] = []

    class Middleware:
        def before(self, _call: RequestCall) -> None:
            events.append("mw.before")

        def after(self, _call: RequestCall, _response: object) -> None:
            events.append("mw.after")

        def on_error(self, _call: RequestCall, _error: Exception) -> None:
            events.append("mw.error")

    registry.add_middleware("*", Middleware())
    call = RequestCall(method="GET", path="/")
    registry.run_before(call)
    registry.run_after(call, {"ok": True})
    registry.run_error(call, RuntimeError("x"))

    assert events == ["mw.before", "mw.after", "mw.error"]


def test_middleware_without_hooks_is_rejected() -> None:
    class Incomplete:
        def before(self, _call: RequestCall) -> None:
            return None

    with pytest.raises(TypeError):
        HookRegistry().add_middleware("*", Incomplete())


def test_logging_middleware_redacts_authorization(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tamimah_network.tests.hooks")
    middleware = LoggingMiddleware(logger)

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        middleware.before(
            RequestCall(method="GET", path="/users", headers={"Authorization": "Bearer secret", "X-Trace": "1"})
        )
        middleware.on_error(RequestCall(method="GET", path="/users"), RuntimeError("boom"))

    assert "REQUEST[GET] => PATH: /users" in caplog.text
    assert "secret" not in caplog.text
    assert "ERROR[GET] => PATH: /users" in caplog.text


def test_redact_headers() -> None:
    assert redact_headers({"authorization": "x", "Accept": "y"}) == {"authorization": "***", "Accept": "y"}
    assert redact_headers(None) == {}


def test_hooks_for_lists_wildcards_then_method_hooks_per_stage() -> None:
    registry = HookRegistry()

    def any_before(_call: RequestCall) -> None:
        return None

    def get_before(_call: RequestCall) -> None:
        return None

    def get_error(_call: RequestCall, _error: Exception) -> None:
        return None

    registry.add_before("get", get_before)
    registry.add_before("*", any_before)
    registry.add_error("GET", get_error)

    assert registry.hooks_for("before", "GET") == [any_before, get_before]
    assert registry.hooks_for("before", "POST") == [any_before]
    assert registry.hooks_for("error", "get") == [get_error]
    assert registry.hooks_for("after", "GET") == []


def test_incomplete_middleware_registers_nothing() -> None:
    registry = HookRegistry()

    class Incomplete:
        def before(self, _call: RequestCall) -> None:
            return None

        def after(self, _call: RequestCall, _response: object) -> None:
            return None

    with pytest.raises(TypeError):
        registry.add_middleware("*", Incomplete())
    assert registry.hooks_for("before", "GET") == []
