"""Request executors: connectivity check, delegation, classification, wrapping."""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
import time
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Callable, Union

import httpx
import pydantic

from .cancel import CancelToken
from .config import NetworkConfig
from .connectivity import AsyncSocketConnectivityChecker, SocketConnectivityChecker
from .errors import ErrorKind, NetworkError, RequestDetails, classify_exception
from .hooks import HookRegistry, LoggingMiddleware, RequestCall
from .models import Envelope
from .protocols import (
    AsyncConnectivityChecker,
    AsyncHookMiddleware,
    ConnectivityChecker,
    RetryPolicy,
    SyncHookMiddleware,
)
from .retry import RETRY_SAFE_METHODS, ConfigRetryPolicy
from .transport import (
    AsyncTransport,
    SyncTransport,
    TransportRequest,
    build_async_client,
    build_client,
    stringify_params,
)

UploadSource = Union[str, "os.PathLike[str]", IO[bytes]]


def _unwrap_body(body: Any, request: TransportRequest) -> Mapping[str, Any]:
    if body is None:
        return {}
    if isinstance(body, Mapping):
        return body
    raise NetworkError(
        "Unexpected response shape",
        ErrorKind.UNKNOWN,
        details=RequestDetails(method=request.method, path=request.path, response_body=body),
    )


def _read_envelope(body: Mapping[str, Any], request: TransportRequest) -> Envelope[Any]:
    try:
        return Envelope.from_json_without_result(body)
    except pydantic.ValidationError as error:
        raise NetworkError(
            "Unexpected response shape",
            ErrorKind.UNKNOWN,
            details=RequestDetails(method=request.method, path=request.path, response_body=body),
        ) from error


def _status_code(error: Exception) -> int | None:
    if isinstance(error, NetworkError):
        return error.status_code
    return None


def _call_for(request: TransportRequest, attempt: int) -> RequestCall:
    return RequestCall(
        method=request.method,
        path=request.path,
        query=dict(request.query or {}),
        json_body=request.json_body,
        headers=dict(request.headers or {}),
        attempt=attempt,
    )


def _no_connection(request: TransportRequest) -> NetworkError:
    error = NetworkError.no_connection()
    error.details = RequestDetails(method=request.method, path=request.path)
    return error


def multipart_content_type() -> str:
    # httpx reuses an explicit boundary, which keeps the JSON default
    # Content-Type from leaking into multipart bodies.
    return f"multipart/form-data; boundary={secrets.token_hex(16)}"


@contextmanager
def open_upload(file: UploadSource) -> Iterator[tuple[str, IO[bytes]]]:
    """Yield ``(filename, handle)`` for a path or an open binary handle.

    httpx derives the part content type from the filename.
    """
    if isinstance(file, (str, os.PathLike)):
        path = Path(file)
        with path.open("rb") as handle:
            yield path.name, handle
        return

    name = getattr(file, "name", None)
    filename = Path(name).name if isinstance(name, str) else "upload"
    yield filename, file


def _upload_request(
    path: str,
    filename: str,
    handle: IO[bytes],
    *,
    field_name: str,
    extra_data: dict[str, Any] | None,
    headers: dict[str, str] | None,
) -> TransportRequest:
    return TransportRequest(
        method="POST",
        path=path,
        files={field_name: (filename, handle)},
        form_data=stringify_params(extra_data),
        headers={**(headers or {}), "Content-Type": multipart_content_type()},
    )


class NetworkService:
    """Synchronous request executor bound to one :class:`NetworkConfig`."""

    def __init__(
        self,
        config: NetworkConfig | None = None,
        *,
        connectivity: ConnectivityChecker | None = None,
        transport: httpx.BaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        retryable_methods: Iterable[str] | None = None,
        hook_registry: HookRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or NetworkConfig.default()
        self._logger = logger or logging.getLogger(__name__)
        self._connectivity = connectivity or SocketConnectivityChecker()
        self._retry_policy = retry_policy or ConfigRetryPolicy.from_config(self.config)
        self._retryable_methods = (
            frozenset(method.upper() for method in retryable_methods)
            if retryable_methods is not None
            else RETRY_SAFE_METHODS
        )
        self._hooks = hook_registry or HookRegistry()
        if self.config.enable_logging:
            self._hooks.add_middleware("*", LoggingMiddleware(self._logger))

        self._client = build_client(self.config, transport=transport)
        self._transport = SyncTransport(self._client)

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._client.headers)

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def is_connected(self) -> bool:
        return self._connectivity.is_connected()

    def get(
        self,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="GET", path=path, query=query, headers=headers)
        return self._execute(request, cancel_token=cancel_token, decode=decode)

    def post(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="POST", path=path, query=query, json_body=data, headers=headers)
        return self._execute(request, cancel_token=cancel_token, decode=decode)

    def put(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="PUT", path=path, query=query, json_body=data, headers=headers)
        return self._execute(request, cancel_token=cancel_token, decode=decode)

    def delete(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="DELETE", path=path, query=query, json_body=data, headers=headers)
        return self._execute(request, cancel_token=cancel_token, decode=decode)

    def patch(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="PATCH", path=path, query=query, json_body=data, headers=headers)
        return self._execute(request, cancel_token=cancel_token, decode=decode)

    def upload(
        self,
        path: str,
        *,
        file: UploadSource,
        field_name: str = "file",
        extra_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        with open_upload(file) as (filename, handle):
            request = _upload_request(
                path,
                filename,
                handle,
                field_name=field_name,
                extra_data=extra_data,
                headers=headers,
            )
            # A consumed file body cannot be replayed.
            return self._execute(request, cancel_token=cancel_token, decode=decode, retryable=False)

    def update_base_url(self, base_url: str) -> None:
        self.config = self.config.with_base_url(base_url)
        self._client.base_url = httpx.URL(base_url)

    def update_headers(self, headers: Mapping[str, str]) -> None:
        self.config = self.config.with_headers(headers)
        self._client.headers.update(headers)

    def clear_headers(self) -> None:
        self.config = self.config.copy_with(default_headers={})
        self._client.headers = httpx.Headers()

    def before(self, method: str = "*") -> Callable[[Callable[[RequestCall], Any]], Callable[[RequestCall], Any]]:
        def decorator(func: Callable[[RequestCall], Any]) -> Callable[[RequestCall], Any]:
            self._hooks.add_before(method, func)
            return func

        return decorator

    def after(self, method: str = "*") -> Callable[[Callable[[RequestCall, Any], Any]], Callable[[RequestCall, Any], Any]]:
        def decorator(func: Callable[[RequestCall, Any], Any]) -> Callable[[RequestCall, Any], Any]:
            self._hooks.add_after(method, func)
            return func

        return decorator

    def on_error(self, method: str = "*") -> Callable[[Callable[[RequestCall, Exception], Any]], Callable[[RequestCall, Exception], Any]]:
        def decorator(func: Callable[[RequestCall, Exception], Any]) -> Callable[[RequestCall, Exception], Any]:
            self._hooks.add_error(method, func)
            return func

        return decorator

    def use_middleware(self, middleware: SyncHookMiddleware, *, method: str = "*") -> None:
        self._hooks.add_middleware(method, middleware)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NetworkService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _should_retry(self, request: TransportRequest, attempt: int, error: NetworkError) -> bool:
        if request.method not in self._retryable_methods:
            return False
        return self._retry_policy.should_retry(attempt=attempt, error=error, status_code=_status_code(error))

    def _execute(
        self,
        request: TransportRequest,
        *,
        cancel_token: CancelToken | None,
        decode: Any | None,
        retryable: bool = True,
    ) -> Envelope[Any]:
        if not self.is_connected():
            error = _no_connection(request)
            self._hooks.run_error(_call_for(request, 1), error)
            raise error

        attempt = 1
        while True:
            call = _call_for(request, attempt)
            self._hooks.run_before(call)
            try:
                if cancel_token is not None and cancel_token.is_cancelled:
                    raise NetworkError.cancelled()
                body = _unwrap_body(self._transport.send(request), request)
                envelope = _read_envelope(body, request)
            except Exception as error:
                failure = classify_exception(error, method=request.method, path=request.path)
                cancelled = cancel_token is not None and cancel_token.is_cancelled
                if not retryable or cancelled or not self._should_retry(request, attempt, failure):
                    self._hooks.run_error(call, failure)
                    if failure is error:
                        raise
                    raise failure from error

                delay = self._retry_policy.next_delay_seconds(attempt=attempt)
                self._logger.warning(
                    "retrying %s %s after %s (attempt %d, delay %.2fs)",
                    request.method,
                    request.path,
                    failure.kind.value,
                    attempt,
                    delay,
                )
                if delay > 0:
                    time.sleep(delay)
                attempt += 1
                continue

            # Decoder failures are caller contract errors and propagate unchanged.
            if decode is not None:
                envelope.decode_data(body, decode)
            self._hooks.run_after(call, envelope)
            return envelope


class AsyncNetworkService:
    """Asynchronous request executor bound to one :class:`NetworkConfig`."""

    def __init__(
        self,
        config: NetworkConfig | None = None,
        *,
        connectivity: AsyncConnectivityChecker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        retryable_methods: Iterable[str] | None = None,
        hook_registry: HookRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or NetworkConfig.default()
        self._logger = logger or logging.getLogger(__name__)
        self._connectivity = connectivity or AsyncSocketConnectivityChecker()
        self._retry_policy = retry_policy or ConfigRetryPolicy.from_config(self.config)
        self._retryable_methods = (
            frozenset(method.upper() for method in retryable_methods)
            if retryable_methods is not None
            else RETRY_SAFE_METHODS
        )
        self._hooks = hook_registry or HookRegistry()
        if self.config.enable_logging:
            self._hooks.add_middleware("*", LoggingMiddleware(self._logger))

        self._client = build_async_client(self.config, transport=transport)
        self._transport = AsyncTransport(self._client)

    @property
    def headers(self) -> httpx.Headers:
        return httpx.Headers(self._client.headers)

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def is_connected(self) -> bool:
        return await self._connectivity.is_connected()

    async def get(
        self,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="GET", path=path, query=query, headers=headers)
        return await self._execute(request, cancel_token=cancel_token, decode=decode)

    async def post(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="POST", path=path, query=query, json_body=data, headers=headers)
        return await self._execute(request, cancel_token=cancel_token, decode=decode)

    async def put(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="PUT", path=path, query=query, json_body=data, headers=headers)
        return await self._execute(request, cancel_token=cancel_token, decode=decode)

    async def delete(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="DELETE", path=path, query=query, json_body=data, headers=headers)
        return await self._execute(request, cancel_token=cancel_token, decode=decode)

    async def patch(
        self,
        path: str,
        data: Any | None = None,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        request = TransportRequest(method="PATCH", path=path, query=query, json_body=data, headers=headers)
        return await self._execute(request, cancel_token=cancel_token, decode=decode)

    async def upload(
        self,
        path: str,
        *,
        file: UploadSource,
        field_name: str = "file",
        extra_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        with open_upload(file) as (filename, handle):
            request = _upload_request(
                path,
                filename,
                handle,
                field_name=field_name,
                extra_data=extra_data,
                headers=headers,
            )
            return await self._execute(request, cancel_token=cancel_token, decode=decode, retryable=False)

    def update_base_url(self, base_url: str) -> None:
        self.config = self.config.with_base_url(base_url)
        self._client.base_url = httpx.URL(base_url)

    def update_headers(self, headers: Mapping[str, str]) -> None:
        self.config = self.config.with_headers(headers)
        self._client.headers.update(headers)

    def clear_headers(self) -> None:
        self.config = self.config.copy_with(default_headers={})
        self._client.headers = httpx.Headers()

    def before(self, method: str = "*") -> Callable[[Callable[[RequestCall], Any]], Callable[[RequestCall], Any]]:
        def decorator(func: Callable[[RequestCall], Any]) -> Callable[[RequestCall], Any]:
            self._hooks.add_before(method, func)
            return func

        return decorator

    def after(self, method: str = "*") -> Callable[[Callable[[RequestCall, Any], Any]], Callable[[RequestCall, Any], Any]]:
        def decorator(func: Callable[[RequestCall, Any], Any]) -> Callable[[RequestCall, Any], Any]:
            self._hooks.add_after(method, func)
            return func

        return decorator

    def on_error(self, method: str = "*") -> Callable[[Callable[[RequestCall, Exception], Any]], Callable[[RequestCall, Exception], Any]]:
        def decorator(func: Callable[[RequestCall, Exception], Any]) -> Callable[[RequestCall, Exception], Any]:
            self._hooks.add_error(method, func)
            return func

        return decorator

    def use_middleware(self, middleware: SyncHookMiddleware | AsyncHookMiddleware, *, method: str = "*") -> None:
        self._hooks.add_middleware(method, middleware)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncNetworkService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _should_retry(self, request: TransportRequest, attempt: int, error: NetworkError) -> bool:
        if request.method not in self._retryable_methods:
            return False
        return self._retry_policy.should_retry(attempt=attempt, error=error, status_code=_status_code(error))

    async def _send(self, request: TransportRequest, cancel_token: CancelToken | None) -> Any:
        if cancel_token is None:
            return await self._transport.send(request)
        if cancel_token.is_cancelled:
            raise NetworkError.cancelled()

        send_task = asyncio.ensure_future(self._transport.send(request))
        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _pending = await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send_task.cancel()
            cancel_task.cancel()
            raise

        if send_task in done:
            cancel_task.cancel()
            return send_task.result()

        send_task.cancel()
        await asyncio.gather(send_task, return_exceptions=True)
        raise NetworkError.cancelled()

    async def _execute(
        self,
        request: TransportRequest,
        *,
        cancel_token: CancelToken | None,
        decode: Any | None,
        retryable: bool = True,
    ) -> Envelope[Any]:
        if not await self.is_connected():
            error = _no_connection(request)
            await self._hooks.run_error_async(_call_for(request, 1), error)
            raise error

        attempt = 1
        while True:
            call = _call_for(request, attempt)
            await self._hooks.run_before_async(call)
            try:
                body = _unwrap_body(await self._send(request, cancel_token), request)
                envelope = _read_envelope(body, request)
            except Exception as error:
                failure = classify_exception(error, method=request.method, path=request.path)
                cancelled = cancel_token is not None and cancel_token.is_cancelled
                if not retryable or cancelled or not self._should_retry(request, attempt, failure):
                    await self._hooks.run_error_async(call, failure)
                    if failure is error:
                        raise
                    raise failure from error

                delay = self._retry_policy.next_delay_seconds(attempt=attempt)
                self._logger.warning(
                    "retrying %s %s after %s (attempt %d, delay %.2fs)",
                    request.method,
                    request.path,
                    failure.kind.value,
                    attempt,
                    delay,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1
                continue

            if decode is not None:
                envelope.decode_data(body, decode)
            await self._hooks.run_after_async(call, envelope)
            return envelope
