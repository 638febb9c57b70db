"""HTTP transport binding over httpx for tamimah-network."""

from __future__ import annotations

from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any

import httpx

from .config import NetworkConfig
from .errors import classify_exception, classify_response


@dataclass(slots=True)
class TransportRequest:
    method: str
    path: str
    query: dict[str, Any] | None = None
    json_body: Any | None = None
    headers: dict[str, str] | None = None
    files: dict[str, Any] | None = None
    form_data: dict[str, Any] | None = None


def stringify_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    if not params:
        return None

    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
            continue
        encoded[key] = str(value)

    return encoded or None


def parse_response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "")
    if "json" not in content_type:
        return response.text

    try:
        return response.json()
    except JSONDecodeError:
        return response.text


def build_client(config: NetworkConfig, *, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    token = config.bearer_token()

    def inject_bearer(request: httpx.Request) -> None:
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    return httpx.Client(
        base_url=config.base_url,
        timeout=config.timeout(),
        headers=dict(config.default_headers),
        event_hooks={"request": [inject_bearer]},
        transport=transport,
    )


def build_async_client(
    config: NetworkConfig, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    token = config.bearer_token()

    # AsyncClient only accepts coroutine event hooks.
    async def inject_bearer(request: httpx.Request) -> None:
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=config.timeout(),
        headers=dict(config.default_headers),
        event_hooks={"request": [inject_bearer]},
        transport=transport,
    )


def _check_response(response: httpx.Response, request: TransportRequest) -> Any:
    body = parse_response_body(response)
    failure = classify_response(response.status_code, body, method=request.method, path=request.path)
    if failure is not None:
        raise failure
    return body


class SyncTransport:
    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client

    def send(self, request: TransportRequest) -> Any:
        try:
            response = self._client.request(
                request.method,
                request.path,
                params=stringify_params(request.query),
                json=request.json_body,
                data=request.form_data,
                files=request.files,
                headers=request.headers,
            )
        except httpx.HTTPError as error:
            raise classify_exception(error, method=request.method, path=request.path) from error

        return _check_response(response, request)


class AsyncTransport:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def send(self, request: TransportRequest) -> Any:
        try:
            response = await self._client.request(
                request.method,
                request.path,
                params=stringify_params(request.query),
                json=request.json_body,
                data=request.form_data,
                files=request.files,
                headers=request.headers,
            )
        except httpx.HTTPError as error:
            raise classify_exception(error, method=request.method, path=request.path) from error

        return _check_response(response, request)
