"""Process-wide façade over one live config/service pair."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from .cancel import CancelToken
from .config import DEFAULT_BASE_URL, NetworkConfig, default_headers
from .models import Envelope
from .protocols import AsyncConnectivityChecker
from .service import AsyncNetworkService, UploadSource

ServiceFactory = Callable[[NetworkConfig], AsyncNetworkService]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Binding:
    config: NetworkConfig
    service: AsyncNetworkService


class NetworkManager:
    """Holds exactly one :class:`NetworkConfig` and one :class:`AsyncNetworkService`.

    Managers can be created and owned directly. :meth:`instance` offers a
    lazily created global for callers that want a single shared manager.

    The config/service pair lives in one attribute, so readers always see a
    matching pair. Re-initialization swaps the pair without closing the old
    service: calls already in flight keep their reference and finish on it,
    new calls use the new service. :meth:`dispose` closes the current service
    and every one it replaced. :meth:`update_base_url`, :meth:`add_headers`
    and :meth:`clear_headers` mutate the live service instead, so they also
    affect requests that have not been sent yet.
    """

    _instance: ClassVar[NetworkManager | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        config: NetworkConfig | None = None,
        *,
        connectivity: AsyncConnectivityChecker | None = None,
        service_factory: ServiceFactory | None = None,
    ) -> None:
        self._connectivity = connectivity
        self._service_factory = service_factory or self._default_service
        # Replaced services stay open for in-flight calls until dispose().
        self._retired: list[AsyncNetworkService] = []
        self._binding = self._bind(config or NetworkConfig.default())

    @classmethod
    def instance(cls) -> NetworkManager:
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def set_instance(cls, manager: NetworkManager | None) -> None:
        with cls._instance_lock:
            cls._instance = manager

    @property
    def config(self) -> NetworkConfig:
        return self._binding.config

    @property
    def service(self) -> AsyncNetworkService:
        return self._binding.service

    def initialize(self, config: NetworkConfig | None = None) -> None:
        previous = self._binding.service
        self._binding = self._bind(config or NetworkConfig.default())
        self._retired.append(previous)

    def update_config(self, config: NetworkConfig) -> None:
        self.initialize(config)

    def update_base_url(self, base_url: str) -> None:
        binding = self._binding
        config = binding.config.with_base_url(base_url)
        binding.service.update_base_url(base_url)
        self._binding = _Binding(config=config, service=binding.service)

    def update_auth_token(self, token: str | None) -> None:
        self.update_config(self.config.with_auth_token(token))

    def add_headers(self, headers: Mapping[str, str]) -> None:
        binding = self._binding
        binding.service.update_headers(headers)
        self._binding = _Binding(config=binding.config.with_headers(headers), service=binding.service)

    def clear_headers(self) -> None:
        binding = self._binding
        binding.service.clear_headers()
        self._binding = _Binding(config=binding.config.copy_with(default_headers={}), service=binding.service)

    async def is_connected(self) -> bool:
        return await self.service.is_connected()

    async def dispose(self) -> None:
        retired, self._retired = self._retired, []
        for service in (*retired, self.service):
            await service.close()
        with self._instance_lock:
            if NetworkManager._instance is self:
                NetworkManager._instance = None

    def reset(self) -> None:
        self.initialize(NetworkConfig.default())

    def set_development_mode(self) -> None:
        self.initialize(NetworkConfig.development())

    def set_production_mode(self) -> None:
        self.initialize(NetworkConfig.production())

    async def get(
        self,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        decode: Any | None = None,
    ) -> Envelope[Any]:
        return await self.service.get(path, query=query, headers=headers, cancel_token=cancel_token, decode=decode)

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
        return await self.service.post(
            path, data, query=query, headers=headers, cancel_token=cancel_token, decode=decode
        )

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
        return await self.service.put(
            path, data, query=query, headers=headers, cancel_token=cancel_token, decode=decode
        )

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
        return await self.service.delete(
            path, data, query=query, headers=headers, cancel_token=cancel_token, decode=decode
        )

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
        return await self.service.patch(
            path, data, query=query, headers=headers, cancel_token=cancel_token, decode=decode
        )

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
        return await self.service.upload(
            path,
            file=file,
            field_name=field_name,
            extra_data=extra_data,
            headers=headers,
            cancel_token=cancel_token,
            decode=decode,
        )

    def _bind(self, config: NetworkConfig) -> _Binding:
        logger.debug("binding network service to %s", config.base_url)
        return _Binding(config=config, service=self._service_factory(config))

    def _default_service(self, config: NetworkConfig) -> AsyncNetworkService:
        return AsyncNetworkService(config, connectivity=self._connectivity)


def initialize_network(
    *,
    base_url: str | None = None,
    auth_token: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> NetworkManager:
    """Configure the global :class:`NetworkManager` and return it."""
    config = NetworkConfig(
        base_url=base_url or DEFAULT_BASE_URL,
        auth_token=auth_token,
        default_headers=dict(headers) if headers is not None else default_headers(),
    )
    manager = NetworkManager.instance()
    manager.initialize(config)
    return manager
