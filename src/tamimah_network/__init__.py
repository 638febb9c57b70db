"""tamimah-network: REST client conveniences over httpx.

This module uses lazy exports so lightweight pieces (for example config and
envelope models) can be imported without immediately building transports.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ApiErrorModel",
    "AsyncConnectivityChecker",
    "AsyncHookMiddleware",
    "AsyncNetworkService",
    "AsyncSocketConnectivityChecker",
    "CancelToken",
    "ConfigRetryPolicy",
    "ConnectivityChecker",
    "Envelope",
    "ErrorKind",
    "FileUploadModel",
    "HookRegistry",
    "LoggingMiddleware",
    "MissingPayloadError",
    "NetworkConfig",
    "NetworkError",
    "NetworkManager",
    "NetworkService",
    "PaginatedResponse",
    "Pagination",
    "RequestCall",
    "RequestModel",
    "ResponseModel",
    "ResponseStatus",
    "RetryPolicy",
    "SocketConnectivityChecker",
    "SyncHookMiddleware",
    "TamimahNetworkError",
    "initialize_network",
]

_EXPORTS: dict[str, tuple[str, str]] = {
    "CancelToken": (".cancel", "CancelToken"),
    "NetworkConfig": (".config", "NetworkConfig"),
    "AsyncSocketConnectivityChecker": (".connectivity", "AsyncSocketConnectivityChecker"),
    "SocketConnectivityChecker": (".connectivity", "SocketConnectivityChecker"),
    "ErrorKind": (".errors", "ErrorKind"),
    "MissingPayloadError": (".errors", "MissingPayloadError"),
    "NetworkError": (".errors", "NetworkError"),
    "TamimahNetworkError": (".errors", "TamimahNetworkError"),
    "HookRegistry": (".hooks", "HookRegistry"),
    "LoggingMiddleware": (".hooks", "LoggingMiddleware"),
    "RequestCall": (".hooks", "RequestCall"),
    "NetworkManager": (".manager", "NetworkManager"),
    "initialize_network": (".manager", "initialize_network"),
    "ApiErrorModel": (".models", "ApiErrorModel"),
    "Envelope": (".models", "Envelope"),
    "FileUploadModel": (".models", "FileUploadModel"),
    "PaginatedResponse": (".models", "PaginatedResponse"),
    "Pagination": (".models", "Pagination"),
    "RequestModel": (".models", "RequestModel"),
    "ResponseModel": (".models", "ResponseModel"),
    "ResponseStatus": (".models", "ResponseStatus"),
    "AsyncConnectivityChecker": (".protocols", "AsyncConnectivityChecker"),
    "AsyncHookMiddleware": (".protocols", "AsyncHookMiddleware"),
    "ConnectivityChecker": (".protocols", "ConnectivityChecker"),
    "RetryPolicy": (".protocols", "RetryPolicy"),
    "SyncHookMiddleware": (".protocols", "SyncHookMiddleware"),
    "ConfigRetryPolicy": (".retry", "ConfigRetryPolicy"),
    "AsyncNetworkService": (".service", "AsyncNetworkService"),
    "NetworkService": (".service", "NetworkService"),
}

if TYPE_CHECKING:
    from .cancel import CancelToken
    from .config import NetworkConfig
    from .connectivity import AsyncSocketConnectivityChecker, SocketConnectivityChecker
    from .errors import ErrorKind, MissingPayloadError, NetworkError, TamimahNetworkError
    from .hooks import HookRegistry, LoggingMiddleware, RequestCall
    from .manager import NetworkManager, initialize_network
    from .models import (
        ApiErrorModel,
        Envelope,
        FileUploadModel,
        PaginatedResponse,
        Pagination,
        RequestModel,
        ResponseModel,
        ResponseStatus,
    )
    from .protocols import (
        AsyncConnectivityChecker,
        AsyncHookMiddleware,
        ConnectivityChecker,
        RetryPolicy,
        SyncHookMiddleware,
    )
    from .retry import ConfigRetryPolicy
    from .service import AsyncNetworkService, NetworkService


def __getattr__(name: str) -> Any:
    module_info = _EXPORTS.get(name)
    if module_info is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attribute = module_info
    module = import_module(module_name, __name__)
    value = getattr(module, attribute)
    globals()[name] = value
    return value
