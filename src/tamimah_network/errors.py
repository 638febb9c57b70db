"""Error hierarchy and failure classification for tamimah-network."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx


class ErrorKind(str, Enum):
    NO_CONNECTION = "no_connection"
    TIMEOUT = "timeout"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    SERVER_ERROR = "server_error"
    CONNECTION_ERROR = "connection_error"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_CONNECTION: "No internet connection. Please check your network and try again.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.BAD_REQUEST: "Invalid request. Please check your input.",
    ErrorKind.UNAUTHORIZED: "You are not authorized to perform this action.",
    ErrorKind.FORBIDDEN: "Access forbidden. You don't have permission for this action.",
    ErrorKind.NOT_FOUND: "The requested resource was not found.",
    ErrorKind.VALIDATION_ERROR: "Please check your input and try again.",
    ErrorKind.SERVER_ERROR: "Server error occurred. Please try again later.",
    ErrorKind.CONNECTION_ERROR: "Connection error. Please check your internet connection.",
    ErrorKind.CANCELLED: "Request was cancelled.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}

_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.TIMEOUT,
        ErrorKind.CONNECTION_ERROR,
        ErrorKind.SERVER_ERROR,
        ErrorKind.NO_CONNECTION,
    }
)

_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.VALIDATION_ERROR,
}


@dataclass(slots=True)
class RequestDetails:
    method: str
    path: str
    status_code: int | None = None
    response_body: Any | None = None


class TamimahNetworkError(Exception):
    """Base class for all tamimah-network errors."""


class NetworkError(TamimahNetworkError):
    """A classified failure of one network operation."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        *,
        status_code: int | None = None,
        errors: Mapping[str, Any] | None = None,
        details: RequestDetails | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.errors = dict(errors) if errors is not None else None
        self.details = details

    @classmethod
    def from_status_code(
        cls,
        status_code: int,
        message: str,
        *,
        errors: Mapping[str, Any] | None = None,
        details: RequestDetails | None = None,
    ) -> "NetworkError":
        kind = kind_for_status(status_code) or ErrorKind.UNKNOWN
        return cls(message, kind, status_code=status_code, errors=errors, details=details)

    @classmethod
    def timeout(cls, message: str = "Request timeout") -> "NetworkError":
        return cls(message, ErrorKind.TIMEOUT)

    @classmethod
    def no_connection(cls) -> "NetworkError":
        return cls("No internet connection available", ErrorKind.NO_CONNECTION)

    @classmethod
    def cancelled(cls) -> "NetworkError":
        return cls("Request cancelled", ErrorKind.CANCELLED)

    @classmethod
    def unauthorized(cls, message: str) -> "NetworkError":
        return cls(message, ErrorKind.UNAUTHORIZED, status_code=401)

    @classmethod
    def server_error(cls, message: str) -> "NetworkError":
        return cls(message, ErrorKind.SERVER_ERROR, status_code=500)

    @property
    def is_retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    @property
    def is_auth_error(self) -> bool:
        return self.kind in (ErrorKind.UNAUTHORIZED, ErrorKind.FORBIDDEN)

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]

    def __repr__(self) -> str:
        return (
            f"NetworkError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r}, errors={self.errors!r})"
        )


class MissingPayloadError(TamimahNetworkError):
    """Raised when an envelope payload is forced but absent."""


def kind_for_status(status_code: int) -> ErrorKind | None:
    """Map an HTTP status to an error kind; ``None`` for 2xx responses."""
    if 200 <= status_code < 300:
        return None
    mapped = _STATUS_KINDS.get(status_code)
    if mapped is not None:
        return mapped
    # Every unmapped non-2xx status, 5xx included, is reported as a server error.
    return ErrorKind.SERVER_ERROR


def classify_response(
    status_code: int,
    body: Any,
    *,
    method: str,
    path: str,
) -> NetworkError | None:
    kind = kind_for_status(status_code)
    if kind is None:
        return None

    errors = body.get("errors") if isinstance(body, Mapping) else None
    return NetworkError(
        _message_from_body(body),
        kind,
        status_code=status_code,
        errors=errors if isinstance(errors, Mapping) else None,
        details=RequestDetails(
            method=method,
            path=path,
            status_code=status_code,
            response_body=body,
        ),
    )


def classify_exception(error: BaseException, *, method: str, path: str) -> NetworkError:
    if isinstance(error, NetworkError):
        return error

    details = RequestDetails(method=method, path=path)
    if isinstance(error, httpx.TimeoutException):
        return NetworkError("Request timeout", ErrorKind.TIMEOUT, details=details)
    # A peer that hangs up mid-exchange surfaces as RemoteProtocolError.
    if isinstance(error, (httpx.NetworkError, httpx.ProxyError, httpx.RemoteProtocolError)):
        return NetworkError("Connection error", ErrorKind.CONNECTION_ERROR, details=details)
    return NetworkError(f"Unexpected error: {error}", ErrorKind.UNKNOWN, details=details)


def _message_from_body(body: Any) -> str:
    if isinstance(body, Mapping):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
        status = body.get("ResponseStatus")
        if isinstance(status, Mapping):
            message = status.get("Message")
            if isinstance(message, str) and message:
                return message
    return "Server error"
