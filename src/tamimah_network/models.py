"""Response envelope and data-transfer models for tamimah-network."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .decoders import resolve_decoder
from .errors import MissingPayloadError

T = TypeVar("T")

UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ResponseStatus(BaseModel):
    """Status block of the backend envelope (``ResponseStatus`` key)."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int | None = Field(default=None, alias="Statuscode")
    message: str = Field(default="", alias="Message")
    localized_message: str | None = Field(default=None, alias="MessageAr")
    error_code: str = Field(default="", alias="ErrorCode")

    @field_validator("message", "error_code", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_json(cls, body: Mapping[str, Any]) -> ResponseStatus:
        return cls.model_validate(dict(body))

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def is_success(self) -> bool:
        return self.status_code == 200

    @property
    def is_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 400


@dataclass(slots=True)
class Envelope(Generic[T]):
    """Standardized wrapper around every backend response.

    ``is_success`` is governed by the status block alone; an envelope can be
    successful without a payload.
    """

    response_status: ResponseStatus | None
    total_count: int = 0
    index: int = 0
    page_size: int = 0
    data: T | None = None

    @classmethod
    def from_json(cls, body: Mapping[str, Any], decode: Any) -> Envelope[Any]:
        return cls._from_metadata(body).decode_data(body, decode)

    @classmethod
    def from_json_list(cls, body: Mapping[str, Any], decode: Any) -> Envelope[Any]:
        envelope = cls._from_metadata(body)
        payload = body.get("Data")
        if payload is None:
            return envelope
        if not isinstance(payload, list):
            raise TypeError(f"expected a list payload, got {type(payload).__name__}")
        envelope.data = resolve_decoder(decode)(payload)
        return envelope

    @classmethod
    def from_json_without_result(cls, body: Mapping[str, Any]) -> Envelope[Any]:
        # Payload is dropped even when present; callers assert none is expected.
        return cls._from_metadata(body)

    @classmethod
    def _from_metadata(cls, body: Mapping[str, Any]) -> Envelope[Any]:
        raw_status = body.get("ResponseStatus")
        status = ResponseStatus.from_json(raw_status) if isinstance(raw_status, Mapping) else None
        return cls(
            response_status=status,
            total_count=_int_or_zero(body.get("TotalCount")),
            index=_int_or_zero(body.get("Index")),
            page_size=_int_or_zero(body.get("PageSize")),
        )

    def decode_data(self, body: Mapping[str, Any], decode: Any) -> Envelope[Any]:
        """Decode ``body["Data"]`` into :attr:`data`. A null payload skips the decoder."""
        payload = body.get("Data")
        if payload is not None:
            self.data = resolve_decoder(decode)(payload)
        return self

    @property
    def is_success(self) -> bool:
        return self.response_status is not None and self.response_status.is_success

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def data_or_none(self) -> T | None:
        return self.data

    def data_or_raise(self) -> T:
        if self.data is None:
            raise MissingPayloadError("Data is null in response envelope")
        return self.data

    @property
    def error_message(self) -> str:
        if self.response_status is None:
            return UNKNOWN_ERROR_MESSAGE
        return self.response_status.message

    @property
    def localized_error_message(self) -> str | None:
        if self.response_status is None:
            return None
        return self.response_status.localized_message


# Ordered candidate keys per field; the first key holding a non-null value wins.
PAGINATION_ALIASES: dict[str, tuple[str, ...]] = {
    "current_page": ("current_page", "page", "Index"),
    "total_pages": ("total_pages", "last_page"),
    "total_items": ("total_items", "total", "TotalCount"),
    "items_per_page": ("items_per_page", "per_page", "PageSize"),
    "has_next_page": ("has_next_page", "has_next"),
    "has_previous_page": ("has_previous_page", "has_prev"),
}

PAGINATION_DEFAULTS: dict[str, Any] = {
    "current_page": 1,
    "total_pages": 1,
    "total_items": 0,
    "items_per_page": 10,
    "has_next_page": False,
    "has_previous_page": False,
}


@dataclass(frozen=True, slots=True)
class Pagination:
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: int = 10
    has_next_page: bool = False
    has_previous_page: bool = False

    @classmethod
    def from_json(cls, body: Mapping[str, Any]) -> Pagination:
        values = {
            name: first_present(body, keys, PAGINATION_DEFAULTS[name])
            for name, keys in PAGINATION_ALIASES.items()
        }
        return cls(**values)

    def to_json(self) -> dict[str, Any]:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "items_per_page": self.items_per_page,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
        }


def first_present(body: Mapping[str, Any], keys: tuple[str, ...], default: Any) -> Any:
    for key in keys:
        value = body.get(key)
        if value is not None:
            return value
    return default


@dataclass(slots=True)
class PaginatedResponse(Generic[T]):
    data: list[T] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)

    @classmethod
    def from_json(cls, body: Mapping[str, Any], decode: Any) -> PaginatedResponse[Any]:
        decoder = resolve_decoder(decode)
        items = body.get("data")
        data = [decoder(item) for item in items] if isinstance(items, list) else []

        meta = body.get("pagination") or body.get("meta") or {}
        pagination = Pagination.from_json(meta if isinstance(meta, Mapping) else {})
        return cls(data=data, pagination=pagination)

    def to_json(self) -> dict[str, Any]:
        return {"data": list(self.data), "pagination": self.pagination.to_json()}


class ApiErrorModel(BaseModel):
    message: str = UNKNOWN_ERROR_MESSAGE
    code: str | None = None
    details: dict[str, Any] | None = None
    errors: list[str] | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _default_message(cls, value: Any) -> Any:
        return UNKNOWN_ERROR_MESSAGE if value is None else value

    @field_validator("errors", mode="before")
    @classmethod
    def _stringify_errors(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class RequestModel(BaseModel):
    """Body, query and headers for one call, in the camelCase wire form."""

    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, Any] = Field(default_factory=dict)
    query_parameters: dict[str, Any] | None = Field(default=None, alias="queryParameters")
    headers: dict[str, str] | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ResponseModel(BaseModel, Generic[T]):
    """Flat ``success``/``message``/``data`` response shape used by some endpoints."""

    data: T | None = None
    success: bool = False
    message: str | None = None
    status_code: int | None = None
    error: ApiErrorModel | None = None

    @classmethod
    def succeeded(cls, data: Any, *, message: str | None = None, status_code: int | None = None) -> ResponseModel[Any]:
        return cls(data=data, success=True, message=message, status_code=status_code)

    @classmethod
    def failed(
        cls,
        message: str,
        *,
        status_code: int | None = None,
        error: ApiErrorModel | None = None,
    ) -> ResponseModel[Any]:
        return cls(success=False, message=message, status_code=status_code, error=error)

    @classmethod
    def from_json(cls, body: Mapping[str, Any], decode: Any | None = None) -> ResponseModel[Any]:
        """Read either ``"success": true`` or ``"status": "success"`` as success.

        ``data`` is decoded only for successful responses. Failures carry the
        body ``message`` (``"Unknown error"`` when absent) and the ``error`` block.
        """
        flag = body.get("success")
        success = bool(flag) if flag is not None else body.get("status") == "success"
        message = body.get("message") if isinstance(body.get("message"), str) else None
        status_code = _int_or_none(body.get("status_code"))

        if success:
            payload = body.get("data")
            data = resolve_decoder(decode)(payload) if decode is not None and payload is not None else None
            return cls.succeeded(data, message=message, status_code=status_code)

        raw_error = body.get("error")
        error = ApiErrorModel.model_validate(raw_error) if isinstance(raw_error, Mapping) else None
        return cls.failed(message or UNKNOWN_ERROR_MESSAGE, status_code=status_code, error=error)

    def to_json(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "success": self.success,
            "message": self.message,
            "status_code": self.status_code,
            "error": self.error.model_dump() if self.error is not None else None,
        }


class FileUploadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(default="", validation_alias=AliasChoices("file_name", "name"))
    file_path: str = Field(default="", validation_alias=AliasChoices("file_path", "path"))
    mime_type: str = Field(default="", validation_alias=AliasChoices("mime_type", "type"))
    file_size: int = Field(default=0, validation_alias=AliasChoices("file_size", "size"))
    metadata: dict[str, Any] | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump()


def _int_or_zero(value: Any) -> int:
    return _int_or_none(value) or 0


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
