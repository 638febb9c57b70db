"""Payload decoder resolution for envelope builders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar, get_origin

from pydantic import TypeAdapter

T = TypeVar("T")

Decoder = Callable[[Any], T]

_adapter_cache: dict[Any, TypeAdapter[Any]] = {}


def adapter_for(target: Any) -> TypeAdapter[Any]:
    try:
        adapter = _adapter_cache.get(target)
    except TypeError:
        return TypeAdapter(target)

    if adapter is None:
        adapter = TypeAdapter(target)
        _adapter_cache[target] = adapter
    return adapter


def resolve_decoder(decode: Any) -> Callable[[Any], Any]:
    """Turn a type or callable into a single-argument decoder.

    Types (pydantic models, dataclasses, ``list[Model]`` and other typing
    constructs) are validated through a cached ``TypeAdapter``. Any other
    callable is used as-is. Validation errors are not wrapped.
    """
    if isinstance(decode, type) or get_origin(decode) is not None:
        adapter = adapter_for(decode)
        return adapter.validate_python
    if callable(decode):
        return decode
    raise TypeError(f"decode must be a type or callable, got {type(decode).__name__}")
