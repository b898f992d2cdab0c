"""Structured output: model dataclasses to and from plain JSON-compatible data."""

from __future__ import annotations

from dataclasses import is_dataclass
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _adapter_for(obj: Any) -> TypeAdapter:
    # Lists and dicts of models go through Any, which serializes dataclasses by their fields.
    if is_dataclass(obj) and not isinstance(obj, type):
        return _adapter(type(obj))
    return _adapter(Any)


def to_dict(obj: Any) -> Any:
    return _adapter_for(obj).dump_python(obj, mode="json")


def to_json(obj: Any, *, indent: int | None = 2) -> str:
    return _adapter_for(obj).dump_json(obj, indent=indent).decode("utf-8")


def from_dict(cls: type[T], data: Any) -> T:
    """Rebuild ``cls`` from ``to_dict`` output; tagged unions are selected by ``kind``."""
    return _adapter(cls).validate_python(data)
