"""Codec protocol and shared conversion helpers."""

from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

from dispatchkit.models.http import base_media_type


@runtime_checkable
class Codec(Protocol):
    """Encoder/decoder for one media type."""

    media_type: str

    def encode(self, value: Any) -> bytes: ...

    def decode(self, data: bytes, target_type: Any) -> Any: ...


@lru_cache(maxsize=512)
def _cached_type_adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


def get_type_adapter(target_type: Any) -> TypeAdapter[Any]:
    """Pydantic adapter used to convert raw values to declared types."""
    try:
        return _cached_type_adapter(target_type)
    except TypeError:
        # unhashable annotations are not cached
        return TypeAdapter(target_type)


def describe_type(target_type: Any) -> str:
    """Readable name of a declared type for error messages."""
    if isinstance(target_type, type):
        return target_type.__name__
    return str(target_type).replace("typing.", "")


def is_passthrough(target_type: Any, *raw_types: type) -> bool:
    """Whether a decoded value of ``raw_types`` already satisfies the target."""
    return target_type is Any or target_type is object or target_type in raw_types


def media_range_matches(media_range: str, media_type: str) -> bool:
    """Whether an ``Accept`` media range covers a concrete media type."""
    accepted = base_media_type(media_range)
    concrete = base_media_type(media_type)
    if accepted in ("*/*", "*"):
        return True
    if accepted.endswith("/*"):
        return concrete.startswith(accepted[:-1])
    return accepted == concrete
