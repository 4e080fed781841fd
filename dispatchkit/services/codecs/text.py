"""Plain text codec."""

import dataclasses
import json
import types
from collections.abc import Mapping
from typing import Any, Union, get_args, get_origin

import pydantic_core
from pydantic import BaseModel

from dispatchkit.core.errors import MalformedBodyError

from .base import get_type_adapter, is_passthrough


_DOCUMENT_TYPES = (Mapping, list, tuple, set, frozenset, BaseModel)


def _is_document_type(target_type: Any) -> bool:
    """Whether values of ``target_type`` are written as JSON text."""
    origin = get_origin(target_type)
    if origin is Union or origin is types.UnionType:
        return any(
            _is_document_type(arg) for arg in get_args(target_type) if arg is not type(None)
        )
    candidate = origin or target_type
    if not isinstance(candidate, type):
        return False
    return issubclass(candidate, _DOCUMENT_TYPES) or dataclasses.is_dataclass(candidate)


class TextCodec:
    """``text/plain``; non-string targets go through pydantic's lax conversion.

    Structured values (mappings, lists, models) are written as JSON text and
    read back the same way, so they survive an encode/decode round trip.
    """

    media_type = "text/plain"

    def __init__(self, charset: str = "utf-8") -> None:
        self.charset = charset

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        if value is None:
            return b""
        if isinstance(value, Mapping | list | tuple | BaseModel):
            return pydantic_core.to_json(value)
        return str(value).encode(self.charset)

    def decode(self, data: bytes, target_type: Any) -> Any:
        try:
            text = data.decode(self.charset)
        except UnicodeDecodeError as e:
            raise MalformedBodyError(self.media_type, str(e)) from e
        if is_passthrough(target_type, str):
            return text
        if _is_document_type(target_type):
            try:
                document = json.loads(text)
            except json.JSONDecodeError as e:
                raise MalformedBodyError(self.media_type, str(e)) from e
            return get_type_adapter(target_type).validate_python(document)
        return get_type_adapter(target_type).validate_python(text)
