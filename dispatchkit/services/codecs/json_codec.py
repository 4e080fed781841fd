"""JSON codec."""

import json
from typing import Any

import pydantic_core

from dispatchkit.core.errors import MalformedBodyError

from .base import get_type_adapter, is_passthrough


class JsonCodec:
    """``application/json`` via pydantic serialization and validation.

    Encoding accepts anything pydantic can serialize: models, dataclasses,
    datetimes and plain containers. Decoding validates the parsed document
    against the target type; a document that does not parse is a
    ``MalformedBodyError``.
    """

    media_type = "application/json"

    def encode(self, value: Any) -> bytes:
        return pydantic_core.to_json(value)

    def decode(self, data: bytes, target_type: Any) -> Any:
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedBodyError(self.media_type, str(e)) from e
        if is_passthrough(target_type):
            return parsed
        return get_type_adapter(target_type).validate_python(parsed)
