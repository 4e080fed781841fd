"""URL-encoded form codec."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel

from dispatchkit.core.errors import MalformedBodyError

from .base import get_type_adapter, is_passthrough


class FormCodec:
    """``application/x-www-form-urlencoded``.

    Decodes into a dict; a repeated field becomes a list of its values.
    """

    media_type = "application/x-www-form-urlencoded"

    def encode(self, value: Any) -> bytes:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        if not isinstance(value, Mapping):
            raise TypeError(
                f"{type(value).__name__} cannot be encoded as {self.media_type}"
            )
        return urlencode(value, doseq=True).encode("utf-8")

    def decode(self, data: bytes, target_type: Any) -> Any:
        try:
            pairs = parse_qsl(
                data.decode("utf-8"), keep_blank_values=True, strict_parsing=True
            )
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedBodyError(self.media_type, str(e)) from e

        fields: dict[str, Any] = {}
        for name, value in pairs:
            if name not in fields:
                fields[name] = value
            elif isinstance(fields[name], list):
                fields[name].append(value)
            else:
                fields[name] = [fields[name], value]

        if is_passthrough(target_type, dict):
            return fields
        return get_type_adapter(target_type).validate_python(fields)
