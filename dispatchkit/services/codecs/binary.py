"""Raw bytes codec."""

from typing import Any

from .base import get_type_adapter, is_passthrough


class BytesCodec:
    """``application/octet-stream``: bytes in, bytes out."""

    media_type = "application/octet-stream"

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bytes | bytearray | memoryview):
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        raise TypeError(
            f"{type(value).__name__} cannot be encoded as {self.media_type}"
        )

    def decode(self, data: bytes, target_type: Any) -> Any:
        if is_passthrough(target_type, bytes):
            return data
        return get_type_adapter(target_type).validate_python(data)
