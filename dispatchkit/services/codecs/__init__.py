"""Pluggable encoders and decoders keyed by media type."""

from .base import Codec, describe_type, get_type_adapter, media_range_matches
from .binary import BytesCodec
from .codec_set import CodecSet
from .form import FormCodec
from .json_codec import JsonCodec
from .text import TextCodec


def default_codecs() -> list[Codec]:
    """Built-in codecs; JSON first so ``*/*`` resolves to JSON."""
    return [JsonCodec(), TextCodec(), FormCodec(), BytesCodec()]


__all__ = [
    "Codec",
    "CodecSet",
    "BytesCodec",
    "FormCodec",
    "JsonCodec",
    "TextCodec",
    "default_codecs",
    "describe_type",
    "get_type_adapter",
    "media_range_matches",
]
