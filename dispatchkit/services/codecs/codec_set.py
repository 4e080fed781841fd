"""Content negotiation over a fixed set of codecs."""

from collections.abc import Iterable, Sequence
from types import MappingProxyType
from typing import Any

from dispatchkit.core.errors import (
    DuplicateCodecError,
    NotAcceptableError,
    UnsupportedMediaTypeError,
)
from dispatchkit.core.log_categories import CODEC
from dispatchkit.core.logging import get_logger
from dispatchkit.models.http import base_media_type

from .base import Codec, media_range_matches


logger = get_logger(__name__)

ANY_MEDIA_TYPE = ("*/*",)


class CodecSet:
    """Codecs keyed by media type, fixed at construction.

    Registration order matters: when an accepted range such as ``*/*``
    covers several codecs, the first registered one is chosen.
    """

    def __init__(
        self,
        codecs: Iterable[Codec],
        default_media_type: str = "application/json",
    ) -> None:
        ordered: list[Codec] = []
        by_type: dict[str, Codec] = {}
        for codec in codecs:
            if not isinstance(codec, Codec):
                raise TypeError(f"{codec!r} does not implement the Codec protocol")
            media_type = base_media_type(codec.media_type)
            if media_type in by_type:
                raise DuplicateCodecError(media_type)
            by_type[media_type] = codec
            ordered.append(codec)
            logger.debug(
                "codec_registered",
                media_type=media_type,
                codec=type(codec).__name__,
                category=CODEC,
            )

        self._codecs: tuple[Codec, ...] = tuple(ordered)
        self._by_type = MappingProxyType(by_type)
        self.default_media_type = base_media_type(default_media_type)

    @property
    def media_types(self) -> list[str]:
        return [base_media_type(codec.media_type) for codec in self._codecs]

    def get(self, media_type: str) -> Codec | None:
        return self._by_type.get(base_media_type(media_type))

    def negotiate(self, accepted_media_types: Sequence[str]) -> Codec | None:
        """First codec covered by the caller's preferences, in preference order."""
        for media_range in accepted_media_types or ANY_MEDIA_TYPE:
            for codec in self._codecs:
                if media_range_matches(media_range, codec.media_type):
                    return codec
        return None

    def encode(
        self, value: Any, accepted_media_types: Sequence[str]
    ) -> tuple[bytes, str]:
        """Encode with the preferred acceptable codec.

        Raises:
            NotAcceptableError: No registered codec matches any accepted range.
        """
        codec = self.negotiate(accepted_media_types)
        if codec is None:
            raise NotAcceptableError(list(accepted_media_types), self.media_types)
        return codec.encode(value), codec.media_type

    def decode(
        self, data: bytes, content_media_type: str | None, target_type: Any
    ) -> Any:
        """Decode a body sent as ``content_media_type`` into ``target_type``.

        Raises:
            UnsupportedMediaTypeError: No codec for the content type.
            MalformedBodyError: The payload is structurally invalid.
            pydantic.ValidationError: The payload does not fit ``target_type``.
        """
        media_type = base_media_type(content_media_type or self.default_media_type)
        codec = self._by_type.get(media_type)
        if codec is None:
            raise UnsupportedMediaTypeError(media_type, self.media_types)
        return codec.decode(data, target_type)

    def __len__(self) -> int:
        return len(self._codecs)
