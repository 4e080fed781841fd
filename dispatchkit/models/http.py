"""Normalized request and response values exchanged with the transport boundary."""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl


def parse_accept_header(value: str | None) -> tuple[str, ...]:
    """Parse an ``Accept`` header into media ranges, most preferred first.

    Ranges are ordered by descending q-value; equal q-values keep header
    order. Ranges with ``q=0`` are dropped. Parameters other than ``q`` are
    discarded.
    """
    if not value:
        return ()

    ranked: list[tuple[float, int, str]] = []
    for index, part in enumerate(value.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        media_range = pieces[0].lower()
        if not media_range:
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, raw = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(raw.strip())
                except ValueError:
                    quality = 1.0
        if quality <= 0:
            continue
        ranked.append((-quality, index, media_range))

    ranked.sort()
    return tuple(media_range for _, _, media_range in ranked)


def base_media_type(media_type: str) -> str:
    """Strip parameters: ``text/plain; charset=utf-8`` -> ``text/plain``."""
    return media_type.split(";", 1)[0].strip().lower()


def _freeze_query(
    query: str | Mapping[str, str | Sequence[str]] | None,
) -> Mapping[str, tuple[str, ...]]:
    collected: dict[str, list[str]] = {}
    if query is None:
        pass
    elif isinstance(query, str):
        for name, value in parse_qsl(query, keep_blank_values=True):
            collected.setdefault(name, []).append(value)
    else:
        for name, values in query.items():
            if isinstance(values, str):
                collected.setdefault(name, []).append(values)
            else:
                collected.setdefault(name, []).extend(values)
    return MappingProxyType({k: tuple(v) for k, v in collected.items()})


@dataclass(frozen=True, slots=True)
class Request:
    """An incoming request as seen by the dispatcher.

    ``path`` is the raw, still percent-encoded request path. Header names are
    lower-case and query parameters are multi-valued, however the request is
    constructed.
    """

    method: str
    path: str
    query_params: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: bytes = b""
    accepted_media_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        headers = MappingProxyType(
            {name.lower(): value for name, value in self.headers.items()}
        )
        accepted = tuple(self.accepted_media_types) or parse_accept_header(
            headers.get("accept")
        )
        body = self.body.encode("utf-8") if isinstance(self.body, str) else self.body

        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", self.path or "/")
        object.__setattr__(self, "query_params", _freeze_query(self.query_params))
        object.__setattr__(self, "headers", headers)
        object.__setattr__(self, "body", bytes(body))
        object.__setattr__(self, "accepted_media_types", accepted)

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        query: str | Mapping[str, str | Sequence[str]] | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
        accepted_media_types: Sequence[str] | None = None,
    ) -> "Request":
        """Build a request from loosely typed parts.

        A query string embedded in ``path`` is split off when ``query`` is not
        given. Accepted media types default to the parsed ``Accept`` header.
        """
        if query is None and "?" in path:
            path, _, query = path.partition("?")

        return cls(
            method=method,
            path=path,
            query_params=_freeze_query(query),
            headers=headers or {},
            body=body,  # type: ignore[arg-type]
            accepted_media_types=tuple(accepted_media_types or ()),
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)


@dataclass(slots=True)
class Response:
    """Outgoing response handed back to the transport boundary."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def media_type(self) -> str | None:
        return self.headers.get("content-type")

    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(frozen=True, slots=True)
class ResponseEntity:
    """Handler return value carrying an explicit status and headers.

    The body is negotiated and encoded like a plain return value.
    """

    body: Any = None
    status_code: int = 200
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """Structured error produced by the exception resolver chain.

    ``media_type`` is chosen by the chain when a resolver leaves it unset.
    """

    status_code: int
    body: Any
    media_type: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
