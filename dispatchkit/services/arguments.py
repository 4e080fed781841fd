"""Argument resolution: declared parameters to typed call arguments."""

import collections.abc
import types
import typing
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from dispatchkit.core.errors import MissingRequiredParameterError, TypeConversionError
from dispatchkit.models.descriptors import ParamSource, ParamSpec
from dispatchkit.models.http import Request
from dispatchkit.services.codecs import CodecSet, describe_type, get_type_adapter
from dispatchkit.services.codecs.base import is_passthrough


BODY_PREVIEW_LIMIT = 200

_SEQUENCE_ORIGINS = {
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.Set,
}

_MISSING = object()


def _is_sequence_type(target_type: Any) -> bool:
    """Whether a query parameter of this type takes every value, not the first."""
    origin = typing.get_origin(target_type)
    if origin in (typing.Union, types.UnionType):
        return any(
            _is_sequence_type(arg)
            for arg in typing.get_args(target_type)
            if arg is not type(None)
        )
    if origin is typing.Annotated:
        return _is_sequence_type(typing.get_args(target_type)[0])
    return origin in _SEQUENCE_ORIGINS or target_type in _SEQUENCE_ORIGINS


def _preview(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) > BODY_PREVIEW_LIMIT:
        return text[:BODY_PREVIEW_LIMIT] + "..."
    return text


class ArgumentResolver:
    """Extracts and converts handler arguments from a request.

    Parameters are resolved in declared order and resolution stops at the
    first failure.
    """

    def __init__(self, codecs: CodecSet) -> None:
        self.codecs = codecs

    def resolve(
        self,
        params: Sequence[ParamSpec],
        request: Request,
        path_variables: Mapping[str, str] | None = None,
    ) -> tuple[Any, ...]:
        """Resolve every parameter.

        Raises:
            MissingRequiredParameterError: A required parameter is absent.
            TypeConversionError: A value cannot be converted to its type.
            MalformedBodyError: The body does not parse.
            UnsupportedMediaTypeError: No codec for the body's content type.
        """
        variables = path_variables or {}
        return tuple(self.resolve_one(spec, request, variables) for spec in params)

    def resolve_one(
        self, spec: ParamSpec, request: Request, path_variables: Mapping[str, str]
    ) -> Any:
        if spec.source is ParamSource.BODY:
            value = self._read_body(spec, request)
        else:
            raw = self._extract(spec, request, path_variables)
            value = _MISSING if raw is _MISSING else self._convert(spec, raw)

        if value is _MISSING:
            if spec.required:
                raise MissingRequiredParameterError(spec.name, spec.source.value)
            return spec.default
        return value

    def _extract(
        self, spec: ParamSpec, request: Request, path_variables: Mapping[str, str]
    ) -> Any:
        match spec.source:
            case ParamSource.QUERY:
                values = request.query_params.get(spec.key)
                if not values:
                    return _MISSING
                return list(values) if _is_sequence_type(spec.type) else values[0]
            case ParamSource.PATH:
                return path_variables.get(spec.key, _MISSING)
            case ParamSource.HEADER:
                return request.headers.get(spec.key.lower(), _MISSING)
        raise ValueError(f"Unsupported parameter source: {spec.source}")

    def _convert(self, spec: ParamSpec, raw: Any) -> Any:
        if isinstance(raw, str) and is_passthrough(spec.type, str):
            return raw
        try:
            return get_type_adapter(spec.type).validate_python(raw)
        except ValidationError as e:
            raise TypeConversionError(spec.name, raw, describe_type(spec.type)) from e

    def _read_body(self, spec: ParamSpec, request: Request) -> Any:
        if not request.body:
            return _MISSING
        try:
            return self.codecs.decode(request.body, request.content_type, spec.type)
        except ValidationError as e:
            raise TypeConversionError(
                spec.name, _preview(request.body), describe_type(spec.type)
            ) from e
