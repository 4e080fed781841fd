"""Data models exchanged between the dispatcher and its collaborators."""

from .descriptors import (
    ConstructorSpec,
    HandlerDescriptor,
    ParamSource,
    ParamSpec,
    normalize_method,
)
from .errors import ErrorBody, ErrorDetail, InternalServerError
from .http import (
    ErrorResponse,
    Request,
    Response,
    ResponseEntity,
    base_media_type,
    parse_accept_header,
)


__all__ = [
    "ConstructorSpec",
    "HandlerDescriptor",
    "ParamSource",
    "ParamSpec",
    "normalize_method",
    "ErrorBody",
    "ErrorDetail",
    "InternalServerError",
    "ErrorResponse",
    "Request",
    "Response",
    "ResponseEntity",
    "base_media_type",
    "parse_accept_header",
]
