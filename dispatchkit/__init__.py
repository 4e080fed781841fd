"""Request dispatch kernel: routing, argument resolution, codecs and error resolution."""

from ._version import __version__
from .api.bootstrap import build_dispatcher
from .models import (
    ConstructorSpec,
    ErrorResponse,
    HandlerDescriptor,
    ParamSource,
    ParamSpec,
    Request,
    Response,
    ResponseEntity,
)
from .services.dispatcher import Dispatcher


__all__ = [
    "__version__",
    "build_dispatcher",
    "ConstructorSpec",
    "Dispatcher",
    "ErrorResponse",
    "HandlerDescriptor",
    "ParamSource",
    "ParamSpec",
    "Request",
    "Response",
    "ResponseEntity",
]
