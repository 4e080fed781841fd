"""Dispatch services: container, codecs, argument and exception resolution."""

from .arguments import ArgumentResolver
from .codecs import CodecSet, default_codecs
from .container import DependencyContainer
from .dispatcher import DispatchRun, DispatchState, Dispatcher, ResolvedCall
from .exceptions import (
    CallableResolver,
    DispatchErrorResolver,
    ErrorTypeResolver,
    ExceptionResolverChain,
    FallbackResolver,
    error_body,
    exception_handler,
)


__all__ = [
    "ArgumentResolver",
    "CodecSet",
    "default_codecs",
    "DependencyContainer",
    "DispatchRun",
    "DispatchState",
    "Dispatcher",
    "ResolvedCall",
    "CallableResolver",
    "DispatchErrorResolver",
    "ErrorTypeResolver",
    "ExceptionResolverChain",
    "FallbackResolver",
    "error_body",
    "exception_handler",
]
