"""Ordered exception resolver chain.

Each resolver either turns an error into an ``ErrorResponse`` or returns
``None`` to pass. The chain always ends with a ``FallbackResolver`` so that
every error yields a response.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from typing import Any, Protocol, runtime_checkable

from dispatchkit.core.errors import DispatchError, ResolverChainError
from dispatchkit.core.log_categories import ERROR
from dispatchkit.core.logging import get_logger
from dispatchkit.models.errors import ErrorBody, InternalServerError
from dispatchkit.models.http import ErrorResponse
from dispatchkit.services.codecs import CodecSet, media_range_matches


logger = get_logger(__name__)

ErrorTypes = type[Exception] | tuple[type[Exception], ...]


@runtime_checkable
class ExceptionResolver(Protocol):
    """Maps an error to a response, or returns None when it does not apply."""

    def try_resolve(self, error: Exception) -> ErrorResponse | None: ...


def error_body(
    error_type: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Standard ``{"error": {...}}`` body."""
    return ErrorBody.create(error_type, message, details or None).to_dict()


class ErrorTypeResolver:
    """Resolver scoped to a set of exception classes with a fixed status."""

    def __init__(
        self,
        error_types: ErrorTypes,
        status_code: int,
        error_type: str | None = None,
        message: str | None = None,
    ) -> None:
        self.error_types = error_types
        self.status_code = status_code
        self.error_type = error_type
        self.message = message

    def try_resolve(self, error: Exception) -> ErrorResponse | None:
        if not isinstance(error, self.error_types):
            return None
        error_type = self.error_type or getattr(error, "error_type", None)
        return ErrorResponse(
            status_code=self.status_code,
            body=error_body(
                error_type or _snake_case(type(error).__name__),
                self.message or str(error),
            ),
        )


class CallableResolver:
    """Wraps a plain function as a resolver for some exception classes."""

    def __init__(
        self,
        error_types: ErrorTypes,
        func: Callable[[Any], ErrorResponse | None],
    ) -> None:
        self.error_types = error_types
        self.func = func

    def try_resolve(self, error: Exception) -> ErrorResponse | None:
        if not isinstance(error, self.error_types):
            return None
        return self.func(error)

    def __repr__(self) -> str:
        return f"CallableResolver({getattr(self.func, '__name__', self.func)!r})"


def exception_handler(
    *error_types: type[Exception],
) -> Callable[[Callable[[Any], ErrorResponse | None]], CallableResolver]:
    """Decorator turning a function into a ``CallableResolver``.

    Example::

        @exception_handler(KeyError)
        def missing_key(error: KeyError) -> ErrorResponse:
            return ErrorResponse(404, error_body("missing_key", str(error)))
    """
    if not error_types:
        raise ValueError("exception_handler needs at least one exception class")

    def decorator(func: Callable[[Any], ErrorResponse | None]) -> CallableResolver:
        return CallableResolver(error_types, func)

    return decorator


class DispatchErrorResolver:
    """Renders any ``DispatchError`` from its own status, type and details."""

    def try_resolve(self, error: Exception) -> ErrorResponse | None:
        if not isinstance(error, DispatchError):
            return None
        return ErrorResponse(
            status_code=error.status_code,
            body=error_body(error.error_type, error.message, error.details),
        )


class FallbackResolver:
    """Catch-all: always a 500 with a generic body."""

    def __init__(self, include_details: bool = False) -> None:
        self.include_details = include_details

    def try_resolve(self, error: Exception) -> ErrorResponse:
        if self.include_details:
            body = error_body(
                "internal_server_error",
                str(error) or type(error).__name__,
                {"exception": type(error).__name__},
            )
        else:
            body = InternalServerError().to_dict()
        return ErrorResponse(status_code=500, body=body)


class ExceptionResolverChain:
    """Resolvers walked in registration order; the first response wins."""

    def __init__(
        self,
        resolvers: Iterable[ExceptionResolver] = (),
        codecs: CodecSet | None = None,
        error_media_type: str = "application/json",
    ) -> None:
        ordered = list(resolvers)
        for index, resolver in enumerate(ordered):
            if not isinstance(resolver, ExceptionResolver):
                raise ResolverChainError(
                    f"{resolver!r} does not implement try_resolve(error)"
                )
            if isinstance(resolver, FallbackResolver) and index != len(ordered) - 1:
                raise ResolverChainError(
                    "FallbackResolver must be the last resolver in the chain"
                )
        if not ordered or not isinstance(ordered[-1], FallbackResolver):
            ordered.append(FallbackResolver())

        self._resolvers: tuple[ExceptionResolver, ...] = tuple(ordered)
        self.codecs = codecs
        self.error_media_type = error_media_type

    @property
    def resolvers(self) -> tuple[ExceptionResolver, ...]:
        return self._resolvers

    def resolve(
        self, error: Exception, accepted_media_types: Sequence[str] = ()
    ) -> ErrorResponse:
        """Produce an error response; never raises for an ``Exception``."""
        response: ErrorResponse | None = None
        for resolver in self._resolvers:
            try:
                response = resolver.try_resolve(error)
            except Exception as resolver_error:
                logger.error(
                    "exception_resolver_failed",
                    resolver=type(resolver).__name__,
                    error=str(resolver_error),
                    original_error=type(error).__name__,
                    exc_info=resolver_error,
                    category=ERROR,
                )
                continue
            if response is not None:
                logger.debug(
                    "exception_resolved",
                    resolver=type(resolver).__name__,
                    error_type=type(error).__name__,
                    status_code=response.status_code,
                    category=ERROR,
                )
                break

        if response is None:
            # Only reachable when the fallback itself failed.
            response = ErrorResponse(500, InternalServerError().to_dict())

        if response.media_type is None:
            response = replace(
                response, media_type=self._negotiate(accepted_media_types)
            )
        return response

    def _negotiate(self, accepted_media_types: Sequence[str]) -> str:
        """Prefer the configured error media type when the client accepts it."""
        if not accepted_media_types or any(
            media_range_matches(r, self.error_media_type) for r in accepted_media_types
        ):
            return self.error_media_type
        if self.codecs is not None:
            codec = self.codecs.negotiate(accepted_media_types)
            if codec is not None:
                return codec.media_type
        return self.error_media_type


def _snake_case(name: str) -> str:
    chars: list[str] = []
    for index, char in enumerate(name):
        if char.isupper() and index:
            chars.append("_")
        chars.append(char.lower())
    return "".join(chars)


def default_resolvers(include_details: bool = False) -> list[ExceptionResolver]:
    """Dispatch errors by their own status, everything else as a 500."""
    return [DispatchErrorResolver(), FallbackResolver(include_details)]
