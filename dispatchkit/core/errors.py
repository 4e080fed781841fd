"""Exception hierarchy for the dispatch engine.

Startup errors describe an unresolvable configuration and abort startup.
Request errors happen while serving a single request and are always turned
into an error response by the exception resolver chain.
"""

from typing import Any


class DispatchError(Exception):
    """Base exception for dispatch errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "internal_server_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


# Startup errors


class StartupError(DispatchError):
    """Configuration error detected while building the engine."""

    def __init__(
        self,
        message: str,
        error_type: str = "startup_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message, error_type=error_type, status_code=500, details=details
        )


class InvalidRoutePatternError(StartupError):
    """Route pattern cannot be parsed."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid route pattern '{pattern}': {reason}",
            error_type="invalid_route_pattern",
            details={"pattern": pattern, "reason": reason},
        )
        self.pattern = pattern
        self.reason = reason


class DuplicateRouteError(StartupError):
    """Two routes share the same method and normalized pattern."""

    def __init__(self, method: str, pattern: str, existing_pattern: str) -> None:
        super().__init__(
            message=(
                f"Route {method} {pattern} conflicts with already registered "
                f"route {method} {existing_pattern}"
            ),
            error_type="duplicate_route",
            details={
                "method": method,
                "pattern": pattern,
                "existing_pattern": existing_pattern,
            },
        )
        self.method = method
        self.pattern = pattern
        self.existing_pattern = existing_pattern


class RegistrySealedError(StartupError):
    """Route registered after the registry was sealed."""

    def __init__(self, method: str, pattern: str) -> None:
        super().__init__(
            message=f"Cannot register {method} {pattern}: route registry is sealed",
            error_type="registry_sealed",
            details={"method": method, "pattern": pattern},
        )


def type_name(key: object) -> str:
    """Readable name of a dependency key or handler type."""
    return getattr(key, "__qualname__", None) or getattr(key, "__name__", str(key))


class MissingDependencyError(StartupError):
    """A dependency type was never registered with the container."""

    def __init__(self, dependency: object, required_by: object | None = None) -> None:
        name = type_name(dependency)
        if required_by is not None:
            message = (
                f"Dependency {name} required by {type_name(required_by)} "
                "is not registered"
            )
        else:
            message = f"Dependency {name} is not registered"
        super().__init__(
            message=message,
            error_type="missing_dependency",
            details={
                "dependency": name,
                "required_by": type_name(required_by) if required_by else None,
            },
        )
        self.dependency = dependency
        self.required_by = required_by


class CyclicDependencyError(StartupError):
    """Dependency graph contains a cycle."""

    def __init__(self, cycle: list[object]) -> None:
        names = [type_name(key) for key in cycle]
        super().__init__(
            message=f"Cyclic dependency detected: {' -> '.join(names)}",
            error_type="cyclic_dependency",
            details={"cycle": names},
        )
        self.cycle = cycle


class DuplicateDependencyError(StartupError):
    """The same key was registered twice with the container."""

    def __init__(self, key: object) -> None:
        super().__init__(
            message=f"Dependency {type_name(key)} is already registered",
            error_type="duplicate_dependency",
            details={"dependency": type_name(key)},
        )
        self.key = key


class ContainerSealedError(StartupError):
    """Container modified after build()."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Cannot {operation}: dependency container is sealed",
            error_type="container_sealed",
            details={"operation": operation},
        )
        self.operation = operation


class ContainerNotBuiltError(StartupError):
    """Instance requested before build()."""

    def __init__(self, key: object) -> None:
        super().__init__(
            message=(
                f"Cannot resolve {type_name(key)}: dependency container "
                "has not been built"
            ),
            error_type="container_not_built",
            details={"dependency": type_name(key)},
        )


class DuplicateCodecError(StartupError):
    """Two codecs registered for one media type."""

    def __init__(self, media_type: str) -> None:
        super().__init__(
            message=f"Codec for media type '{media_type}' already registered",
            error_type="duplicate_codec",
            details={"media_type": media_type},
        )
        self.media_type = media_type


class InvalidHandlerError(StartupError):
    """Handler instance does not expose the declared entrypoint."""

    def __init__(self, handler: object, entrypoint: str, route: str) -> None:
        super().__init__(
            message=(
                f"Handler {type_name(handler)} for route {route} has no "
                f"callable entrypoint '{entrypoint}'"
            ),
            error_type="invalid_handler",
            details={
                "handler": type_name(handler),
                "entrypoint": entrypoint,
                "route": route,
            },
        )


class ResolverChainError(StartupError):
    """Exception resolver chain is misconfigured."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_type="resolver_chain_error")


# Request errors


class RequestError(DispatchError):
    """Error raised while dispatching a single request."""


class NotFoundError(RequestError):
    """No route matches the request (404)."""

    def __init__(self, method: str, path: str) -> None:
        super().__init__(
            message=f"No route matches {method} {path}",
            error_type="not_found_error",
            status_code=404,
            details={"method": method, "path": path},
        )
        self.method = method
        self.path = path


class MissingRequiredParameterError(RequestError):
    """Required handler parameter is absent (400)."""

    def __init__(self, name: str, source: str) -> None:
        super().__init__(
            message=f"Missing required {source} parameter '{name}'",
            error_type="missing_parameter_error",
            status_code=400,
            details={"parameter": name, "source": source},
        )
        self.name = name
        self.source = source


class TypeConversionError(RequestError):
    """Parameter value cannot be converted to its declared type (400)."""

    def __init__(self, name: str, raw_value: Any, expected: str) -> None:
        super().__init__(
            message=(
                f"Parameter '{name}' value {raw_value!r} cannot be converted "
                f"to {expected}"
            ),
            error_type="type_conversion_error",
            status_code=400,
            details={"parameter": name, "value": raw_value, "expected": expected},
        )
        self.name = name
        self.raw_value = raw_value
        self.expected = expected


class MalformedBodyError(RequestError):
    """Request body is not valid for its media type (400)."""

    def __init__(self, media_type: str, reason: str) -> None:
        super().__init__(
            message=f"Malformed {media_type} body: {reason}",
            error_type="malformed_body_error",
            status_code=400,
            details={"media_type": media_type, "reason": reason},
        )
        self.media_type = media_type
        self.reason = reason


class NotAcceptableError(RequestError):
    """No codec satisfies the client's accepted media types (406)."""

    def __init__(self, requested: list[str], available: list[str]) -> None:
        super().__init__(
            message=(
                f"None of the accepted media types {requested} can be produced; "
                f"available: {available}"
            ),
            error_type="not_acceptable_error",
            status_code=406,
            details={"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class UnsupportedMediaTypeError(RequestError):
    """No codec can decode the request body (415)."""

    def __init__(self, media_type: str, available: list[str]) -> None:
        super().__init__(
            message=f"Unsupported media type '{media_type}'; available: {available}",
            error_type="unsupported_media_type_error",
            status_code=415,
            details={"media_type": media_type, "available": available},
        )
        self.media_type = media_type
        self.available = available


__all__ = [
    "DispatchError",
    "StartupError",
    "RequestError",
    "InvalidRoutePatternError",
    "DuplicateRouteError",
    "RegistrySealedError",
    "MissingDependencyError",
    "CyclicDependencyError",
    "DuplicateDependencyError",
    "ContainerSealedError",
    "ContainerNotBuiltError",
    "DuplicateCodecError",
    "InvalidHandlerError",
    "ResolverChainError",
    "NotFoundError",
    "MissingRequiredParameterError",
    "TypeConversionError",
    "MalformedBodyError",
    "NotAcceptableError",
    "UnsupportedMediaTypeError",
    "type_name",
]
