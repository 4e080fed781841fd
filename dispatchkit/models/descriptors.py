"""Static descriptors supplied at startup: handlers, parameters, constructors."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPMethod
from typing import Any


class ParamSource(str, Enum):
    """Where a handler parameter is read from."""

    QUERY = "query"
    PATH = "path"
    BODY = "body"
    HEADER = "header"


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """A declared handler parameter.

    ``alias`` is the raw key looked up in the source when it differs from
    the parameter name, e.g. ``X-Trace-Id`` for a header parameter
    ``trace_id``.
    """

    name: str
    source: ParamSource = ParamSource.QUERY
    type: Any = str
    required: bool = True
    default: Any = None
    alias: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Parameter name cannot be empty")
        object.__setattr__(self, "source", ParamSource(self.source))

    @property
    def key(self) -> str:
        """Raw key looked up in the parameter source."""
        return self.alias or self.name


def normalize_method(method: str | HTTPMethod) -> HTTPMethod:
    """Upper-case and validate an HTTP method."""
    try:
        return HTTPMethod(str(method).upper())
    except ValueError as e:
        raise ValueError(f"Unknown HTTP method: {method}") from e


@dataclass(frozen=True, slots=True)
class HandlerDescriptor:
    """Route declaration handed to the engine by an external collaborator.

    ``handler_type`` is the key of the handler instance in the dependency
    container; ``entrypoint`` is the method invoked on that instance.
    """

    method: HTTPMethod
    path: str
    handler_type: Any
    params: tuple[ParamSpec, ...] = ()
    entrypoint: str = "invoke"
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", normalize_method(self.method))
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        handler_name = getattr(self.handler_type, "__name__", str(self.handler_type))
        return f"{handler_name}.{self.entrypoint}"


@dataclass(frozen=True, slots=True)
class ConstructorSpec:
    """How the container builds one instance.

    The factory (the key itself when omitted) is called with the instances of
    ``dependencies`` as positional arguments, in declared order.
    """

    key: Any
    dependencies: tuple[Any, ...] = ()
    factory: Callable[..., Any] | None = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        if self.factory is None and not callable(self.key):
            raise ValueError(f"No factory given and key {self.key!r} is not callable")

    def construct(self, *args: Any) -> Any:
        factory = self.factory if self.factory is not None else self.key
        return factory(*args)
