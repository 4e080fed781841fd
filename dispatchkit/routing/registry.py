"""Route registry with deterministic precedence.

Entries are kept sorted from most to least specific per HTTP method, so a
lookup returns the first entry whose pattern matches. Equally specific
patterns would make that choice arbitrary and are rejected on registration.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from http import HTTPMethod
from types import MappingProxyType
from typing import Any

from dispatchkit.core.errors import (
    DuplicateRouteError,
    InvalidRoutePatternError,
    RegistrySealedError,
)
from dispatchkit.core.log_categories import ROUTING
from dispatchkit.core.logging import get_logger
from dispatchkit.models.descriptors import (
    HandlerDescriptor,
    ParamSource,
    ParamSpec,
    normalize_method,
)
from dispatchkit.routing.pattern import PathPattern, split_path


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A registered route."""

    method: HTTPMethod
    pattern: PathPattern
    handler_ref: Any
    params: tuple[ParamSpec, ...] = ()
    entrypoint: str = "invoke"
    name: str | None = None

    @classmethod
    def from_descriptor(cls, descriptor: HandlerDescriptor) -> "RouteEntry":
        pattern = PathPattern.parse(descriptor.path)
        declared_path_params = {
            p.key for p in descriptor.params if p.source is ParamSource.PATH
        }
        unknown = declared_path_params - set(pattern.variable_names)
        if unknown:
            # A path parameter the pattern never binds can never resolve.
            raise InvalidRoutePatternError(
                descriptor.path,
                f"path parameters {sorted(unknown)} are not bound by the pattern",
            )
        return cls(
            method=descriptor.method,
            pattern=pattern,
            handler_ref=descriptor.handler_type,
            params=descriptor.params,
            entrypoint=descriptor.entrypoint,
            name=descriptor.display_name,
        )

    def describe(self) -> str:
        return f"{self.method.value} {self.pattern}"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful lookup."""

    entry: RouteEntry
    path_variables: Mapping[str, str]


class RouteRegistry:
    """Registry of route entries keyed by method and normalized pattern."""

    def __init__(self) -> None:
        self._routes: dict[HTTPMethod, list[RouteEntry]] = {}
        self._index: dict[tuple[HTTPMethod, str], RouteEntry] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, entry: RouteEntry) -> None:
        """Add an entry.

        Raises:
            DuplicateRouteError: If an entry with the same method and
                normalized pattern exists.
            RegistrySealedError: If the registry is sealed.
        """
        if self._sealed:
            raise RegistrySealedError(entry.method.value, entry.pattern.raw)

        key = (entry.method, entry.pattern.normalized)
        existing = self._index.get(key)
        if existing is not None:
            raise DuplicateRouteError(
                entry.method.value, entry.pattern.raw, existing.pattern.raw
            )

        self._index[key] = entry
        routes = self._routes.setdefault(entry.method, [])
        routes.append(entry)
        routes.sort(key=lambda e: e.pattern.precedence_key(), reverse=True)

        logger.debug(
            "route_registered",
            method=entry.method.value,
            pattern=entry.pattern.raw,
            handler=entry.name,
            category=ROUTING,
        )

    def register_all(self, entries: Iterable[RouteEntry]) -> None:
        for entry in entries:
            self.register(entry)

    def seal(self) -> None:
        """Freeze the registry; later registrations fail."""
        if self._sealed:
            return
        self._routes = MappingProxyType(  # type: ignore[assignment]
            {method: tuple(entries) for method, entries in self._routes.items()}
        )
        self._sealed = True
        logger.debug("route_registry_sealed", routes=len(self), category=ROUTING)

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Find the most specific entry for a request, or None."""
        try:
            candidates = self._routes.get(normalize_method(method), ())
        except ValueError:
            return None

        segments = split_path(path)
        for entry in candidates:
            bindings = entry.pattern.match(segments)
            if bindings is not None:
                return RouteMatch(entry=entry, path_variables=MappingProxyType(bindings))
        return None

    def routes(self) -> list[RouteEntry]:
        """All entries, grouped by method, most specific first."""
        return [entry for method in sorted(self._routes) for entry in self._routes[method]]

    def __len__(self) -> int:
        return len(self._index)
