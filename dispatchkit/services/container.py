"""Dependency container for handler and service instances.

Every instance is constructed once by ``build()`` in dependency order, after
which the container is sealed and lookups are plain reads of an immutable
mapping.
"""

from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any, TypeVar, cast

from dispatchkit.core.errors import (
    ContainerNotBuiltError,
    ContainerSealedError,
    CyclicDependencyError,
    DuplicateDependencyError,
    MissingDependencyError,
    type_name,
)
from dispatchkit.core.log_categories import CONTAINER
from dispatchkit.core.logging import get_logger
from dispatchkit.models.descriptors import ConstructorSpec


logger = get_logger(__name__)

T = TypeVar("T")


class DependencyContainer:
    """Dependency injection container with a one-shot build phase."""

    def __init__(self) -> None:
        self._specs: dict[object, ConstructorSpec] = {}
        self._provided: dict[object, Any] = {}
        self._instances: MappingProxyType[object, Any] | None = None

    @property
    def sealed(self) -> bool:
        return self._instances is not None

    def register(self, spec: ConstructorSpec) -> None:
        """Register how to construct one key."""
        self._ensure_open("register")
        self._ensure_new(spec.key)
        self._specs[spec.key] = spec
        logger.debug(
            "dependency_registered",
            key=type_name(spec.key),
            dependencies=[type_name(d) for d in spec.dependencies],
            category=CONTAINER,
        )

    def register_instance(self, key: object, instance: Any) -> None:
        """Register an already constructed instance under a key."""
        self._ensure_open("register")
        self._ensure_new(key)
        self._provided[key] = instance

    def register_all(self, specs: Iterable[ConstructorSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def build(self) -> None:
        """Construct every registered key and seal the container.

        Raises:
            MissingDependencyError: A declared dependency is not registered.
            CyclicDependencyError: The dependency graph has a cycle.
            ContainerSealedError: The container was already built.
        """
        self._ensure_open("build")

        for spec in self._specs.values():
            for dependency in spec.dependencies:
                if dependency not in self._specs and dependency not in self._provided:
                    raise MissingDependencyError(dependency, required_by=spec.key)

        built: dict[object, Any] = dict(self._provided)
        pending = [key for key in self._specs if key not in built]

        while pending:
            remaining: list[object] = []
            for key in pending:
                spec = self._specs[key]
                if all(dep in built for dep in spec.dependencies):
                    built[key] = spec.construct(*(built[d] for d in spec.dependencies))
                    logger.debug(
                        "dependency_constructed", key=type_name(key), category=CONTAINER
                    )
                else:
                    remaining.append(key)

            if len(remaining) == len(pending):
                raise CyclicDependencyError(self._find_cycle(remaining))
            pending = remaining

        self._instances = MappingProxyType(built)
        logger.info("container_built", instances=len(built), category=CONTAINER)

    def resolve(self, key: type[T]) -> T:
        """Return the singleton instance for a key."""
        instances = self._instances
        if instances is None:
            raise ContainerNotBuiltError(key)
        try:
            return cast(T, instances[key])
        except KeyError:
            raise MissingDependencyError(key) from None

    def keys(self) -> list[object]:
        return [*self._provided, *self._specs]

    def __contains__(self, key: object) -> bool:
        return key in self._specs or key in self._provided

    def __iter__(self) -> Iterator[object]:
        return iter(self.keys())

    def _ensure_open(self, operation: str) -> None:
        if self._instances is not None:
            raise ContainerSealedError(operation)

    def _ensure_new(self, key: object) -> None:
        if key in self._specs or key in self._provided:
            raise DuplicateDependencyError(key)

    def _find_cycle(self, unresolved: list[object]) -> list[object]:
        """Walk unresolved dependencies until a key repeats."""
        unresolved_set = set(unresolved)
        path: list[object] = []
        position: dict[object, int] = {}
        key = unresolved[0]
        while key not in position:
            position[key] = len(path)
            path.append(key)
            key = next(
                dep for dep in self._specs[key].dependencies if dep in unresolved_set
            )
        return [*path[position[key] :], key]

