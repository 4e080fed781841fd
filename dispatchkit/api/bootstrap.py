"""Startup: build the sealed structures the dispatcher reads from.

Startup runs once, single-threaded, before any request is served. Any
``StartupError`` raised here means the configuration cannot work and the
process should not start serving.
"""

from collections.abc import Iterable

from dispatchkit.config.settings import Settings
from dispatchkit.core.errors import InvalidHandlerError
from dispatchkit.core.log_categories import LIFECYCLE
from dispatchkit.core.logging import get_logger
from dispatchkit.models.descriptors import ConstructorSpec, HandlerDescriptor
from dispatchkit.routing.registry import RouteEntry, RouteRegistry
from dispatchkit.services.arguments import ArgumentResolver
from dispatchkit.services.codecs import Codec, CodecSet, default_codecs
from dispatchkit.services.container import DependencyContainer
from dispatchkit.services.dispatcher import Dispatcher
from dispatchkit.services.exceptions import (
    ExceptionResolver,
    ExceptionResolverChain,
    FallbackResolver,
    default_resolvers,
)


logger = get_logger(__name__)


def create_container(
    components: Iterable[ConstructorSpec],
    instances: dict[object, object] | None = None,
) -> DependencyContainer:
    """Register and build every component."""
    container = DependencyContainer()
    for key, instance in (instances or {}).items():
        container.register_instance(key, instance)
    container.register_all(components)
    container.build()
    return container


def create_registry(descriptors: Iterable[HandlerDescriptor]) -> RouteRegistry:
    """Register every descriptor and seal the registry."""
    registry = RouteRegistry()
    for descriptor in descriptors:
        registry.register(RouteEntry.from_descriptor(descriptor))
    registry.seal()
    return registry


def validate_handlers(registry: RouteRegistry, container: DependencyContainer) -> None:
    """Every route must reach a container instance with a callable entrypoint."""
    for entry in registry.routes():
        handler = container.resolve(entry.handler_ref)
        if not callable(getattr(handler, entry.entrypoint, None)):
            raise InvalidHandlerError(entry.handler_ref, entry.entrypoint, entry.describe())


def create_exception_chain(
    resolvers: Iterable[ExceptionResolver] | None,
    codecs: CodecSet,
    settings: Settings,
) -> ExceptionResolverChain:
    ordered = list(resolvers or [])
    if not any(isinstance(r, FallbackResolver) for r in ordered):
        ordered.extend(default_resolvers(settings.dispatch.include_error_details))
    return ExceptionResolverChain(
        ordered, codecs=codecs, error_media_type=settings.dispatch.error_media_type
    )


def build_dispatcher(
    descriptors: Iterable[HandlerDescriptor],
    components: Iterable[ConstructorSpec] = (),
    *,
    instances: dict[object, object] | None = None,
    codecs: Iterable[Codec] | None = None,
    resolvers: Iterable[ExceptionResolver] | None = None,
    settings: Settings | None = None,
) -> Dispatcher:
    """Build a ready-to-serve dispatcher.

    Args:
        descriptors: Static route declarations
        components: Constructor specs for handlers and the services they use
        instances: Prebuilt instances registered under their keys
        codecs: Codecs in preference order (defaults to the built-in set)
        resolvers: Exception resolvers tried before the built-in ones
        settings: Engine settings (defaults to ``Settings()``)

    Raises:
        StartupError: The configuration is unresolvable.
    """
    settings = settings or Settings()
    descriptors = list(descriptors)

    container = create_container(components, instances)
    registry = create_registry(descriptors)
    validate_handlers(registry, container)

    codec_set = CodecSet(
        codecs if codecs is not None else default_codecs(),
        default_media_type=settings.dispatch.default_media_type,
    )
    chain = create_exception_chain(resolvers, codec_set, settings)

    logger.info(
        "dispatcher_ready",
        routes=len(registry),
        components=len(container.keys()),
        codecs=codec_set.media_types,
        resolvers=[type(r).__name__ for r in chain.resolvers],
        category=LIFECYCLE,
    )

    return Dispatcher(
        registry=registry,
        container=container,
        codecs=codec_set,
        exception_chain=chain,
        arguments=ArgumentResolver(codec_set),
        settings=settings.dispatch,
    )
