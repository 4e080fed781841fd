"""Front controller: runs one request through routing, invocation and encoding.

Each request gets a fresh ``DispatchRun`` that walks

    ROUTING -> RESOLVING_ARGS -> INVOKING -> ENCODING -> DONE

with ERROR reachable from the first four states. Only the sealed registry,
container, codec set and resolver chain are shared between requests.
"""

import asyncio
import inspect
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import structlog

from dispatchkit.config.dispatch import DispatchSettings
from dispatchkit.core.errors import NotFoundError, RequestError
from dispatchkit.core.log_categories import DISPATCH
from dispatchkit.core.logging import get_logger
from dispatchkit.models.errors import InternalServerError
from dispatchkit.models.http import Request, Response, ResponseEntity
from dispatchkit.routing.registry import RouteEntry, RouteMatch, RouteRegistry
from dispatchkit.services.arguments import ArgumentResolver
from dispatchkit.services.codecs import CodecSet, JsonCodec
from dispatchkit.services.container import DependencyContainer
from dispatchkit.services.exceptions import ExceptionResolverChain


logger = get_logger(__name__)


class DispatchState(str, Enum):
    ROUTING = "routing"
    RESOLVING_ARGS = "resolving_args"
    INVOKING = "invoking"
    ENCODING = "encoding"
    ERROR = "error"
    DONE = "done"


_TRANSITIONS: dict[DispatchState, frozenset[DispatchState]] = {
    DispatchState.ROUTING: frozenset(
        {DispatchState.RESOLVING_ARGS, DispatchState.ERROR}
    ),
    DispatchState.RESOLVING_ARGS: frozenset(
        {DispatchState.INVOKING, DispatchState.ERROR}
    ),
    DispatchState.INVOKING: frozenset({DispatchState.ENCODING, DispatchState.ERROR}),
    DispatchState.ENCODING: frozenset({DispatchState.DONE, DispatchState.ERROR}),
    DispatchState.ERROR: frozenset({DispatchState.DONE}),
    DispatchState.DONE: frozenset(),
}

_JSON = JsonCodec()


@dataclass(slots=True)
class ResolvedCall:
    """A handler entrypoint bound to its resolved arguments."""

    handler: Any
    entrypoint: Callable[..., Any]
    args: tuple[Any, ...]

    async def invoke(self) -> Any:
        if inspect.iscoroutinefunction(self.entrypoint):
            return await self.entrypoint(*self.args)
        # Blocking handlers run in a worker thread.
        result = await asyncio.to_thread(self.entrypoint, *self.args)
        if inspect.isawaitable(result):
            result = await result
        return result


@dataclass(slots=True)
class DispatchRun:
    """State of one request's trip through the dispatcher."""

    request: Request
    request_id: str
    state: DispatchState = DispatchState.ROUTING
    history: list[DispatchState] = field(
        default_factory=lambda: [DispatchState.ROUTING]
    )
    match: RouteMatch | None = None
    error: Exception | None = None
    response: Response | None = None

    def advance(self, state: DispatchState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal dispatch transition {self.state.value} -> {state.value}"
            )
        self.state = state
        self.history.append(state)

    def fail(self, error: Exception) -> None:
        self.error = error
        self.advance(DispatchState.ERROR)


class Dispatcher:
    """Dispatches normalized requests to registered handlers."""

    def __init__(
        self,
        registry: RouteRegistry,
        container: DependencyContainer,
        codecs: CodecSet,
        exception_chain: ExceptionResolverChain,
        arguments: ArgumentResolver | None = None,
        settings: DispatchSettings | None = None,
    ) -> None:
        self.registry = registry
        self.container = container
        self.codecs = codecs
        self.exception_chain = exception_chain
        self.arguments = arguments or ArgumentResolver(codecs)
        self.settings = settings or DispatchSettings()

    async def dispatch(self, request: Request) -> Response:
        """Dispatch a request; per-request errors never escape."""
        run = await self.run(request)
        if run.response is None:
            raise RuntimeError(f"Dispatch run {run.request_id} produced no response")
        return run.response

    async def run(self, request: Request) -> DispatchRun:
        """Dispatch a request and return the finished run."""
        request_id = request.header(self.settings.request_id_header) or uuid.uuid4().hex
        run = DispatchRun(request=request, request_id=request_id)
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id, method=request.method, path=request.path
        ):
            try:
                response = await self._execute(run)
            except Exception as error:
                run.fail(error)
                response = self._render_error(run, error)

            run.advance(DispatchState.DONE)
            response = replace(response, headers=dict(response.headers))
            response.headers.setdefault(self.settings.request_id_header, request_id)
            run.response = response

            logger.debug(
                "dispatch_completed",
                status_code=response.status_code,
                states=[state.value for state in run.history],
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                category=DISPATCH,
            )
        return run

    async def _execute(self, run: DispatchRun) -> Response:
        request = run.request

        match = self.registry.match(request.method, request.path)
        if match is None:
            raise NotFoundError(request.method, request.path)
        run.match = match
        entry = match.entry
        run.advance(DispatchState.RESOLVING_ARGS)

        args = self.arguments.resolve(entry.params, request, match.path_variables)
        run.advance(DispatchState.INVOKING)

        call = self._prepare_call(entry, args)
        result = await call.invoke()
        run.advance(DispatchState.ENCODING)

        return self._encode_result(result, request)

    def _prepare_call(self, entry: RouteEntry, args: tuple[Any, ...]) -> ResolvedCall:
        handler = self.container.resolve(entry.handler_ref)
        return ResolvedCall(
            handler=handler,
            entrypoint=getattr(handler, entry.entrypoint),
            args=args,
        )

    def _encode_result(self, result: Any, request: Request) -> Response:
        if isinstance(result, Response):
            return result

        status_code = 200
        headers: dict[str, str] = {}
        if isinstance(result, ResponseEntity):
            status_code = result.status_code
            headers.update(result.headers)
            result = result.body
            if result is None and status_code == 204:
                return Response(status_code=status_code, headers=headers)

        body, media_type = self.codecs.encode(result, request.accepted_media_types)
        headers["content-type"] = media_type
        return Response(status_code=status_code, headers=headers, body=body)

    def _render_error(self, run: DispatchRun, error: Exception) -> Response:
        if isinstance(error, RequestError):
            logger.info(
                "dispatch_request_error",
                error_type=error.error_type,
                status_code=error.status_code,
                error_message=error.message,
                failed_state=run.history[-2].value,
                category=DISPATCH,
            )
        else:
            logger.error(
                "dispatch_handler_error",
                error_type=type(error).__name__,
                error_message=str(error),
                failed_state=run.history[-2].value,
                exc_info=error,
                category=DISPATCH,
            )

        error_response = self.exception_chain.resolve(
            error, run.request.accepted_media_types
        )
        media_type = error_response.media_type or self.settings.error_media_type
        codec = self.codecs.get(media_type) or _JSON
        headers = dict(error_response.headers)
        try:
            body = codec.encode(error_response.body)
        except Exception as encode_error:
            logger.error(
                "error_body_encoding_failed",
                media_type=media_type,
                error=str(encode_error),
                exc_info=encode_error,
                category=DISPATCH,
            )
            headers["content-type"] = _JSON.media_type
            return Response(
                status_code=500,
                headers=headers,
                body=_JSON.encode(InternalServerError().to_dict()),
            )

        headers["content-type"] = (
            codec.media_type if codec is _JSON else media_type
        )
        return Response(
            status_code=error_response.status_code, headers=headers, body=body
        )

    def routes(self) -> list[RouteEntry]:
        return self.registry.routes()
