"""ASGI boundary: translate between starlette and the dispatcher's values."""

from urllib.parse import quote

from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse
from starlette.types import Receive, Scope, Send

from dispatchkit.core.log_categories import LIFECYCLE
from dispatchkit.core.logging import get_logger
from dispatchkit.models.http import Request, Response
from dispatchkit.services.dispatcher import Dispatcher


logger = get_logger(__name__)


def _raw_path(scope: Scope) -> str:
    """Return the request path still percent-encoded, as the client sent it."""
    raw_path = scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").partition("?")[0]
    return quote(scope["path"], safe="/")


async def to_dispatch_request(request: StarletteRequest) -> Request:
    """Read a starlette request into a normalized request."""
    headers: dict[str, str] = {}
    for name, value in request.headers.items():
        if name in headers:
            headers[name] = f"{headers[name]}, {value}"
        else:
            headers[name] = value

    return Request.build(
        request.method,
        _raw_path(request.scope),
        query=request.url.query,
        headers=headers,
        body=await request.body(),
    )


def to_starlette_response(response: Response) -> StarletteResponse:
    return StarletteResponse(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )


class DispatchASGIApp:
    """ASGI application that hands every HTTP request to a dispatcher."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        request = await to_dispatch_request(StarletteRequest(scope, receive))
        response = await self.dispatcher.dispatch(request)
        await to_starlette_response(response)(scope, receive, send)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.info(
                    "asgi_startup", routes=len(self.dispatcher.registry), category=LIFECYCLE
                )
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                logger.info("asgi_shutdown", category=LIFECYCLE)
                await send({"type": "lifespan.shutdown.complete"})
                return


def create_asgi_app(dispatcher: Dispatcher) -> DispatchASGIApp:
    return DispatchASGIApp(dispatcher)
