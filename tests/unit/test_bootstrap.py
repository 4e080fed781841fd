"""Tests for dispatcher startup wiring."""

import pytest

from dispatchkit import ConstructorSpec, HandlerDescriptor, Request, build_dispatcher
from dispatchkit.config import Settings
from dispatchkit.core.errors import (
    CyclicDependencyError,
    DuplicateRouteError,
    InvalidHandlerError,
    MissingDependencyError,
    StartupError,
)
from dispatchkit.services.codecs import JsonCodec
from dispatchkit.services.exceptions import FallbackResolver


class Clock:
    def now(self) -> str:
        return "12:00"


class TimeHandler:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def invoke(self) -> str:
        return self.clock.now()


class Secret:
    def invoke(self) -> None:
        raise LookupError("vault key v-17")


@pytest.mark.unit
class TestBuildDispatcher:
    def test_builds_sealed_structures(self) -> None:
        dispatcher = build_dispatcher(
            [HandlerDescriptor("GET", "/time", TimeHandler)],
            [ConstructorSpec(TimeHandler, (Clock,)), ConstructorSpec(Clock)],
        )
        assert dispatcher.registry.sealed
        assert dispatcher.container.sealed
        assert dispatcher.codecs.media_types[0] == "application/json"
        assert isinstance(dispatcher.exception_chain.resolvers[-1], FallbackResolver)

    def test_prebuilt_instances(self) -> None:
        clock = Clock()
        dispatcher = build_dispatcher(
            [HandlerDescriptor("GET", "/time", TimeHandler)],
            [ConstructorSpec(TimeHandler, (Clock,))],
            instances={Clock: clock},
        )
        assert dispatcher.container.resolve(TimeHandler).clock is clock

    def test_missing_handler_component(self) -> None:
        with pytest.raises(MissingDependencyError):
            build_dispatcher([HandlerDescriptor("GET", "/time", TimeHandler)])

    def test_missing_entrypoint(self) -> None:
        with pytest.raises(InvalidHandlerError) as exc_info:
            build_dispatcher(
                [HandlerDescriptor("GET", "/time", TimeHandler, entrypoint="handle")],
                [ConstructorSpec(TimeHandler, (Clock,)), ConstructorSpec(Clock)],
            )
        assert exc_info.value.details["route"] == "GET /time"

    def test_duplicate_route(self) -> None:
        with pytest.raises(DuplicateRouteError):
            build_dispatcher(
                [
                    HandlerDescriptor("GET", "/t/{a}", TimeHandler),
                    HandlerDescriptor("GET", "/t/{b}", TimeHandler),
                ],
                [ConstructorSpec(TimeHandler, (Clock,)), ConstructorSpec(Clock)],
            )

    def test_cycle_is_a_startup_error(self) -> None:
        with pytest.raises(CyclicDependencyError) as exc_info:
            build_dispatcher(
                [HandlerDescriptor("GET", "/time", TimeHandler)],
                [
                    ConstructorSpec(TimeHandler, (Clock,)),
                    ConstructorSpec(Clock, (TimeHandler,), factory=lambda _: Clock()),
                ],
            )
        assert isinstance(exc_info.value, StartupError)

    def test_custom_codecs(self) -> None:
        dispatcher = build_dispatcher(
            [HandlerDescriptor("GET", "/time", TimeHandler)],
            [ConstructorSpec(TimeHandler, (Clock,)), ConstructorSpec(Clock)],
            codecs=[JsonCodec()],
        )
        assert dispatcher.codecs.media_types == ["application/json"]


@pytest.mark.unit
class TestSettingsWiring:
    async def test_include_error_details(self) -> None:
        settings = Settings.from_config(dispatch={"include_error_details": True})
        dispatcher = build_dispatcher(
            [HandlerDescriptor("GET", "/secret", Secret)],
            [ConstructorSpec(Secret)],
            settings=settings,
        )
        response = await dispatcher.dispatch(Request.build("GET", "/secret"))
        assert response.status_code == 500
        assert response.json()["error"]["message"] == "vault key v-17"

    async def test_custom_request_id_header(self) -> None:
        settings = Settings.from_config(dispatch={"request_id_header": "x-trace"})
        dispatcher = build_dispatcher(
            [HandlerDescriptor("GET", "/time", TimeHandler)],
            [ConstructorSpec(TimeHandler, (Clock,)), ConstructorSpec(Clock)],
            settings=settings,
        )
        response = await dispatcher.dispatch(
            Request.build("GET", "/time", headers={"X-Trace": "abc"})
        )
        assert response.headers["x-trace"] == "abc"
        assert response.json() == "12:00"
