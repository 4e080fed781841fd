"""Tests for the dispatch exception hierarchy."""

import pytest

from dispatchkit.core.errors import (
    ContainerSealedError,
    CyclicDependencyError,
    DispatchError,
    DuplicateRouteError,
    MalformedBodyError,
    MissingDependencyError,
    MissingRequiredParameterError,
    NotAcceptableError,
    NotFoundError,
    RequestError,
    StartupError,
    TypeConversionError,
    UnsupportedMediaTypeError,
    type_name,
)


class Database:
    pass


class Repository:
    pass


@pytest.mark.unit
class TestDispatchError:
    """Test DispatchError base exception."""

    def test_init_with_defaults(self) -> None:
        error = DispatchError("Test message")
        assert str(error) == "Test message"
        assert error.message == "Test message"
        assert error.error_type == "internal_server_error"
        assert error.status_code == 500
        assert error.details == {}

    def test_init_with_custom_values(self) -> None:
        details = {"field": "value"}
        error = DispatchError(
            message="Custom message",
            error_type="custom_error",
            status_code=418,
            details=details,
        )
        assert error.error_type == "custom_error"
        assert error.status_code == 418
        assert error.details == details


@pytest.mark.unit
class TestStartupErrors:
    """Startup errors abort startup and are never request errors."""

    def test_duplicate_route(self) -> None:
        error = DuplicateRouteError("GET", "/a/{y}", "/a/{x}")
        assert isinstance(error, StartupError)
        assert not isinstance(error, RequestError)
        assert error.error_type == "duplicate_route"
        assert "/a/{x}" in error.message
        assert error.details == {
            "method": "GET",
            "pattern": "/a/{y}",
            "existing_pattern": "/a/{x}",
        }

    def test_missing_dependency_names_both_types(self) -> None:
        error = MissingDependencyError(Database, required_by=Repository)
        assert error.dependency is Database
        assert error.required_by is Repository
        assert "Database" in error.message
        assert "Repository" in error.message
        assert error.details["required_by"] == "Repository"

    def test_missing_dependency_without_requirer(self) -> None:
        error = MissingDependencyError(Database)
        assert error.message == "Dependency Database is not registered"
        assert error.details["required_by"] is None

    def test_cyclic_dependency_lists_cycle(self) -> None:
        error = CyclicDependencyError([Database, Repository, Database])
        assert error.message == (
            "Cyclic dependency detected: Database -> Repository -> Database"
        )
        assert error.details == {"cycle": ["Database", "Repository", "Database"]}

    def test_container_sealed(self) -> None:
        error = ContainerSealedError("register")
        assert error.operation == "register"
        assert error.status_code == 500


@pytest.mark.unit
class TestRequestErrors:
    """Request errors carry the status they render with."""

    @pytest.mark.parametrize(
        ("error", "status_code", "error_type"),
        [
            (NotFoundError("GET", "/nope"), 404, "not_found_error"),
            (
                MissingRequiredParameterError("type", "query"),
                400,
                "missing_parameter_error",
            ),
            (TypeConversionError("id", "abc", "int"), 400, "type_conversion_error"),
            (MalformedBodyError("application/json", "eof"), 400, "malformed_body_error"),
            (
                NotAcceptableError(["image/png"], ["application/json"]),
                406,
                "not_acceptable_error",
            ),
            (
                UnsupportedMediaTypeError("text/csv", ["application/json"]),
                415,
                "unsupported_media_type_error",
            ),
        ],
    )
    def test_status_and_type(
        self, error: RequestError, status_code: int, error_type: str
    ) -> None:
        assert isinstance(error, RequestError)
        assert error.status_code == status_code
        assert error.error_type == error_type

    def test_missing_parameter_details(self) -> None:
        error = MissingRequiredParameterError("type", "query")
        assert error.name == "type"
        assert error.source == "query"
        assert error.details == {"parameter": "type", "source": "query"}
        assert error.message == "Missing required query parameter 'type'"

    def test_type_conversion_details(self) -> None:
        error = TypeConversionError("id", "abc", "int")
        assert error.raw_value == "abc"
        assert error.expected == "int"
        assert error.details == {"parameter": "id", "value": "abc", "expected": "int"}


@pytest.mark.unit
class TestTypeName:
    def test_uses_qualified_name(self) -> None:
        class Inner:
            pass

        assert type_name(Database) == "Database"
        assert type_name(Inner).endswith("test_uses_qualified_name.<locals>.Inner")

    def test_falls_back_to_str(self) -> None:
        assert type_name("settings") == "settings"
