"""Error body models rendered by the exception resolver chain."""

from typing import Annotated, Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Error detail information."""

    type: Annotated[str, Field(description="Error type identifier")]
    message: Annotated[str, Field(description="Human-readable error message")]
    details: Annotated[
        dict[str, Any] | None,
        Field(description="Structured context such as the parameter name"),
    ] = None


class ErrorBody(BaseModel):
    """Top-level error body: ``{"error": {...}}``."""

    error: Annotated[ErrorDetail, Field(description="Error details")]

    @classmethod
    def create(
        cls, error_type: str, message: str, details: dict[str, Any] | None = None
    ) -> "ErrorBody":
        return cls(error=ErrorDetail(type=error_type, message=message, details=details))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InternalServerError(ErrorBody):
    """Generic body for unexpected failures (500)."""

    error: Annotated[ErrorDetail, Field(description="Error details")] = ErrorDetail(
        type="internal_server_error", message="Internal server error"
    )
