"""Dispatch engine configuration settings."""

from pydantic import BaseModel, Field


class DispatchSettings(BaseModel):
    """Content negotiation and error rendering settings."""

    default_media_type: str = Field(
        default="application/json",
        description="Media type assumed for request bodies sent without a content type",
    )

    error_media_type: str = Field(
        default="application/json",
        description="Preferred media type for error bodies",
    )

    include_error_details: bool = Field(
        default=False,
        description="Expose the message of unexpected exceptions in 500 responses",
    )

    request_id_header: str = Field(
        default="x-request-id",
        description="Header carrying the request ID; echoed back on every response",
    )
