"""
Response envelope shared by every endpoint.

Every body has the shape ``{statusCode, data, message, success}``.
Build it with ``api_response`` (success) or ``error_response`` (failure)
rather than constructing dicts at call sites.
"""

from typing import Any, Generic, TypeVar

from fastapi import status
from pydantic import Field, computed_field

from app.core.json_response import UTCJSONResponse
from app.schemas.base import CamelModel

T = TypeVar("T")


class ApiResponse(CamelModel, Generic[T]):
    """Uniform JSON envelope."""

    status_code: int = Field(default=status.HTTP_200_OK)
    data: T | None = None
    message: str = "Success"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.status_code < 400


class ErrorResponse(ApiResponse[None]):
    """Envelope for failed requests, optionally listing validation errors."""

    errors: list[dict[str, Any]] | None = None


class EmptyData(CamelModel):
    """Placeholder payload for operations that return nothing."""


def api_response(
    data: T | None = None,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
) -> ApiResponse[T]:
    """Build a success envelope."""
    return ApiResponse[T](status_code=status_code, data=data, message=message)


def error_response(
    status_code: int,
    message: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> UTCJSONResponse:
    """Build a failure envelope as a ready-to-send JSON response."""
    body = ErrorResponse(status_code=status_code, message=message, errors=errors)
    return UTCJSONResponse(
        status_code=status_code,
        content=body.model_dump(
            mode="json", by_alias=True, exclude={"errors"} if errors is None else None
        ),
        headers=headers,
    )
