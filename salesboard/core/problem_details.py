"""RFC 7807 Problem Details for HTTP APIs.

Every error leaving the service uses this shape so the dashboard client can
branch on ``code`` without parsing messages. Server-side failures (5xx) all
carry the same opaque ``detail``; the cause is only in the log, correlated by
``request_id``. Error responses are never cacheable, whatever the endpoint's
normal ``Cache-Control`` policy is.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from enum import StrEnum
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from salesboard.core.logging import request_id_ctx

OPAQUE_SERVER_DETAIL = (
    "The aggregates could not be computed. Please retry, or contact support "
    "with the request_id."
)


class ErrorCode(StrEnum):
    """Machine-readable error codes, one problem type URI each."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def type_uri(self) -> str:
        return "/errors/" + self.value.lower().removesuffix("_error").replace("_", "-")

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()


class ProblemDetail(BaseModel):
    """RFC 7807 problem document with ``code`` and ``request_id`` extensions."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(..., description="Short summary of the problem type.")
    status: int = Field(..., ge=400, le=599, description="HTTP status code.")
    detail: str | None = Field(None, description="Occurrence-specific explanation.")
    instance: str | None = Field(None, description="URI reference for this occurrence.")
    errors: list[dict[str, Any]] | None = Field(None, description="Field-level errors.")
    code: ErrorCode | None = Field(None, description="Machine-readable error code.")
    request_id: str | None = Field(None, description="Request correlation ID.")


class ProblemDetailResponse(JSONResponse):
    """JSON response with the RFC 7807 media type."""

    media_type = "application/problem+json"


def problem_response(
    status: int,
    code: ErrorCode,
    detail: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetailResponse:
    """Build a non-cacheable problem+json response for the current request.

    Args:
        status: HTTP status code.
        code: Error code; selects the type URI and title.
        detail: Explanation for client errors. Replaced by the opaque
            server message when ``status`` is 5xx.
        errors: Field-level validation errors (optional).

    Returns:
        Response with the problem document as body.
    """
    request_id = request_id_ctx.get()
    problem = ProblemDetail(
        type=code.type_uri,
        title=code.title,
        status=status,
        detail=OPAQUE_SERVER_DETAIL if status >= 500 else detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        code=code,
        request_id=request_id,
    )

    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers={"Cache-Control": "no-store"},
    )
