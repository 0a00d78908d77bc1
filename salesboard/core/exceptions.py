"""Application exceptions and their FastAPI handlers.

Query failures are request-scoped: the executor raises, the handler logs the
cause with the request_id and answers with an opaque RFC 7807 document. No
query is retried.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from salesboard.core.logging import get_logger
from salesboard.core.problem_details import ErrorCode, ProblemDetailResponse, problem_response

logger = get_logger(__name__)


class SalesboardError(Exception):
    """Base exception for Salesboard application errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Human-readable message. Logged; only returned for 4xx.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Context for the log (query names, timeout).
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class DatabaseError(SalesboardError):
    """An aggregate query failed in the data source.

    Raised by the query executor when the driver or SQLAlchemy reports an
    error. ``details["query"]`` names the failing statement.
    """

    def __init__(
        self,
        message: str = "Database operation failed",
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.DATABASE_ERROR,
    ) -> None:
        super().__init__(message=message, code=code, status_code=500, details=details)


class QueryTimeoutError(DatabaseError):
    """The request's query batch did not finish within its deadline."""

    def __init__(
        self,
        timeout_seconds: float,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Queries did not complete within {timeout_seconds}s",
            details={"timeout_seconds": timeout_seconds, **(details or {})},
            code=ErrorCode.QUERY_TIMEOUT,
        )


async def salesboard_exception_handler(
    request: Request,
    exc: SalesboardError,
) -> ProblemDetailResponse:
    """Log an application error and answer with its problem document."""
    logger.error(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code.value,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )
    return problem_response(exc.status_code, exc.code, detail=exc.message)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Report request validation failures field by field.

    Query parameters are parsed leniently, so this only fires for malformed
    requests that never reach the filter parser.
    """
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        path=request.url.path,
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        422,
        ErrorCode.VALIDATION_ERROR,
        detail=f"Request validation failed with {len(field_errors)} error(s).",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Last resort for anything not raised as a SalesboardError."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=exc,
    )
    return problem_response(500, ErrorCode.INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(SalesboardError, salesboard_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
