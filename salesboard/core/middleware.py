"""Request correlation and access logging."""

import re
import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from salesboard.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Client ids end up in log lines and problem documents.
_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Probes hit these every few seconds; keep them out of the info stream.
QUIET_PATHS = frozenset({"/health", "/health/ready"})


def resolve_request_id(header_value: str | None) -> str:
    """Use the caller's id when it is a plain token, else mint a UUID4."""
    if header_value and _CLIENT_ID.match(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and log its outcome.

    The query string is logged with the completion event: it is the whole
    filter context of an analytics request.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            log = logger.debug if request.url.path in QUIET_PATHS else logger.info
            log(
                "http.request_completed",
                method=request.method,
                path=request.url.path,
                query=request.url.query or None,
                status_code=response.status_code,
                cache_control=response.headers.get("Cache-Control"),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_ctx.reset(token)
