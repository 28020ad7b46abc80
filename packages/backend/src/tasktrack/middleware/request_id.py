"""Request ID middleware — unique ID per request, plus an access log line.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header (so a proxy's ID is kept) or a fresh uuid4 hex. The ID is bound
to structlog's contextvars so it appears in every log entry written
while handling the request, and it is echoed in the response header.

Client-supplied IDs are only trusted if they are short and printable;
anything else is replaced.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def _accept_request_id(value: str | None) -> str:
    if value and len(value) <= MAX_REQUEST_ID_LENGTH and value.isprintable():
        return value
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log method, path, status and timing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _accept_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request.state.request_id = request_id

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=elapsed_ms,
        )
        return response
