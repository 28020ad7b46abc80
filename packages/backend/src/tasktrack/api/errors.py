"""Error → HTTP translation.

Learn: This is the only module that knows status codes. Services raise
AppError subclasses; the handlers below turn them into a JSON body of
the shape {"detail": "<message>"}, the same shape FastAPI uses for its
own HTTPException.

  AuthenticationError    → 401 (+ WWW-Authenticate: Bearer)
  ValidationError        → 400
  ResourceNotFoundError  → 404
  anything else          → 500, logged with traceback, generic message
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from tasktrack.errors import AppError, AuthenticationError, ValidationError
from tasktrack.services.validation import describe_errors

logger = structlog.get_logger()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Body/query validation uses the same 400 as service-level validation.
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"detail": describe_errors(exc.errors())},
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn any exception no handler claimed into the generic 500.

    Runs inside the rest of the middleware stack, so the response still
    gets request id, security and CORS headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("request.unhandled_error", path=request.url.path)
            return JSONResponse(
                status_code=500,
                content={"detail": AppError.default_message},
            )


def register_error_handlers(app: FastAPI) -> None:
    """Register the AppError handlers and the unexpected-error middleware.

    Call before adding other middleware: the catcher must end up innermost.
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(UnhandledErrorMiddleware)
