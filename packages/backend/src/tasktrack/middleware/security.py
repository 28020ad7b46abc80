"""Security headers middleware.

Learn: Adds standard security headers to every response. API responses
carry session tokens and profile data, so they are also marked
uncacheable.

- X-Content-Type-Options: no MIME-type sniffing
- X-Frame-Options: no framing (clickjacking)
- Referrer-Policy: limit referrer leakage
- Cache-Control: no-store on /api responses
- Strict-Transport-Security: only on HTTPS connections
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, api_prefix: str = "/api/"):
        super().__init__(app)
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in BASE_HEADERS.items():
            response.headers.setdefault(name, value)
        if request.url.path.startswith(self.api_prefix):
            response.headers["Cache-Control"] = "no-store"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
