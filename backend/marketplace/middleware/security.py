"""
Security Headers Middleware

Adds security headers to every response, error responses included:
- HSTS (Strict-Transport-Security)
- X-Content-Type-Options
- X-Frame-Options
- Content-Security-Policy
- Referrer-Policy and Permissions-Policy
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable, Dict

logger = structlog.get_logger()

SECURITY_HEADERS: Dict[str, str] = {
    # Force HTTPS for 1 year, subdomains included
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    # JSON API: course thumbnails and avatars are the only remote resources
    "Content-Security-Policy": (
        "default-src 'self'; "
        "img-src 'self' data: https:; "
        "frame-ancestors 'none'"
    ),
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    NOTE: Add this middleware first so its headers land on every response,
    including those produced by exception handlers.
    """

    def __init__(self, app, headers: Dict[str, str] = None):
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS if headers is None else headers)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in self.headers.items():
            response.headers.setdefault(name, value)

        logger.debug(
            "Security headers added", path=request.url.path, method=request.method
        )
        return response
