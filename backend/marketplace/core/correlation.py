"""
Course Marketplace Correlation ID Middleware

Implements correlation ID management for request tracking.

Features:
- Automatic UUID v4 correlation ID generation for new requests
- Respects an existing correlation ID from request headers
- Binds the ID into structlog context variables for every log line
- Adds the correlation ID to response headers
"""

import re
import uuid
from typing import Awaitable, Callable, Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse
from starlette.types import ASGIApp

logger = structlog.get_logger()

CORRELATION_HEADERS = (
    "x-correlation-id",
    "correlation-id",
    "x-request-id",
    "request-id",
)

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_TOKEN_PATTERN = re.compile(r"^[a-zA-Z0-9\-_\.]{8,255}$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware for managing correlation IDs in HTTP requests.

    Generates or extracts a correlation ID, binds it for structured logging
    for the duration of the request and echoes it on the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = "x-correlation-id",
        validate_format: bool = True,
    ):
        super().__init__(app)
        self.header_name = header_name.lower()
        self.validate_format = validate_format

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[StarletteResponse]],
    ) -> StarletteResponse:
        correlation_id = self._extract_or_generate_correlation_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id

            logger.info("Request completed", status_code=response.status_code)
            return response

        except Exception as e:
            logger.error(
                "Unexpected error during request processing",
                error=str(e),
                exc_info=True,
            )
            raise

        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")

    def _extract_or_generate_correlation_id(self, request: Request) -> str:
        correlation_id = get_request_correlation_id(request)

        if correlation_id:
            if self.validate_format and not is_valid_correlation_id(correlation_id):
                logger.warning(
                    "Invalid correlation ID format in request header, generating new one",
                    received_correlation_id=correlation_id[:64],
                )
                correlation_id = str(uuid.uuid4())
        else:
            correlation_id = str(uuid.uuid4())

        return correlation_id


def is_valid_correlation_id(correlation_id: str) -> bool:
    """UUIDs, or tokens of 8-255 alphanumerics, hyphens, underscores and dots."""
    if not correlation_id or not isinstance(correlation_id, str):
        return False

    correlation_id = correlation_id.strip()
    return bool(
        _UUID_PATTERN.match(correlation_id) or _TOKEN_PATTERN.match(correlation_id)
    )


def get_request_correlation_id(request: Request) -> Optional[str]:
    """
    Helper function to extract correlation ID from request.

    Args:
        request: HTTP request

    Returns:
        Correlation ID if present, None otherwise
    """
    for header_name in CORRELATION_HEADERS:
        if header_name in request.headers:
            correlation_id = request.headers[header_name].strip()
            if correlation_id:
                return correlation_id

    return None


__all__ = [
    "CorrelationIdMiddleware",
    "get_request_correlation_id",
    "is_valid_correlation_id",
]
