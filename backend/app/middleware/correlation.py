# backend/app/middleware/correlation.py
"""
Correlation ID middleware.

Every request gets an ID, taken from the first of:
1. X-Correlation-ID request header
2. X-Request-ID request header
3. a fresh UUID4

The ID is stored in the request context (so every log line written while
serving the request carries it) and echoed in the X-Correlation-ID
response header.
"""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.context import set_correlation_id, clear_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns and propagates a correlation ID per request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER)
            or request.headers.get(REQUEST_ID_HEADER)
            or str(uuid.uuid4())
        )
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
