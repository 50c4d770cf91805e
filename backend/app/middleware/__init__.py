# backend/app/middleware/__init__.py
"""
ASGI middleware for the valuation API.

- Correlation ID tracking for request tracing
- Inbound rate limiting (slowapi)

Usage:
    from app.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from app.middleware.correlation import CorrelationIdMiddleware
from app.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_HEALTH",
]
