# backend/app/middleware/rate_limit.py
"""
Inbound rate limiting (slowapi).

Protects the upstream quotas (CoinGecko, Etherscan) from bursts of API
traffic. Limits are keyed by client IP and stored in memory, which suits a
single-instance deployment.

This is separate from app.services.rate_limiter.RateLimiter, which guards
outbound provider calls.

Usage:
    from app.middleware.rate_limit import limiter, RATE_LIMIT_VALUATION

    @router.get("/{portfolio_id}/assets")
    @limiter.limit(RATE_LIMIT_VALUATION)
    def get_assets(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.config import settings
from app.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_HEALTH,
)

logger = logging.getLogger(__name__)

# Seconds advertised in Retry-After; slowapi limits here are per minute
DEFAULT_RETRY_AFTER = 60


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_DEFAULT],
    # Tests hammer endpoints from one client address
    enabled=not settings.is_test,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard error format, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": DEFAULT_RETRY_AFTER},
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_HEALTH",
]
