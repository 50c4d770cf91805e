# backend/app/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import check_database_health, get_db, init_db
from app.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from app.routers import portfolios_router, prices_router, transactions_router
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.services.exceptions import (
    ChainDataError,
    ConflictError,
    HoldingNotFoundError,
    MarketDataError,
    NotFoundError,
    PortfolioExistsError,
    PortfolioNotFoundError,
    PriceResolutionError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceError,
    ValidationError,
)
from app.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(
        f"{settings.app_name} started "
        f"(environment={settings.environment}, prices={settings.price_provider}, "
        f"chain={settings.transaction_provider})"
    )
    yield


app = FastAPI(
    title=settings.app_name,
    description="Values crypto wallets from recorded holdings, on-chain transfers and live prices",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Must be added before other middleware
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Extracts/generates correlation IDs and echoes them in response headers
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions are converted to consistent ErrorDetail bodies
# here. The most specific registered class wins, so subclasses get their
# own details while the base classes catch the rest.
# =============================================================================

# Inbound rate limit exceeded (from slowapi)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(PortfolioNotFoundError)
async def portfolio_not_found_handler(
    request: Request, exc: PortfolioNotFoundError
) -> JSONResponse:
    """Handle portfolio not found errors (404)."""
    logger.warning(f"Portfolio not found: {exc.portfolio_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error="PortfolioNotFoundError",
            message=str(exc),
            details={"portfolio_id": exc.portfolio_id},
        ).model_dump(),
    )


@app.exception_handler(HoldingNotFoundError)
async def holding_not_found_handler(
    request: Request, exc: HoldingNotFoundError
) -> JSONResponse:
    """Handle holding not found errors (404)."""
    logger.warning(f"Holding not found: {exc.holding_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error="HoldingNotFoundError",
            message=str(exc),
            details={"holding_id": exc.holding_id, "portfolio_id": exc.portfolio_id},
        ).model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error="NotFoundError",
            message=str(exc),
            details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def service_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle business-rule validation errors from services (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(PortfolioExistsError)
async def portfolio_exists_handler(request: Request, exc: PortfolioExistsError) -> JSONResponse:
    """Handle duplicate wallet address (409)."""
    logger.warning(f"Portfolio already exists for {exc.address}")
    return JSONResponse(
        status_code=409,
        content=ErrorDetail(
            error="PortfolioExistsError",
            message=str(exc),
            details={"address": exc.address},
        ).model_dump(),
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content=ErrorDetail(
            error="ConflictError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle upstream provider rate limits (429)."""
    logger.warning(f"Rate limit exceeded: {exc}")
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=str(exc),
            details={"provider": exc.provider, "retry_after": exc.retry_after},
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(PriceResolutionError)
async def price_resolution_handler(request: Request, exc: PriceResolutionError) -> JSONResponse:
    """Handle primary and fallback price providers both failing (503)."""
    logger.error(f"Price resolution failed: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="PriceResolutionError",
            message=str(exc),
            details={
                "primary_error": str(exc.primary_error) if exc.primary_error else None,
                "fallback_error": str(exc.fallback_error) if exc.fallback_error else None,
            },
        ).model_dump(),
    )


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(
    request: Request, exc: ProviderUnavailableError
) -> JSONResponse:
    """Handle market data provider unavailable (503)."""
    logger.error(f"Provider unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="ProviderUnavailableError",
            message=str(exc),
            details={"provider": exc.provider},
        ).model_dump(),
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle generic market data errors (502)."""
    logger.error(f"Market data error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="MarketDataError",
            message=str(exc),
            details={"provider": exc.provider} if exc.provider else None,
        ).model_dump(),
    )


@app.exception_handler(ChainDataError)
async def chain_data_error_handler(request: Request, exc: ChainDataError) -> JSONResponse:
    """Handle chain data provider errors (502)."""
    logger.error(f"Chain data error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="ChainDataError",
            message=str(exc),
            details={"provider": exc.provider} if exc.provider else None,
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Catch-all for service errors without a dedicated handler (500)."""
    logger.error(f"Unhandled service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions, including unmatched routes, with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to our standard
    ErrorDetail format for API consistency.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        502: "BadGatewayError",
        503: "ServiceUnavailableError",
    }

    error_type = error_types.get(exc.status_code, "HTTPError")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_type,
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors with consistent format.

    Converts the default 422 validation error to our ValidationErrorDetail format.
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(portfolios_router)  # /api/v1/portfolios/*
app.include_router(transactions_router)  # /api/v1/transactions/*
app.include_router(prices_router)  # /api/v1/prices


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """
    API root - returns basic application info.
    """
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health check endpoint.

    The database is the only critical dependency. Price and chain data
    providers are reported by name; they are not called, so this endpoint
    never spends upstream quota.

    **Response Status Codes:**
    - 200: Database reachable
    - 503: Database unreachable - do not route traffic here
    """
    from app.dependencies import get_chain_data_provider, get_primary_price_provider

    checks = {}
    healthy = True

    # Check 1: Database (CRITICAL)
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy", "critical": True}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {"status": "unhealthy", "critical": True, "error": str(e)}
        healthy = False

    # Check 2: Configured providers (NON-CRITICAL)
    checks["price_provider"] = {"name": get_primary_price_provider().name, "critical": False}
    checks["chain_data_provider"] = {"name": get_chain_data_provider().name, "critical": False}

    response_data = {
        "status": "healthy" if healthy else "unhealthy",
        "environment": settings.environment,
        "checks": checks,
    }

    if not healthy:
        return JSONResponse(status_code=503, content=response_data)

    return response_data


@app.get("/health/db", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def database_health(request: Request):
    """Database connectivity with the configured backend and pool details."""
    result = check_database_health()
    if result.get("status") != "healthy":
        return JSONResponse(status_code=503, content=result)
    return result


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """
    Liveness probe endpoint.

    Returns HTTP 200 if the application is running.
    Does NOT check dependencies.
    """
    return {"status": "alive"}
