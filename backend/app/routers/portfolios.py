# backend/app/routers/portfolios.py
"""
Portfolio management and valuation endpoints.

Portfolios track one wallet address each. Holdings are amounts recorded
by the user; they are combined with on-chain data when the portfolio's
assets are valued.

Endpoints:
- GET    /api/v1/portfolios                                  - List portfolios
- POST   /api/v1/portfolios                                  - Track a wallet
- GET    /api/v1/portfolios/{id}                             - Portfolio with holdings
- DELETE /api/v1/portfolios/{id}                             - Stop tracking
- GET    /api/v1/portfolios/{id}/assets                      - Priced assets + total
- POST   /api/v1/portfolios/{id}/holdings                    - Add holding (merges)
- PUT    /api/v1/portfolios/{id}/holdings/{holding_id}       - Replace amount
- DELETE /api/v1/portfolios/{id}/holdings/{holding_id}       - Remove holding

Domain exceptions (PortfolioNotFoundError, PortfolioExistsError, ...) are
mapped to HTTP responses by the handlers in main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import AfterValidator

from app.dependencies import get_portfolio_service, get_valuation_engine
from app.middleware.rate_limit import limiter, RATE_LIMIT_VALUATION, RATE_LIMIT_WRITE
from app.schemas.assets import AssetResponse, PortfolioAssetsResponse
from app.schemas.pagination import PaginationMeta
from app.schemas.portfolios import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioListResponse,
    PortfolioResponse,
)
from app.schemas.validators import validate_currency
from app.services.constants import CURRENCY_DECIMALS, DEFAULT_CURRENCY
from app.services.portfolio_service import PortfolioService
from app.services.pricing.types import to_decimal
from app.services.valuation import ValuationEngine, total_value

# Validated query parameter type
CurrencyQuery = Annotated[
    str,
    AfterValidator(validate_currency),
    Query(description="Quote currency (e.g. usd, eur)"),
]

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/api/v1/portfolios",
    tags=["Portfolios"],
)


# =============================================================================
# PORTFOLIO ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=PortfolioListResponse,
    summary="List portfolios",
    response_description="Page of tracked portfolios"
)
def list_portfolios(
        skip: int = Query(default=0, ge=0, description="Number of records to skip"),
        limit: int = Query(default=100, ge=1, le=1000, description="Maximum records to return"),
        service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioListResponse:
    """
    Retrieve tracked portfolios ordered by id.

    Supports pagination with **skip** and **limit**.
    """
    items, total = service.list_portfolios(skip=skip, limit=limit)

    return PortfolioListResponse(
        items=[PortfolioResponse.model_validate(p) for p in items],
        pagination=PaginationMeta.create(total=total, skip=skip, limit=limit),
    )


@router.post(
    "",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Track a wallet",
    response_description="The created portfolio"
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_portfolio(
        request: Request,  # Required for rate limiting
        payload: PortfolioCreate,
        service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioResponse:
    """
    Start tracking a wallet address.

    - **address**: `0x` followed by 40 hex characters (stored lowercase)
    - **name**: Optional display name

    Raises **409** if the address is already tracked.
    """
    portfolio = service.create_portfolio(address=payload.address, name=payload.name)
    return PortfolioResponse.model_validate(portfolio)


@router.get(
    "/{portfolio_id}",
    response_model=PortfolioResponse,
    summary="Get a portfolio",
    response_description="The portfolio with its recorded holdings"
)
def get_portfolio(
        portfolio_id: int,
        service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioResponse:
    """Raises **404** if the portfolio does not exist."""
    return PortfolioResponse.model_validate(service.get_portfolio(portfolio_id))


@router.delete(
    "/{portfolio_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a portfolio",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_portfolio(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    """Delete a portfolio and all of its holdings."""
    service.delete_portfolio(portfolio_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# VALUATION
# =============================================================================

@router.get(
    "/{portfolio_id}/assets",
    response_model=PortfolioAssetsResponse,
    summary="Value a portfolio",
    response_description="Every positive balance with its price and value"
)
@limiter.limit(RATE_LIMIT_VALUATION)
def get_portfolio_assets(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        currency: CurrencyQuery = DEFAULT_CURRENCY,
        engine: ValuationEngine = Depends(get_valuation_engine),
) -> PortfolioAssetsResponse:
    """
    Value a portfolio.

    Balances combine recorded holdings, transfers seen on chain and the live
    ETH balance. On-chain data is best-effort: if the chain provider is
    down, holdings are still valued.

    Assets without a quote are returned with **price** and **value** null
    and do not count towards **total_value**.

    Raises **503** if no price provider is reachable.
    """
    portfolio, assets = engine.get_portfolio_assets(portfolio_id, currency=currency)

    assets = sorted(assets, key=lambda a: (a.value is None, -(a.value or 0), a.token.symbol))
    total = total_value(assets)
    priced = sum(1 for a in assets if a.is_priced)

    return PortfolioAssetsResponse(
        portfolio_id=portfolio.id,
        address=portfolio.address,
        currency=currency,
        assets=[AssetResponse.from_asset(a) for a in assets],
        total_value=str(total),
        total_value_decimal=to_decimal(total, CURRENCY_DECIMALS),
        priced_count=priced,
        unpriced_count=len(assets) - priced,
    )


# =============================================================================
# HOLDING ENDPOINTS
# =============================================================================

@router.post(
    "/{portfolio_id}/holdings",
    response_model=HoldingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a holding",
    response_description="The created or topped-up holding"
)
@limiter.limit(RATE_LIMIT_WRITE)
def add_holding(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        payload: HoldingCreate,
        service: PortfolioService = Depends(get_portfolio_service),
) -> HoldingResponse:
    """
    Record an amount of a token.

    If the portfolio already holds the token, the amount is added to the
    existing holding. Use the zero address for ETH.
    """
    holding = service.add_holding(
        portfolio_id=portfolio_id,
        token_address=payload.token_address,
        amount=payload.amount,
        token_symbol=payload.token_symbol,
        token_name=payload.token_name,
        token_decimals=payload.token_decimals,
    )
    return HoldingResponse.model_validate(holding)


@router.put(
    "/{portfolio_id}/holdings/{holding_id}",
    response_model=HoldingResponse,
    summary="Update a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_holding(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        holding_id: int,
        payload: HoldingUpdate,
        service: PortfolioService = Depends(get_portfolio_service),
) -> HoldingResponse:
    """Replace the amount of a holding. Zero is allowed."""
    holding = service.update_holding(portfolio_id, holding_id, payload.amount)
    return HoldingResponse.model_validate(holding)


@router.delete(
    "/{portfolio_id}/holdings/{holding_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_holding(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        holding_id: int,
        service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    service.delete_holding(portfolio_id, holding_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
