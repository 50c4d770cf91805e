# backend/app/routers/transactions.py
"""
On-chain transaction listing.

GET /api/v1/transactions/{portfolio_id}

Transactions are not stored. Each request fetches the wallet's native,
internal and token transfers from the chain data provider, classifies
them (type, status, direction), filters, sorts newest first and returns
one page.

Filters (all optional):
- address: classify against this address instead of the portfolio's
- type / status / direction: exact match on the classified value
- token: contract address or symbol (case-insensitive)
- from_date / to_date: inclusive timestamp bounds
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from app.dependencies import get_portfolio_service, get_transaction_aggregator
from app.middleware.rate_limit import limiter, RATE_LIMIT_VALUATION
from app.schemas.pagination import PageMeta
from app.schemas.transactions import TransactionListResponse, TransactionResponse
from app.services.constants import DEFAULT_TRANSACTION_PAGE_SIZE, MAX_TRANSACTION_PAGE_SIZE
from app.services.portfolio_service import PortfolioService, normalize_address
from app.services.transactions import FilterOptions, TransactionAggregator

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/api/v1/transactions",
    tags=["Transactions"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{portfolio_id}",
    response_model=TransactionListResponse,
    summary="List on-chain transactions",
    response_description="One page of classified transactions, newest first"
)
@limiter.limit(RATE_LIMIT_VALUATION)
def list_transactions(
        request: Request,  # Required for rate limiting
        portfolio_id: int,
        address: str | None = Query(
            default=None,
            description="Address to classify against (default: the portfolio's address)"
        ),
        type: str | None = Query(
            default=None,
            description="send, receive, swap or stake"
        ),
        status: str | None = Query(default=None, description="success, failed or pending"),
        direction: str | None = Query(default=None, description="in or out"),
        token: str | None = Query(
            default=None,
            max_length=42,
            description="Token contract address or symbol"
        ),
        from_date: datetime | None = Query(default=None, description="Earliest timestamp (inclusive)"),
        to_date: datetime | None = Query(default=None, description="Latest timestamp (inclusive)"),
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        page_size: int = Query(
            default=DEFAULT_TRANSACTION_PAGE_SIZE,
            ge=1,
            le=MAX_TRANSACTION_PAGE_SIZE,
            description="Transactions per page"
        ),
        service: PortfolioService = Depends(get_portfolio_service),
        aggregator: TransactionAggregator = Depends(get_transaction_aggregator),
) -> TransactionListResponse:
    """
    List a portfolio's transactions.

    Raises **404** if the portfolio does not exist, **400** for unknown
    filter values and **502** if the chain data provider fails.
    """
    portfolio = service.get_portfolio(portfolio_id)
    target = normalize_address(address) if address else portfolio.address

    filters = FilterOptions.from_raw(
        address=target,
        type=type,
        status=status,
        token=token,
        direction=direction,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    result = aggregator.list_transactions(target, filters)

    return TransactionListResponse(
        address=target,
        items=[TransactionResponse.from_transaction(tx) for tx in result.items],
        pagination=PageMeta(total=result.total, page=result.page, page_size=result.page_size),
    )
