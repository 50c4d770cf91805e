# backend/app/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- assets: Priced assets, price quotes, portfolio valuation
- errors: Error response formats
- pagination: Offset and page-number pagination metadata
- portfolios: Portfolio and holding CRUD
- transactions: Classified on-chain transactions
- validators: Reusable validation functions (address, currency, amount)

Usage:
    from app.schemas import PortfolioCreate, PortfolioResponse
    from app.schemas import PortfolioAssetsResponse, PriceListResponse
    from app.schemas import TransactionListResponse
"""

from app.schemas.assets import (
    AssetResponse,
    PortfolioAssetsResponse,
    PriceListResponse,
    PriceResponse,
    TokenResponse,
)
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.schemas.pagination import PageMeta, PaginationMeta
from app.schemas.portfolios import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioListResponse,
    PortfolioResponse,
)
from app.schemas.transactions import TransactionListResponse, TransactionResponse

__all__ = [
    # Assets & prices
    "AssetResponse",
    "PortfolioAssetsResponse",
    "PriceListResponse",
    "PriceResponse",
    "TokenResponse",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Pagination
    "PageMeta",
    "PaginationMeta",
    # Portfolios
    "HoldingCreate",
    "HoldingResponse",
    "HoldingUpdate",
    "PortfolioCreate",
    "PortfolioListResponse",
    "PortfolioResponse",
    # Transactions
    "TransactionListResponse",
    "TransactionResponse",
]
