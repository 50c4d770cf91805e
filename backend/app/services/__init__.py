# backend/app/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their collaborators through the constructor
- Are easily testable via dependency injection

Usage:
    from app.services import ValuationEngine, PriceResolver
    from app.services import TransactionAggregator, PortfolioService
    from app.services import (
        PortfolioNotFoundError,
        PriceResolutionError,
        ChainDataError,
    )

Architecture:
    services/
    ├── __init__.py              # This file - main exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Fixed-point, chain and API constants
    ├── protocols.py             # Collaborator interfaces (Protocol classes)
    ├── rate_limiter.py          # Sliding-window outbound rate limiter
    ├── price_cache.py           # Thread-safe in-memory key/value cache
    ├── token_repository.py      # Token metadata (coins.json)
    ├── portfolio_service.py     # Portfolio and holding management
    ├── pricing/                 # Price providers and resolution
    │   ├── types.py             # Token, Price, fixed-point helpers
    │   ├── base.py              # Abstract provider interface
    │   ├── coingecko.py         # CoinGecko implementation
    │   ├── mock.py              # Deterministic provider (fallback/dev)
    │   ├── rate_limited.py      # Rate-limiting provider decorator
    │   └── resolver.py          # Cache-aside primary/fallback resolver
    ├── chain_data/              # On-chain transfer history
    │   ├── base.py              # Abstract provider interface
    │   ├── etherscan.py         # Etherscan implementation
    │   └── mock.py              # Canned history (dev/tests)
    ├── transactions/            # Transfer classification and listing
    │   ├── types.py             # Transaction, FilterOptions, enums
    │   ├── classifier.py        # Type/status/direction rules
    │   └── aggregator.py        # Fetch, filter, sort, paginate
    └── valuation/               # Valuation engine
        ├── service.py           # Main valuation orchestrator
        ├── types.py             # Asset, BalanceBreakdown
        └── calculators.py       # Balance merge and value arithmetic
"""

# Chain data
from app.services.chain_data import (
    BaseChainDataProvider,
    EtherscanChainDataProvider,
    MockChainDataProvider,
)
# Exceptions
from app.services.exceptions import (
    # Base exceptions
    ServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    # Portfolio exceptions
    PortfolioNotFoundError,
    HoldingNotFoundError,
    PortfolioExistsError,
    # Market data exceptions
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
    PriceResolutionError,
    # Chain data exceptions
    ChainDataError,
)
# Portfolio management
from app.services.portfolio_service import PortfolioService
from app.services.price_cache import PriceCache
# Pricing
from app.services.pricing import (
    CoinGeckoPriceProvider,
    MockPriceProvider,
    PriceResolver,
    RateLimitedPriceService,
)
from app.services.rate_limiter import RateLimiter
from app.services.token_repository import TokenRepository
# Transactions
from app.services.transactions import TransactionAggregator
# Valuation
from app.services.valuation import ValuationEngine

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "PortfolioService",
    "TokenRepository",
    "PriceCache",
    "RateLimiter",
    # Pricing
    "CoinGeckoPriceProvider",
    "MockPriceProvider",
    "RateLimitedPriceService",
    "PriceResolver",
    # Chain data
    "BaseChainDataProvider",
    "EtherscanChainDataProvider",
    "MockChainDataProvider",
    # Transactions
    "TransactionAggregator",
    # Valuation
    "ValuationEngine",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    # Base
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    # Portfolio
    "PortfolioNotFoundError",
    "HoldingNotFoundError",
    "PortfolioExistsError",
    # Market data
    "MarketDataError",
    "ProviderUnavailableError",
    "RateLimitError",
    "PriceResolutionError",
    # Chain data
    "ChainDataError",
]
