# backend/app/dependencies.py
"""
Composition root: wires providers and services for FastAPI.

Long-lived collaborators (price providers, cache, rate limiters, chain-data
provider, token metadata) are singletons shared across all requests so that
the price cache and rate-limit windows are shared too. Request-scoped
services (PortfolioService, ValuationEngine) are built per request around
the request's database session.

Services never construct their own collaborators; everything is wired here.

Usage in routers:
    from app.dependencies import get_valuation_engine

    @router.get("/{portfolio_id}/assets")
    def get_assets(engine: ValuationEngine = Depends(get_valuation_engine)):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.chain_data import EtherscanChainDataProvider, MockChainDataProvider
from app.services.portfolio_service import PortfolioService
from app.services.price_cache import PriceCache
from app.services.pricing import CoinGeckoPriceProvider, MockPriceProvider, PriceResolver
from app.services.protocols import ChainDataProvider, PriceProvider
from app.services.rate_limiter import RateLimiter
from app.services.token_repository import TokenRepository
from app.services.transactions import TransactionAggregator
from app.services.valuation import ValuationEngine

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_token_repository (no deps)
# 2. get_primary_price_provider / get_fallback_price_provider (no deps)
# 3. get_price_resolver (depends on providers)
# 4. get_chain_data_provider (no deps)
# 5. get_transaction_aggregator (depends on chain data)


@lru_cache(maxsize=1)
def get_token_repository() -> TokenRepository:
    """Token metadata loaded once from TOKENS_PATH."""
    logger.debug(f"Loading token repository from {settings.tokens_path}")
    return TokenRepository.from_file(settings.tokens_path)


@lru_cache(maxsize=1)
def get_primary_price_provider() -> PriceProvider:
    """Primary price source selected by PRICE_PROVIDER."""
    if settings.price_provider == "mock":
        logger.debug("Initializing singleton MockPriceProvider (primary)")
        return MockPriceProvider()

    logger.debug("Initializing singleton CoinGeckoPriceProvider")
    return CoinGeckoPriceProvider(
        api_key=settings.coingecko_api_key,
        base_url=settings.coingecko_base_url,
        pro=settings.coingecko_pro,
        timeout=settings.price_request_timeout,
    )


@lru_cache(maxsize=1)
def get_fallback_price_provider() -> PriceProvider | None:
    """Fallback price source, None when PRICE_FALLBACK_ENABLED is off."""
    if not settings.price_fallback_enabled:
        return None
    logger.debug("Initializing singleton MockPriceProvider (fallback)")
    return MockPriceProvider()


@lru_cache(maxsize=1)
def get_price_resolver() -> PriceResolver:
    """
    The shared cache-aside resolver.

    One PriceCache and one RateLimiter for the whole process, so every
    request benefits from prices fetched by any other.
    """
    logger.debug("Initializing singleton PriceResolver")
    return PriceResolver(
        primary=get_primary_price_provider(),
        fallback=get_fallback_price_provider(),
        cache=PriceCache(),
        rate_limiter=RateLimiter(
            max_calls=settings.price_rate_limit_rps,
            window=1.0,
            name="price-resolver",
        ),
        cache_ttl=settings.price_cache_ttl,
    )


@lru_cache(maxsize=1)
def get_chain_data_provider() -> ChainDataProvider:
    """Chain data source selected by TRANSACTION_PROVIDER."""
    if settings.transaction_provider == "mock":
        logger.debug("Initializing singleton MockChainDataProvider")
        return MockChainDataProvider()

    logger.debug("Initializing singleton EtherscanChainDataProvider")
    return EtherscanChainDataProvider(
        api_key=settings.etherscan_api_key or "",
        base_url=settings.etherscan_base_url,
        chain_id=settings.etherscan_chain_id,
        rate_limiter=RateLimiter(
            max_calls=settings.transaction_rate_limit_rps,
            window=1.0,
            name="etherscan",
        ),
        timeout=settings.transaction_request_timeout,
    )


@lru_cache(maxsize=1)
def get_transaction_aggregator() -> TransactionAggregator:
    logger.debug("Initializing singleton TransactionAggregator")
    return TransactionAggregator(chain_data=get_chain_data_provider())


# =============================================================================
# REQUEST-SCOPED SERVICES
# =============================================================================

def get_portfolio_service(db: Annotated[Session, Depends(get_db)]) -> PortfolioService:
    return PortfolioService(db)


def get_valuation_engine(
    portfolio_service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> ValuationEngine:
    """ValuationEngine reading portfolios through this request's session."""
    return ValuationEngine(
        portfolio_store=portfolio_service,
        token_store=get_token_repository(),
        chain_data=get_chain_data_provider(),
        price_resolver=get_price_resolver(),
    )


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    get_token_repository.cache_clear()
    get_primary_price_provider.cache_clear()
    get_fallback_price_provider.cache_clear()
    get_price_resolver.cache_clear()
    get_chain_data_provider.cache_clear()
    get_transaction_aggregator.cache_clear()
    logger.info("Cleared all service singleton caches")
