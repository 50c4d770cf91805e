# backend/app/services/pricing/__init__.py
"""
Pricing Package.

Current token prices with caching, fallback and rate limiting.

Usage:
    from app.services.pricing import PriceResolver, Token

    prices = resolver.get_prices([Token(id="usd-coin", address="0xa0b8...")], "usd")

Architecture:
    pricing/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Token, Price, fixed-point helpers
    ├── base.py           # BasePriceProvider (shared retry policy)
    ├── coingecko.py      # CoinGecko adapter (primary)
    ├── mock.py           # Deterministic provider (fallback / local dev)
    ├── resolver.py       # PriceResolver (cache-aside orchestration)
    └── rate_limited.py   # RateLimitedPriceService (direct batching mode)
"""

from app.services.pricing.base import BasePriceProvider
from app.services.pricing.coingecko import CoinGeckoPriceProvider
from app.services.pricing.mock import MockPriceProvider
from app.services.pricing.rate_limited import RateLimitedPriceService
from app.services.pricing.resolver import PriceResolver, cache_key
from app.services.pricing.types import Price, Token, to_decimal, to_fixed_point

__all__ = [
    "BasePriceProvider",
    "CoinGeckoPriceProvider",
    "MockPriceProvider",
    "PriceResolver",
    "RateLimitedPriceService",
    "cache_key",
    "Price",
    "Token",
    "to_decimal",
    "to_fixed_point",
]
