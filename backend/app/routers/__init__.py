# backend/app/routers/__init__.py
"""
API routers for the Crypto Portfolio Valuation API.

Each router handles a specific domain:
- portfolios: Tracked wallets, recorded holdings and valuation
- transactions: Classified on-chain transfer history
- prices: Token price quotes
"""

from app.routers.portfolios import router as portfolios_router
from app.routers.prices import router as prices_router
from app.routers.transactions import router as transactions_router

__all__ = [
    "portfolios_router",
    "prices_router",
    "transactions_router",
]
