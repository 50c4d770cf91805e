# backend/app/services/valuation/__init__.py
"""
Valuation Package.

Portfolio asset valuation: holdings plus on-chain activity plus the live
native balance, priced in a target currency.

Usage:
    from app.services.valuation import ValuationEngine, total_value

    portfolio, assets = engine.get_portfolio_assets(portfolio_id=1, currency="usd")
    total = total_value(assets)

Architecture:
    valuation/
    ├── __init__.py        # This file - package exports
    ├── types.py           # Asset, BalanceBreakdown
    ├── calculators.py     # Balance merging and fixed-point value math
    └── service.py         # ValuationEngine (orchestrator)

Data Flow:
    Holdings              ─┐
    Token/internal txs    ─┼─→ BalanceCalculator → balances
    Live native balance   ─┘
    balances + TokenMetadataStore → tokens
    tokens → PriceResolver → prices
    balances + tokens + prices → ValueCalculator → Assets
"""

from app.services.valuation.calculators import (
    NATIVE_KEY,
    BalanceCalculator,
    ValueCalculator,
    balance_key,
    total_value,
)
from app.services.valuation.service import NATIVE_ASSET_TOKEN, NATIVE_TOKEN, ValuationEngine
from app.services.valuation.types import Asset, BalanceBreakdown

__all__ = [
    # Main service
    "ValuationEngine",
    "NATIVE_TOKEN",
    "NATIVE_ASSET_TOKEN",

    # Data types
    "Asset",
    "BalanceBreakdown",

    # Calculators
    "BalanceCalculator",
    "ValueCalculator",
    "NATIVE_KEY",
    "balance_key",
    "total_value",
]
