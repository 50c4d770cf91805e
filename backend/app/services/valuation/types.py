# backend/app/services/valuation/types.py
"""
Internal data types for the ValuationEngine.

These dataclasses are NOT Pydantic schemas - those are defined in
app/schemas/assets.py for API serialization.

Design Principles:
- Amounts and values are ints (token smallest unit / 10^8 currency units)
- Optional fields use None: a missing quote is a valid result, not an error
- Assets are per-request values and are never persisted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.services.constants import ASSET_SOURCE_AGGREGATED, CURRENCY_DECIMALS
from app.services.pricing.types import Price, Token, to_decimal


@dataclass
class Asset:
    """
    One priced position of a portfolio.

    Attributes:
        token: Token metadata (native ETH carries the WETH address)
        amount: Balance in the token's smallest unit
        price: Resolved quote, None when no provider had one
        value: amount x price in 10^8 currency units, None without a quote
        source: Where the balance came from
    """

    token: Token
    amount: int
    price: Price | None = None
    value: int | None = None
    source: str = ASSET_SOURCE_AGGREGATED

    @property
    def is_priced(self) -> bool:
        return self.value is not None

    @property
    def amount_decimal(self) -> Decimal:
        """Amount in whole tokens."""
        return to_decimal(self.amount, self.token.decimals)

    @property
    def value_decimal(self) -> Decimal | None:
        if self.value is None:
            return None
        return to_decimal(self.value, CURRENCY_DECIMALS)


@dataclass
class BalanceBreakdown:
    """
    Intermediate balances of one valuation run.

    Keys are lowercase token addresses, "" for the native asset.

    Attributes:
        holdings: Stored holdings summed per token
        transactions: Net transaction-derived balances
        native_balance: Live native balance, None if it could not be fetched
        warnings: Best-effort steps that degraded
    """

    holdings: dict[str, int] = field(default_factory=dict)
    transactions: dict[str, int] = field(default_factory=dict)
    native_balance: int | None = None
    warnings: list[str] = field(default_factory=list)
