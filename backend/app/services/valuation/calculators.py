# backend/app/services/valuation/calculators.py
"""
Point-in-time valuation calculators.

- BalanceCalculator: Merges holdings, transaction-derived and live balances
- ValueCalculator: Prices a balance in fixed-point currency units

Design Principles:
- Stateless (no instance state, pure functions)
- Integer arithmetic only, no floats anywhere
- Balance keys are lowercase token addresses, "" for the native asset

Usage:
    balances = BalanceCalculator().calculate(holdings, derived, native_balance)
    value = ValueCalculator().calculate(amount, price, decimals=18)
"""

from __future__ import annotations

import logging
from typing import Iterable, TYPE_CHECKING

from app.services.constants import NATIVE_TOKEN_ADDRESS
from app.services.pricing.types import Price

if TYPE_CHECKING:
    from app.models import Holding
    from app.services.valuation.types import Asset

logger = logging.getLogger(__name__)

NATIVE_KEY = ""


def balance_key(token_address: str | None) -> str:
    """Lowercase address; the native zero address and "" share one key."""
    address = (token_address or "").strip().lower()
    if address == NATIVE_TOKEN_ADDRESS:
        return NATIVE_KEY
    return address


# =============================================================================
# BALANCE CALCULATOR
# =============================================================================

class BalanceCalculator:
    """
    Builds the aggregated balance map of a portfolio.

    Precedence:
        1. Stored holdings, summed per token
        2. Transaction-derived balances are ADDED
        3. A live native balance OVERWRITES the native entry
        4. Non-positive balances are dropped
    """

    def sum_holdings(self, holdings: Iterable[Holding]) -> dict[str, int]:
        """Stored holdings summed per token address."""
        totals: dict[str, int] = {}
        for holding in holdings:
            key = balance_key(holding.token_address)
            totals[key] = totals.get(key, 0) + int(holding.amount)
        return totals

    def calculate(
            self,
            holdings: dict[str, int],
            transactions: dict[str, int],
            native_balance: int | None = None,
    ) -> dict[str, int]:
        """
        Merge the three balance sources.

        Args:
            holdings: Summed stored holdings
            transactions: Net balances from calculate_token_amounts()
            native_balance: Live native balance (None if unavailable)

        Returns:
            Positive balances keyed by token address
        """
        merged = dict(holdings)

        for address, amount in transactions.items():
            key = balance_key(address)
            merged[key] = merged.get(key, 0) + amount

        if native_balance is not None and native_balance > 0:
            merged[NATIVE_KEY] = native_balance

        dropped = [key for key, amount in merged.items() if amount <= 0]
        if dropped:
            logger.debug(f"Dropping {len(dropped)} non-positive balances")

        return {key: amount for key, amount in merged.items() if amount > 0}


# =============================================================================
# VALUE CALCULATOR
# =============================================================================

class ValueCalculator:
    """
    Prices a token amount.

    Formula:
        value = amount * price.value // 10^decimals

    The result keeps the currency scale of the price (10^8). Division is
    integer floor division.

    Example:
        0.5 ETH (500000000000000000, 18 decimals) at 3000.00 (300000000000)
        -> 150000000000 (1500.00)
    """

    def calculate(self, amount: int, price: Price | None, decimals: int) -> int | None:
        """
        Returns:
            Value in 10^8 currency units, 0 for a zero amount,
            None when there is no price
        """
        if amount == 0:
            return 0
        if price is None:
            return None
        return amount * price.value // (10 ** decimals)


def total_value(assets: Iterable[Asset]) -> int:
    """Sum of all known asset values (unpriced assets contribute nothing)."""
    return sum(asset.value for asset in assets if asset.value is not None)
