# backend/app/services/pricing/types.py
"""
Value objects shared by price providers, the price cache and the resolver.

Design Principles:
- Immutable (frozen=True) so cached copies cannot be mutated by callers
- Monetary values are integers with CURRENCY_DECIMALS implied places,
  never floats
- Token identity is the lowercase contract address
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN

from app.services.constants import CURRENCY_DECIMALS, DEFAULT_TOKEN_DECIMALS


@dataclass(frozen=True)
class Token:
    """
    Token metadata.

    Attributes:
        id: Price-provider identifier (CoinGecko id, e.g. "usd-coin")
        name: Display name
        symbol: Ticker symbol (e.g. "USDC")
        address: Lowercase contract address, "" for the native asset
        decimals: Number of decimals of the smallest on-chain unit
    """

    id: str
    name: str = ""
    symbol: str = ""
    address: str = ""
    decimals: int = DEFAULT_TOKEN_DECIMALS

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "address", (self.address or "").strip().lower())
        if self.decimals < 0:
            raise ValueError(f"decimals cannot be negative, got {self.decimals}")


@dataclass(frozen=True)
class Price:
    """
    A point-in-time quote for one token.

    Attributes:
        token: The priced token
        value: Price per whole token, scaled by 10^CURRENCY_DECIMALS
        currency: Quote currency, lowercase (e.g. "usd")
        last_updated: When the quote was produced (timezone-aware)
    """

    token: Token
    value: int
    currency: str
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", self.currency.lower())

    def with_last_updated(self, when: datetime) -> Price:
        """Return a copy stamped with a new last_updated time."""
        return replace(self, last_updated=when)

    @property
    def decimal_value(self) -> Decimal:
        """Value as a Decimal in whole currency units (for display only)."""
        return to_decimal(self.value)


def to_fixed_point(amount: float | Decimal | str, decimals: int = CURRENCY_DECIMALS) -> int:
    """
    Convert a provider quote into a fixed-point integer.

    Goes through str() so binary float noise is not carried into the
    integer (0.1 becomes 10000000, not 10000000.000000000555).

    Examples:
        >>> to_fixed_point(3000.0)
        300000000000
        >>> to_fixed_point("0.000000019")
        1
    """
    quantum = Decimal(1).scaleb(-decimals)
    scaled = Decimal(str(amount)).quantize(quantum, rounding=ROUND_DOWN)
    return int(scaled.scaleb(decimals))


def to_decimal(value: int, decimals: int = CURRENCY_DECIMALS) -> Decimal:
    """Convert a fixed-point integer back to a Decimal."""
    return Decimal(value).scaleb(-decimals)
