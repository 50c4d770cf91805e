# backend/app/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Concrete adapters satisfy protocols without inheriting from them
- Test mocks work without explicit inheritance
- The valuation core depends on these shapes only, never on adapters
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models import Portfolio
    from app.services.pricing.types import Price, Token
    from app.services.transactions.types import FilterOptions, Transaction


class RateLimiterProtocol(Protocol):
    """Admission control shared by upstream-calling components."""

    def allow(self) -> None:
        """Raise RateLimitError when the call is not admitted."""
        ...


class PriceProvider(Protocol):
    """Interface of primary and fallback price sources."""

    @property
    def name(self) -> str:
        ...

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        """Return prices keyed by token address; unknown tokens are absent."""
        ...


class ChainDataProvider(Protocol):
    """Interface required by TransactionAggregator and ValuationEngine."""

    @property
    def name(self) -> str:
        ...

    def native_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        ...

    def internal_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        ...

    def token_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        ...

    def native_balance(self, address: str) -> int:
        ...


class PortfolioStore(Protocol):
    """Interface required by ValuationEngine to read portfolios."""

    def get_with_holdings(self, portfolio_id: int) -> Portfolio | None:
        ...


class TokenMetadataStore(Protocol):
    """Interface required by ValuationEngine to resolve token metadata."""

    def get_by_addresses(self, addresses: Iterable[str]) -> dict[str, Token]:
        """Return metadata keyed by lowercase address; missing entries are absent."""
        ...
