# backend/app/services/valuation/service.py
"""
Valuation Engine - Main orchestrator for portfolio asset valuation.

Reconciles three independent, unreliable sources into one priced balance
per token:
- Stored holdings (authoritative, from the portfolio store)
- Transaction-derived balances (best-effort, from chain data)
- The live native balance (best-effort, from chain data)

Design Principles:
- Dependency Injection: every collaborator is passed to the constructor
- No HTTP Knowledge: raises domain exceptions, not HTTPException
- Best-effort enrichment: chain-data failures degrade, never fail, a request
- Authoritative pricing: PriceResolver failures propagate

Usage:
    from app.services.valuation import ValuationEngine

    engine = ValuationEngine(
        portfolio_store=PortfolioService(db),
        token_store=token_repository,
        chain_data=EtherscanChainDataProvider(api_key=...),
        price_resolver=resolver,
    )
    portfolio, assets = engine.get_portfolio_assets(portfolio_id=1, currency="usd")
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from app.services.constants import (
    ASSET_SOURCE_AGGREGATED,
    DEFAULT_CURRENCY,
    NATIVE_TOKEN_DECIMALS,
    NATIVE_TOKEN_ID,
    NATIVE_TOKEN_NAME,
    NATIVE_TOKEN_ADDRESS,
    NATIVE_TOKEN_SYMBOL,
    WETH_ADDRESS,
)
from app.services.exceptions import PortfolioNotFoundError
from app.services.pricing.types import Price, Token
from app.services.transactions.aggregator import calculate_token_amounts
from app.services.transactions.classifier import set_direction_for_address
from app.services.transactions.types import FilterOptions, Transaction
from app.services.valuation.calculators import (
    NATIVE_KEY,
    BalanceCalculator,
    ValueCalculator,
)
from app.services.valuation.types import Asset, BalanceBreakdown

if TYPE_CHECKING:
    from app.models import Portfolio
    from app.services.pricing.resolver import PriceResolver
    from app.services.protocols import (
        ChainDataProvider,
        PortfolioStore,
        TokenMetadataStore,
    )

logger = logging.getLogger(__name__)

# Priced through WETH
NATIVE_TOKEN = Token(
    id=NATIVE_TOKEN_ID,
    name=NATIVE_TOKEN_NAME,
    symbol=NATIVE_TOKEN_SYMBOL,
    address=WETH_ADDRESS,
    decimals=NATIVE_TOKEN_DECIMALS,
)

# Reported under the reserved zero address, so ETH and WETH stay distinct
NATIVE_ASSET_TOKEN = replace(NATIVE_TOKEN, address=NATIVE_TOKEN_ADDRESS)


class ValuationEngine:
    """
    Produces priced Assets for a portfolio.

    Attributes:
        _portfolio_store: Reads portfolios with their holdings
        _token_store: Token metadata by address
        _chain_data: Transfer history and live native balance
        _price_resolver: Cache-aside price lookup
    """

    def __init__(
            self,
            portfolio_store: PortfolioStore,
            token_store: TokenMetadataStore,
            chain_data: ChainDataProvider,
            price_resolver: PriceResolver,
    ) -> None:
        self._portfolio_store = portfolio_store
        self._token_store = token_store
        self._chain_data = chain_data
        self._price_resolver = price_resolver

        self._balance_calc = BalanceCalculator()
        self._value_calc = ValueCalculator()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_portfolio_assets(
            self,
            portfolio_id: int,
            currency: str = DEFAULT_CURRENCY,
    ) -> tuple[Portfolio, list[Asset]]:
        """
        Value every positive balance of a portfolio.

        Args:
            portfolio_id: Portfolio to value
            currency: Quote currency (e.g. "usd")

        Returns:
            (portfolio, assets). Assets have no particular order; an asset
            without a quote has price and value None.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            PriceResolutionError: If primary and fallback pricing both fail
        """
        currency = currency.strip().lower()

        # Step 1: Load portfolio and holdings
        portfolio = self._portfolio_store.get_with_holdings(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)

        address = portfolio.address.lower()
        breakdown = BalanceBreakdown(
            holdings=self._balance_calc.sum_holdings(portfolio.holdings),
        )

        # Step 2-3: Transaction-derived balances (best-effort)
        transactions = self._fetch_transfers(address, breakdown)
        for tx in transactions:
            set_direction_for_address(tx, address)
        breakdown.transactions = calculate_token_amounts(transactions)

        # Step 4: Live native balance (best-effort)
        breakdown.native_balance = self._fetch_native_balance(address, breakdown)

        # Step 5-6: Merge and drop non-positive balances
        balances = self._balance_calc.calculate(
            holdings=breakdown.holdings,
            transactions=breakdown.transactions,
            native_balance=breakdown.native_balance,
        )

        if not balances:
            logger.info(f"Portfolio {portfolio_id} has no positive balances")
            return portfolio, []

        # Step 7: Token metadata
        tokens = self._resolve_tokens(balances, breakdown)

        # Step 8: One pricing call for everything (ETH and WETH share a quote)
        distinct = list({token.address: token for token in tokens.values()}.values())
        prices = self._price_resolver.get_prices(distinct, currency)
        prices_by_address = {key.lower(): price for key, price in prices.items()}

        # Step 9: Assemble assets
        assets = [
            self._build_asset(key, token, balances[key], prices_by_address.get(token.address))
            for key, token in tokens.items()
        ]

        priced = sum(1 for asset in assets if asset.is_priced)
        logger.info(
            f"Valued portfolio {portfolio_id}: {len(assets)} assets, "
            f"{priced} priced, {len(breakdown.warnings)} warnings"
        )

        return portfolio, assets

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _fetch_transfers(self, address: str, breakdown: BalanceBreakdown) -> list[Transaction]:
        """Token and internal transfers; each failed feed contributes nothing."""
        filters = FilterOptions(address=address, page_size=0)
        transactions: list[Transaction] = []

        feeds = (
            ("token transfers", self._chain_data.token_transfers),
            ("internal transfers", self._chain_data.internal_transfers),
        )
        for label, fetch in feeds:
            try:
                transactions.extend(fetch(address, filters))
            except Exception as e:
                message = f"Failed to fetch {label} for {address}: {e}"
                logger.warning(message)
                breakdown.warnings.append(message)

        return transactions

    def _fetch_native_balance(self, address: str, breakdown: BalanceBreakdown) -> int | None:
        try:
            return self._chain_data.native_balance(address)
        except Exception as e:
            message = f"Failed to fetch native balance for {address}: {e}"
            logger.warning(message)
            breakdown.warnings.append(message)
            return None

    def _resolve_tokens(
            self,
            balances: dict[str, int],
            breakdown: BalanceBreakdown,
    ) -> dict[str, Token]:
        """Token metadata per balance key; unknown tokens are skipped."""
        addresses = [key for key in balances if key != NATIVE_KEY]
        metadata = {
            address.lower(): token
            for address, token in self._token_store.get_by_addresses(addresses).items()
        }

        tokens: dict[str, Token] = {}
        if NATIVE_KEY in balances:
            tokens[NATIVE_KEY] = NATIVE_TOKEN

        for address in addresses:
            token = metadata.get(address)
            if token is None:
                message = f"No metadata for token {address}, skipping"
                logger.warning(message)
                breakdown.warnings.append(message)
                continue
            tokens[address] = token

        return tokens

    def _build_asset(self, key: str, token: Token, amount: int, price: Price | None) -> Asset:
        if key == NATIVE_KEY:
            token = NATIVE_ASSET_TOKEN
            if price is not None:
                price = replace(price, token=token)

        value = self._value_calc.calculate(amount, price, token.decimals)
        return Asset(
            token=token,
            amount=amount,
            price=price,
            value=value,
            source=ASSET_SOURCE_AGGREGATED,
        )
