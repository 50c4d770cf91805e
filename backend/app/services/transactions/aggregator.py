# backend/app/services/transactions/aggregator.py
"""
Transaction aggregation for a wallet address.

Responsibilities:
- Fetch native, internal and token transfers (concurrently) and join them
- Classify every transfer relative to the queried address
- Filter, sort newest-first, paginate
- Reduce a transfer stream to net per-token balances

The listing path is authoritative: a failed fetch propagates to the caller.
The valuation path calls the fetch helpers itself and decides what is
best-effort.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import TYPE_CHECKING, Iterable

from app.services.transactions.classifier import classify
from app.services.transactions.types import (
    FilterOptions,
    Transaction,
    TransactionDirection,
    TransactionPage,
)

if TYPE_CHECKING:
    from app.services.protocols import ChainDataProvider

logger = logging.getLogger(__name__)


def matches_filters(tx: Transaction, filters: FilterOptions) -> bool:
    """True if tx passes every filter that is set."""
    if filters.type is not None and tx.type != filters.type:
        return False
    if filters.status is not None and tx.status != filters.status:
        return False
    if filters.direction is not None and tx.direction != filters.direction:
        return False

    if filters.token:
        token = filters.token.lower()
        if tx.token_address.lower() != token and tx.token_symbol.lower() != token:
            return False

    if filters.from_date is not None and tx.timestamp < filters.from_date:
        return False
    if filters.to_date is not None and tx.timestamp > filters.to_date:
        return False

    return True


def paginate(items: list[Transaction], page: int, page_size: int) -> list[Transaction]:
    """
    Slice one page out of items.

    page < 1 is treated as 1; page_size <= 0 returns everything.
    """
    if page_size <= 0:
        return list(items)
    page = max(page, 1)
    start = (page - 1) * page_size
    if start >= len(items):
        return []
    return items[start:start + page_size]


def calculate_token_amounts(transactions: Iterable[Transaction]) -> dict[str, int]:
    """
    Net balance per token address ("" for the native asset).

    Transactions without an amount or without a direction are skipped.

    Examples:
        in 100 + out 40 of the same token -> {token: 60}
    """
    balances: dict[str, int] = {}

    for tx in transactions:
        if tx.amount is None or tx.direction is None:
            continue

        key = tx.token_address.lower()
        balances.setdefault(key, 0)

        if tx.direction == TransactionDirection.IN:
            balances[key] += tx.amount
        elif tx.direction == TransactionDirection.OUT:
            balances[key] -= tx.amount

    return balances


class TransactionAggregator:
    """
    Joins the three transfer feeds of a chain-data provider.

    Attributes:
        _chain_data: Injected ChainDataProvider
        _max_workers: Threads used for the concurrent fetch
    """

    def __init__(self, chain_data: ChainDataProvider, max_workers: int = 3) -> None:
        self._chain_data = chain_data
        self._max_workers = max(1, max_workers)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def list_transactions(self, address: str, filters: FilterOptions | None = None) -> TransactionPage:
        """
        Classified, filtered, newest-first page of transactions for address.

        Returns:
            TransactionPage with the page items and the filtered total

        Raises:
            ValidationError: If filters are inconsistent
            ChainDataError / MarketDataError subclasses from the provider
        """
        # Work on a copy; the caller keeps its own filters
        filters = replace(filters) if filters is not None else FilterOptions()
        filters.normalize()
        filters.validate()

        address = address.strip().lower()
        filters.address = address

        # Step 1: Fetch all three feeds
        transactions = self.fetch_all(address, filters)

        # Step 2: Classify
        for tx in transactions:
            classify(tx, address)

        # Step 3: Filter
        filtered = [tx for tx in transactions if matches_filters(tx, filters)]

        # Step 4: Sort newest first (sorted() is stable)
        filtered = sorted(filtered, key=lambda tx: tx.timestamp, reverse=True)

        # Step 5: Paginate
        items = paginate(filtered, filters.page, filters.page_size)

        logger.debug(
            f"Listed {len(items)}/{len(filtered)} transactions for {address} "
            f"(fetched {len(transactions)}, page {filters.page})"
        )

        return TransactionPage(
            items=items,
            total=len(filtered),
            page=filters.page,
            page_size=filters.page_size,
        )

    def fetch_all(self, address: str, filters: FilterOptions) -> list[Transaction]:
        """Native, internal and token transfers, fetched concurrently."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            native = pool.submit(self._chain_data.native_transfers, address, filters)
            internal = pool.submit(self._chain_data.internal_transfers, address, filters)
            tokens = pool.submit(self._chain_data.token_transfers, address, filters)

            # Join all three before any failure surfaces
            futures = [native, internal, tokens]
            for future in futures:
                future.exception()

            return [tx for future in futures for tx in future.result()]
