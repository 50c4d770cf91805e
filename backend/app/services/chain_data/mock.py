# backend/app/services/chain_data/mock.py
"""
In-memory chain-data provider for local development.

Selected with TRANSACTION_PROVIDER=mock. Any queried address gets the same
small, realistic history (ETH transfers, a Uniswap swap, rETH staking,
USDT/USDC transfers) built relative to that address, plus a fixed native
balance. Explicit transactions can also be registered per address.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app.services.transactions.types import (
    FilterOptions,
    Transaction,
    TransactionStatus,
)

logger = logging.getLogger(__name__)

USDT_ADDRESS = "0xdac17f958d2ee523a2206206994597c13d831ec7"
USDC_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
UNISWAP_V2_ROUTER = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
RETH_ADDRESS = "0xae78736cd615f374d3085123a210448e74fc6393"

# 3 ETH
DEFAULT_MOCK_NATIVE_BALANCE = 3 * 10 ** 18


def _counterparty(char: str) -> str:
    return "0x" + char * 40


class MockChainDataProvider:
    """
    Deterministic ChainDataProvider.

    Attributes:
        native_balance_wei: Balance returned for every address
    """

    def __init__(
            self,
            native_balance_wei: int = DEFAULT_MOCK_NATIVE_BALANCE,
            now: datetime | None = None,
    ) -> None:
        self.native_balance_wei = native_balance_wei
        self._now = now
        self._registered: dict[str, list[Transaction]] = {}

    @property
    def name(self) -> str:
        return "mock"

    def register(self, address: str, transactions: list[Transaction]) -> None:
        """Replace the generated history of address with transactions."""
        self._registered[address.lower()] = list(transactions)

    # =========================================================================
    # ChainDataProvider
    # =========================================================================

    def native_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return [tx for tx in self._history(address) if tx.is_native and ":internal" not in tx.id]

    def internal_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return [tx for tx in self._history(address) if ":internal" in tx.id]

    def token_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return [tx for tx in self._history(address) if not tx.is_native]

    def native_balance(self, address: str) -> int:
        return self.native_balance_wei

    # =========================================================================
    # SAMPLE DATA
    # =========================================================================

    def _history(self, address: str) -> list[Transaction]:
        address = address.lower()
        if address in self._registered:
            # Callers classify in place; hand out copies
            return [replace(tx) for tx in self._registered[address]]
        return self._sample_history(address)

    def _sample_history(self, address: str) -> list[Transaction]:
        now = self._now or datetime.now(timezone.utc)

        def tx(
                n: int,
                sender: str,
                recipient: str,
                amount: int,
                minutes_ago: int,
                token_address: str = "",
                token_symbol: str = "ETH",
                method_signature: str = "",
                status: TransactionStatus = TransactionStatus.SUCCESS,
                suffix: str = "",
        ) -> Transaction:
            tx_hash = "0x" + str(n) * 64
            return Transaction(
                id=f"{tx_hash}:{token_address}" if token_address else f"{tx_hash}{suffix}",
                hash=tx_hash,
                from_address=sender,
                to_address=recipient,
                token_address=token_address,
                token_symbol=token_symbol,
                amount=amount,
                status=status,
                method_signature=method_signature,
                timestamp=now - timedelta(minutes=minutes_ago),
                block_number=18_000_000 + n,
            )

        return [
            tx(1, address, _counterparty("b"), 10 ** 18, 120),
            tx(2, _counterparty("c"), address, 500 * 10 ** 6, 60,
               token_address=USDT_ADDRESS, token_symbol="USDT", method_signature="0xa9059cbb"),
            tx(3, address, UNISWAP_V2_ROUTER, 5 * 10 ** 17, 30, method_signature="0x7ff36ab5"),
            tx(4, address, RETH_ADDRESS, 2 * 10 ** 18, 15, method_signature="0x3d18b912"),
            tx(5, _counterparty("d"), address, 1000 * 10 ** 6, 10,
               token_address=USDC_ADDRESS, token_symbol="USDC", method_signature="0xa9059cbb"),
            tx(6, address, _counterparty("e"), 100 * 10 ** 6, 5,
               token_address=USDT_ADDRESS, token_symbol="USDT", method_signature="0xa9059cbb",
               status=TransactionStatus.PENDING),
            tx(7, address, _counterparty("f"), 10 ** 17, 1, status=TransactionStatus.FAILED),
            tx(8, UNISWAP_V2_ROUTER, address, 3 * 10 ** 16, 29, suffix=":internal:0"),
        ]
