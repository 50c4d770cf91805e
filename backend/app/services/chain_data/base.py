# backend/app/services/chain_data/base.py
"""
Abstract base for chain-data provider adapters.

Concrete providers (Etherscan, mock) supply transfer history and live
balances for a wallet address. The core depends only on the
ChainDataProvider protocol; this base adds what every HTTP-backed adapter
needs:

- An optional per-provider RateLimiter checked before each upstream call
- Exponential-backoff retry of transient failures (tenacity)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TypeVar, Callable, Any, TYPE_CHECKING

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.services.exceptions import ProviderUnavailableError
from app.services.transactions.types import FilterOptions, Transaction

if TYPE_CHECKING:
    from app.services.protocols import RateLimiterProtocol

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BaseChainDataProvider(ABC):
    """
    Abstract base class for chain-data providers.

    Rate limiting:
        When a rate limiter is given, every upstream call first calls
        `rate_limiter.allow()`. A denial raises RateLimitError and the call
        is not sent. Denials are never retried here.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    def __init__(self, rate_limiter: RateLimiterProtocol | None = None) -> None:
        self._rate_limiter = rate_limiter

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def native_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        """Normal (external) transactions sent from or to address."""
        pass

    @abstractmethod
    def internal_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        """Contract-internal native value transfers involving address."""
        pass

    @abstractmethod
    def token_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        """ERC-20 transfers involving address."""
        pass

    @abstractmethod
    def native_balance(self, address: str) -> int:
        """Live native balance in wei."""
        pass

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _admit(self) -> None:
        """Consult the rate limiter (if any) before an upstream call."""
        if self._rate_limiter is not None:
            self._rate_limiter.allow()

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute func, retrying ProviderUnavailableError with backoff.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(ProviderUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
