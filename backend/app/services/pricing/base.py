# backend/app/services/pricing/base.py
"""
Abstract base for concrete price provider adapters.

The valuation core only depends on the PriceProvider protocol in
app/services/protocols.py. This base class exists so that HTTP-backed
adapters share one retry policy:

- Retries live in the adapters, never in PriceResolver or the engine
- Exponential backoff on transient failures only
- Mock implementations can skip the base class entirely
"""

import logging
from abc import ABC, abstractmethod
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.services.exceptions import ProviderUnavailableError
from app.services.pricing.types import Price, Token

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BasePriceProvider(ABC):
    """
    Abstract base class for price providers.

    Retry Behavior:
        `_execute_with_retry` retries ProviderUnavailableError with
        exponential backoff. Subclasses tune it through class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    RateLimitError is NOT retried here: the resolver treats it as a signal
    to switch to the fallback provider, so waiting would only add latency.
    """

    # =========================================================================
    # RETRY CONFIGURATION (can be overridden by subclasses)
    # =========================================================================

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    # =========================================================================
    # BATCH CONFIGURATION (can be overridden by subclasses)
    # =========================================================================

    MAX_BATCH_SIZE: int = 100

    # =========================================================================
    # ABSTRACT PROPERTIES AND METHODS
    # =========================================================================

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this provider.

        Used for logging, error messages, and provider selection.
        """
        pass

    @abstractmethod
    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        """
        Fetch current prices for a batch of tokens.

        Args:
            tokens: Tokens to price (address is the result key)
            currency: Quote currency (e.g. "usd")

        Returns:
            Prices keyed by lowercase token address. Tokens the provider
            does not know are absent.

        Raises:
            ProviderUnavailableError: Network or server error (retryable)
            RateLimitError: Upstream rate limit hit
            MarketDataError: Any other unusable response
        """
        pass

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _chunks(self, tokens: list[Token]) -> list[list[Token]]:
        """Split tokens into MAX_BATCH_SIZE sized batches."""
        size = max(1, self.MAX_BATCH_SIZE)
        return [tokens[i:i + size] for i in range(0, len(tokens), size)]

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Args:
            func: Function to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Return value of func

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
