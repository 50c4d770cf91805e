# backend/app/services/pricing/rate_limited.py
"""
Direct (uncached) batched price access under a rate limiter.

Chunks the token list into fixed-size batches and asks the rate limiter
separately for each batch:

- a batch the limiter denies is skipped (logged, partial result)
- a batch that is admitted but whose provider call fails aborts the whole
  call with that error

"Rate limited" is a soft skip, "provider failure" is a hard error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.services.exceptions import RateLimitError, ValidationError
from app.services.pricing.types import Price, Token

if TYPE_CHECKING:
    from app.services.protocols import PriceProvider, RateLimiterProtocol

logger = logging.getLogger(__name__)


class RateLimitedPriceService:
    """Batching wrapper around a single price provider."""

    def __init__(
            self,
            provider: PriceProvider,
            rate_limiter: RateLimiterProtocol,
            max_batch_size: int = 100,
    ) -> None:
        if max_batch_size < 1:
            raise ValidationError("max_batch_size must be at least 1", field="max_batch_size")
        self._provider = provider
        self._rate_limiter = rate_limiter
        self.max_batch_size = max_batch_size

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        """
        Price tokens batch by batch.

        Returns:
            Prices from every admitted batch, keyed by token address

        Raises:
            Whatever the provider raised for an admitted batch
        """
        results: dict[str, Price] = {}
        skipped = 0

        for start in range(0, len(tokens), self.max_batch_size):
            batch = tokens[start:start + self.max_batch_size]

            try:
                self._rate_limiter.allow()
            except RateLimitError:
                skipped += len(batch)
                logger.warning(
                    f"Rate limited, skipping batch of {len(batch)} tokens "
                    f"for {self._provider.name}"
                )
                continue

            results.update(self._provider.get_prices(batch, currency))

        if skipped:
            logger.info(f"Priced {len(results)} tokens, skipped {skipped} due to rate limiting")

        return results
