# backend/app/services/pricing/resolver.py
"""
Price Resolver - cache-aside price lookup with primary/fallback providers.

Given a list of tokens and a target currency, returns as many fresh prices
as possible while keeping upstream calls to a minimum.

Algorithm (get_prices):
    1. Empty token list -> {} (cache and providers untouched)
    2. Batch-read the cache with keys "{address}:{currency}"
    3. Split tokens into fresh (cached, age < cache_ttl) and missed
    4. For missed tokens:
       - ask the rate limiter; if admitted, call primary once with the
         whole missed batch
       - on primary failure or rate-limit denial, call fallback once with
         the same batch
       - if fallback also fails, raise PriceResolutionError; fresh cache
         hits from this call are discarded as well
       - write every fetched price back with last_updated = now
    5. Return fresh + fetched prices keyed by token address

All-or-nothing batches:
    A partially successful batch is handled exactly like a failed one.
    Per-token fallback would change which prices get cached, so it is
    deliberately not attempted.

Freshness lives here, not in the cache, so the same PriceCache can serve
callers with different TTLs.

Usage:
    from app.services.pricing import PriceResolver

    resolver = PriceResolver(
        primary=CoinGeckoPriceProvider(api_key=...),
        fallback=MockPriceProvider(),
        cache=PriceCache(),
        rate_limiter=RateLimiter(max_calls=10, window=1.0),
    )
    prices = resolver.get_prices(tokens, "usd")
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, TYPE_CHECKING

from app.services.constants import DEFAULT_PRICE_CACHE_TTL_SECONDS
from app.services.exceptions import PriceResolutionError, RateLimitError
from app.services.price_cache import PriceCache
from app.services.pricing.types import Price, Token

if TYPE_CHECKING:
    from app.services.protocols import PriceProvider, RateLimiterProtocol

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def cache_key(token: Token, currency: str) -> str:
    """Cache key for a token quote: "{address}:{currency}"."""
    return f"{token.address}:{currency.lower()}"


class PriceResolver:
    """
    Cache-aside price orchestration over an explicit (primary, fallback) pair.

    Attributes:
        cache_ttl: How long a cached price counts as fresh
    """

    def __init__(
            self,
            primary: PriceProvider,
            fallback: PriceProvider | None,
            cache: PriceCache[str, Price],
            rate_limiter: RateLimiterProtocol,
            cache_ttl: timedelta | float = DEFAULT_PRICE_CACHE_TTL_SECONDS,
            clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not isinstance(cache_ttl, timedelta):
            cache_ttl = timedelta(seconds=cache_ttl)

        self._primary = primary
        self._fallback = fallback
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._clock = clock
        self.cache_ttl = cache_ttl

        logger.info(
            f"PriceResolver initialized: primary={primary.name}, "
            f"fallback={fallback.name if fallback else None}, "
            f"ttl={cache_ttl.total_seconds():.0f}s"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        """
        Resolve prices for tokens in currency.

        Args:
            tokens: Tokens to price
            currency: Quote currency (case-insensitive)

        Returns:
            Prices keyed by token address. A token missing from the result
            has no known price; that is not an error.

        Raises:
            PriceResolutionError: Missed tokens could be served by neither
                                  the primary nor the fallback provider
        """
        # Step 1: Nothing to do
        if not tokens:
            return {}

        currency = currency.lower()
        now = self._clock()

        # Step 2: Batch cache read
        cached = self._cache.get_batch(cache_key(t, currency) for t in tokens)

        # Step 3: Partition into fresh and missed
        fresh: dict[str, Price] = {}
        missed: list[Token] = []
        for token in tokens:
            price = cached.get(cache_key(token, currency))
            if price is not None and now - price.last_updated < self.cache_ttl:
                fresh[token.address] = price
            else:
                missed.append(token)

        logger.debug(
            f"Price cache: {len(fresh)} fresh, {len(missed)} missed "
            f"of {len(tokens)} tokens ({currency})"
        )

        if not missed:
            return fresh

        # Step 4: Fetch the missed batch and write it back
        fetched = self._fetch_missed(missed, currency)

        stamped = {address: price.with_last_updated(now) for address, price in fetched.items()}
        self._cache.set_batch({
            cache_key(price.token, currency): price for price in stamped.values()
        })

        # Step 5: Union
        return {**fresh, **stamped}

    def invalidate(self, tokens: list[Token], currency: str) -> None:
        """Drop cached quotes so the next lookup goes upstream."""
        for token in tokens:
            self._cache.delete(cache_key(token, currency))

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _fetch_missed(self, missed: list[Token], currency: str) -> dict[str, Price]:
        """Primary first (if admitted), then fallback. All or nothing."""
        try:
            self._rate_limiter.allow()
            prices = self._primary.get_prices(missed, currency)
            logger.info(
                f"Fetched {len(prices)}/{len(missed)} prices from {self._primary.name}"
            )
            return prices
        except RateLimitError as e:
            primary_error: Exception = e
            logger.warning(f"Primary price provider rate limited, using fallback: {e}")
        except Exception as e:
            primary_error = e
            logger.warning(
                f"Primary price provider {self._primary.name} failed, using fallback: {e}"
            )

        if self._fallback is None:
            logger.error(f"No fallback price provider configured: {primary_error}")
            raise PriceResolutionError(primary_error)

        try:
            prices = self._fallback.get_prices(missed, currency)
        except Exception as e:
            logger.error(
                f"Fallback price provider {self._fallback.name} failed: {e}"
            )
            raise PriceResolutionError(primary_error, e) from e

        logger.info(
            f"Fetched {len(prices)}/{len(missed)} prices from fallback {self._fallback.name}"
        )
        return prices
