# backend/app/services/pricing/mock.py
"""
Deterministic in-process price provider.

Serves as the fallback behind CoinGecko and as the primary provider when
PRICE_PROVIDER=mock (local development without API keys). Every token gets
the same configured price unless an override is registered.
"""

import logging
from datetime import datetime, timezone

from app.services.constants import MOCK_PRICE_VALUE
from app.services.pricing.types import Price, Token

logger = logging.getLogger(__name__)


class MockPriceProvider:
    """
    Price provider returning fixed quotes.

    Attributes:
        default_value: Fixed-point price used for tokens without an override
        overrides: Per-address fixed-point prices
    """

    def __init__(
            self,
            default_value: int | None = MOCK_PRICE_VALUE,
            overrides: dict[str, int] | None = None,
    ) -> None:
        self.default_value = default_value
        self.overrides = {addr.lower(): value for addr, value in (overrides or {}).items()}

    @property
    def name(self) -> str:
        return "mock"

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        now = datetime.now(timezone.utc)
        results: dict[str, Price] = {}

        for token in tokens:
            value = self.overrides.get(token.address, self.default_value)
            if value is None:
                continue
            results[token.address] = Price(
                token=token,
                value=value,
                currency=currency,
                last_updated=now,
            )

        logger.debug(f"MockPriceProvider priced {len(results)} tokens in {currency}")
        return results
