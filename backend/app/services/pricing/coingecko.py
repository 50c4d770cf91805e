# backend/app/services/pricing/coingecko.py
"""
CoinGecko price provider.

Fetches current prices from the CoinGecko `/simple/price` endpoint.

Endpoint:
    GET {base_url}/simple/price
        ?ids=usd-coin,tether
        &vs_currencies=usd
        &include_last_updated_at=true
        &precision=8

Response:
    {"usd-coin": {"usd": 0.99987, "last_updated_at": 1718000000}, ...}

Tokens are looked up by their CoinGecko id (Token.id) and results are
keyed back by Token.address. Up to 250 ids are sent per request.

Authentication:
    Demo keys go in the `x-cg-demo-api-key` header against the public
    host; pro keys use `x-cg-pro-api-key` against pro-api.coingecko.com.
"""

import logging
from datetime import datetime, timezone

import httpx

from app.services.constants import COINGECKO_MAX_BATCH_SIZE
from app.services.exceptions import (
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
)
from app.services.pricing.base import BasePriceProvider
from app.services.pricing.types import Price, Token, to_fixed_point

logger = logging.getLogger(__name__)

COINGECKO_PUBLIC_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_URL = "https://pro-api.coingecko.com/api/v3"


class CoinGeckoPriceProvider(BasePriceProvider):
    """
    CoinGecko implementation of the PriceProvider protocol.

    Configuration:
        api_key: Demo or pro API key (optional for the public tier)
        base_url: Override the API host (defaults by tier)
        pro: Use the pro header and host
        timeout: Request timeout in seconds
        client: Preconfigured httpx.Client (tests inject a MockTransport)

    Error mapping:
        HTTP 429        -> RateLimitError
        HTTP 5xx        -> ProviderUnavailableError (retried)
        transport error -> ProviderUnavailableError (retried)
        other non-200   -> MarketDataError
    """

    MAX_BATCH_SIZE = COINGECKO_MAX_BATCH_SIZE

    def __init__(
            self,
            api_key: str | None = None,
            base_url: str | None = None,
            pro: bool = False,
            timeout: float = 10.0,
            client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or None
        self._pro = pro
        self._base_url = (base_url or (COINGECKO_PRO_URL if pro else COINGECKO_PUBLIC_URL)).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        logger.info(
            f"CoinGeckoPriceProvider initialized: base_url={self._base_url}, "
            f"authenticated={self._api_key is not None}"
        )

    @property
    def name(self) -> str:
        return "coingecko"

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        if not tokens:
            return {}

        currency = (currency or "usd").lower()
        results: dict[str, Price] = {}

        for batch in self._chunks(tokens):
            results.update(self._execute_with_retry(self._fetch_batch, batch, currency))

        logger.info(
            f"CoinGecko returned {len(results)}/{len(tokens)} prices in {currency}"
        )
        return results

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            header = "x-cg-pro-api-key" if self._pro else "x-cg-demo-api-key"
            headers[header] = self._api_key
        return headers

    def _fetch_batch(self, batch: list[Token], currency: str) -> dict[str, Price]:
        """Fetch one batch of at most MAX_BATCH_SIZE tokens."""
        # Several tokens can share one CoinGecko id (e.g. native ETH and WETH)
        tokens_by_id: dict[str, list[Token]] = {}
        for token in batch:
            tokens_by_id.setdefault(token.id.lower(), []).append(token)

        params = {
            "ids": ",".join(tokens_by_id),
            "vs_currencies": currency,
            "include_last_updated_at": "true",
            "precision": "8",
        }

        try:
            response = self._client.get(
                f"{self._base_url}/simple/price",
                params=params,
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            raise ProviderUnavailableError(self.name, f"request failed: {e}")

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MarketDataError(f"Invalid JSON from CoinGecko: {e}", provider=self.name)

        if not isinstance(data, dict):
            raise MarketDataError("Unexpected CoinGecko response shape", provider=self.name)

        fetched_at = datetime.now(timezone.utc)
        results: dict[str, Price] = {}

        for coin_id, quote in data.items():
            if not isinstance(quote, dict) or quote.get(currency) is None:
                continue

            value = to_fixed_point(quote[currency])
            last_updated = fetched_at
            if quote.get("last_updated_at"):
                last_updated = datetime.fromtimestamp(int(quote["last_updated_at"]), tz=timezone.utc)

            for token in tokens_by_id.get(coin_id.lower(), []):
                results[token.address] = Price(
                    token=token,
                    value=value,
                    currency=currency,
                    last_updated=last_updated,
                )

        missing = [t.id for t in batch if t.address not in results]
        if missing:
            logger.debug(f"CoinGecko had no {currency} quote for: {', '.join(missing)}")

        return results

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status == 200:
            return

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if status >= 500:
            raise ProviderUnavailableError(self.name, f"HTTP {status}")

        raise MarketDataError(
            f"CoinGecko API error: status {status}, body: {response.text[:200]}",
            provider=self.name,
        )
