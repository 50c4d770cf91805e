# backend/app/routers/prices.py
"""
Token price endpoint.

GET /api/v1/prices?tokens=...&currency=usd

Tokens may be given as contract addresses, CoinGecko ids or symbols,
comma separated. ETH can be requested as "eth", "ethereum" or the zero
address; it is quoted through WETH.

Prices go through the shared PriceResolver, so they are served from the
cache when fresh and count against the outbound rate limit otherwise.
"""

import logging
from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import AfterValidator

from app.dependencies import get_price_resolver, get_token_repository
from app.middleware.rate_limit import limiter, RATE_LIMIT_DEFAULT
from app.schemas.assets import PriceListResponse, PriceResponse
from app.schemas.validators import ADDRESS_PATTERN, validate_currency
from app.services.constants import (
    DEFAULT_CURRENCY,
    MAX_PRICE_QUERY_TOKENS,
    NATIVE_TOKEN_ADDRESS,
    NATIVE_TOKEN_ID,
    NATIVE_TOKEN_SYMBOL,
)
from app.services.exceptions import ValidationError
from app.services.pricing import PriceResolver
from app.services.pricing.types import Token
from app.services.token_repository import TokenRepository
from app.services.valuation import NATIVE_TOKEN

logger = logging.getLogger(__name__)

CurrencyQuery = Annotated[
    str,
    AfterValidator(validate_currency),
    Query(description="Quote currency (e.g. usd, eur)"),
]

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/api/v1/prices",
    tags=["Prices"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def parse_token_list(raw: str) -> list[str]:
    """
    Split a comma separated token list, dropping blanks and duplicates.

    Raises:
        ValidationError: If the list is empty or too long
    """
    identifiers = list(dict.fromkeys(part.strip() for part in raw.split(",") if part.strip()))

    if not identifiers:
        raise ValidationError("At least one token is required", field="tokens")
    if len(identifiers) > MAX_PRICE_QUERY_TOKENS:
        raise ValidationError(
            f"Too many tokens: {len(identifiers)} (max {MAX_PRICE_QUERY_TOKENS})",
            field="tokens",
        )

    return identifiers


def resolve_token(identifier: str, repository: TokenRepository) -> Token | None:
    """
    Look up a token by address, id or symbol, in that order.

    Tokens without an Ethereum contract address cannot be priced and
    resolve to None, except ETH itself.
    """
    lowered = identifier.lower()
    if lowered in (NATIVE_TOKEN_ADDRESS, NATIVE_TOKEN_ID, NATIVE_TOKEN_SYMBOL.lower()):
        return NATIVE_TOKEN

    if ADDRESS_PATTERN.match(identifier):
        return repository.get_by_address(identifier)

    token = repository.get_by_id(identifier)
    if token is None:
        matches = [t for t in repository.get_by_symbol(identifier) if t.address]
        token = matches[0] if matches else None

    if token is None or not token.address:
        return None
    return token


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=PriceListResponse,
    summary="Get token prices",
    response_description="Prices for every resolvable token"
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_prices(
        request: Request,  # Required for rate limiting
        tokens: str = Query(
            ...,
            description="Comma separated addresses, ids or symbols",
            examples=["0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48,eth"],
        ),
        currency: CurrencyQuery = DEFAULT_CURRENCY,
        repository: TokenRepository = Depends(get_token_repository),
        resolver: PriceResolver = Depends(get_price_resolver),
) -> PriceListResponse:
    """
    Quote one whole unit of each requested token.

    Unknown tokens and tokens without a quote are listed in **missing**.
    Raises **503** if no price provider is reachable.
    """
    identifiers = parse_token_list(tokens)

    # Step 1: Resolve identifiers to tokens
    resolved: dict[str, Token] = {}
    missing: list[str] = []
    for identifier in identifiers:
        token = resolve_token(identifier, repository)
        if token is None:
            missing.append(identifier)
        else:
            resolved[identifier] = token

    # Step 2: One resolver call for all distinct tokens
    distinct = list({token.address: token for token in resolved.values()}.values())
    prices = resolver.get_prices(distinct, currency) if distinct else {}

    # Step 3: Map back in request order
    results: list[PriceResponse] = []
    for identifier, token in resolved.items():
        price = prices.get(token.address)
        if price is None:
            missing.append(identifier)
            continue
        # Report under the token as requested (ETH rather than WETH)
        results.append(PriceResponse.from_price(replace(price, token=token)))

    logger.debug(f"Priced {len(results)}/{len(identifiers)} tokens in {currency}")

    return PriceListResponse(currency=currency, prices=results, missing=missing)
