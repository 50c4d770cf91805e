# backend/app/schemas/assets.py
"""
Pydantic schemas for priced assets and price quotes.

Integer fields (amount, price value, asset value) are decimal strings:
- amount: token smallest unit
- value fields: currency units scaled by 10^8

Each has a *_decimal companion scaled to whole units for display.
Never do arithmetic on the *_decimal fields; the integer strings are
authoritative.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.services.constants import CURRENCY_DECIMALS
from app.services.pricing.types import Price, Token, to_decimal
from app.services.valuation.types import Asset


class TokenResponse(BaseModel):
    id: str
    name: str
    symbol: str
    address: str
    decimals: int

    @classmethod
    def from_token(cls, token: Token) -> "TokenResponse":
        return cls(
            id=token.id,
            name=token.name,
            symbol=token.symbol,
            address=token.address,
            decimals=token.decimals,
        )


class PriceResponse(BaseModel):
    """A quote for one whole token."""

    token: TokenResponse
    currency: str
    value: str = Field(..., description="Price scaled by 10^8, as a decimal string")
    value_decimal: Decimal = Field(..., description="Price in whole currency units")
    last_updated: datetime

    @classmethod
    def from_price(cls, price: Price) -> "PriceResponse":
        return cls(
            token=TokenResponse.from_token(price.token),
            currency=price.currency,
            value=str(price.value),
            value_decimal=to_decimal(price.value, CURRENCY_DECIMALS),
            last_updated=price.last_updated,
        )


class AssetResponse(BaseModel):
    """One priced position. price and value are null when no quote exists."""

    token: TokenResponse
    amount: str = Field(..., description="Balance in smallest unit")
    amount_decimal: Decimal = Field(..., description="Balance in whole tokens")
    price: PriceResponse | None = None
    value: str | None = Field(default=None, description="Value scaled by 10^8")
    value_decimal: Decimal | None = None
    source: str

    @classmethod
    def from_asset(cls, asset: Asset) -> "AssetResponse":
        return cls(
            token=TokenResponse.from_token(asset.token),
            amount=str(asset.amount),
            amount_decimal=asset.amount_decimal,
            price=PriceResponse.from_price(asset.price) if asset.price else None,
            value=str(asset.value) if asset.value is not None else None,
            value_decimal=asset.value_decimal,
            source=asset.source,
        )


class PortfolioAssetsResponse(BaseModel):
    """Valuation of one portfolio in one currency."""

    portfolio_id: int
    address: str
    currency: str
    assets: list[AssetResponse]
    total_value: str = Field(..., description="Sum of known asset values, scaled by 10^8")
    total_value_decimal: Decimal
    priced_count: int = Field(..., description="Assets that have a value")
    unpriced_count: int = Field(..., description="Assets without a quote")


class PriceListResponse(BaseModel):
    """Prices for the requested tokens."""

    currency: str
    prices: list[PriceResponse]
    missing: list[str] = Field(
        default_factory=list,
        description="Requested tokens with no metadata or no available quote"
    )
