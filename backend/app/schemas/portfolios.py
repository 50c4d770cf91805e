# backend/app/schemas/portfolios.py
"""
Pydantic schemas for Portfolio and Holding validation.

These schemas define:
- What data clients must send (Create / Update)
- What data the API returns (Response)

Validation layers:
- Field constraints: type, length
- Field validators: address normalization, integer amount parsing
- Service: uniqueness, existence and merge rules

Amounts are integers in the token's smallest unit. They are accepted as
JSON numbers or digit strings and always returned as strings, since
values such as wei balances exceed what JavaScript numbers hold exactly.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.pagination import PaginationMeta
from app.schemas.validators import parse_amount, validate_address


# =============================================================================
# HOLDINGS
# =============================================================================

class HoldingCreate(BaseModel):
    """
    Schema for recording a holding.

    Posting a token that is already held adds to the existing amount.
    Use the zero address for native ETH.
    """

    token_address: str = Field(
        ...,
        examples=["0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"],
        description="Token contract address (zero address for ETH)"
    )
    amount: int = Field(
        ...,
        examples=["1000000"],
        description="Amount in the token's smallest unit (must be positive)"
    )
    token_symbol: str = Field(
        default="",
        max_length=20,
        examples=["USDC"],
    )
    token_name: str | None = Field(default=None, max_length=100)
    token_decimals: int = Field(default=18, ge=0, le=36)

    @field_validator('token_address')
    @classmethod
    def normalize_token_address(cls, v: str) -> str:
        return validate_address(v)

    @field_validator('amount', mode='before')
    @classmethod
    def parse_positive_amount(cls, v) -> int:
        amount = parse_amount(v)
        if amount == 0:
            raise ValueError("Amount must be greater than zero")
        return amount


class HoldingUpdate(BaseModel):
    """Schema for replacing the amount of a holding (zero is allowed)."""

    amount: int = Field(..., description="New amount in the token's smallest unit")

    @field_validator('amount', mode='before')
    @classmethod
    def parse_non_negative_amount(cls, v) -> int:
        return parse_amount(v)


class HoldingResponse(BaseModel):
    id: int
    portfolio_id: int
    token_address: str
    token_symbol: str
    token_name: str | None
    token_decimals: int
    amount: str = Field(..., description="Amount in smallest unit, as a decimal string")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('amount', mode='before')
    @classmethod
    def amount_to_string(cls, v) -> str:
        return str(v)


# =============================================================================
# PORTFOLIOS
# =============================================================================

class PortfolioCreate(BaseModel):
    """Schema for tracking a new wallet."""

    address: str = Field(
        ...,
        examples=["0x742d35cc6634c0532925a3b844bc9e7595f0beb0"],
        description="Wallet address (stored lowercase, must be unique)"
    )
    name: str = Field(
        default="",
        max_length=100,
        examples=["Main wallet"],
    )

    @field_validator('address')
    @classmethod
    def normalize_address(cls, v: str) -> str:
        return validate_address(v)

    @field_validator('name')
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip()


class PortfolioResponse(BaseModel):
    """Portfolio with its recorded holdings."""

    id: int = Field(..., description="Unique identifier")
    address: str = Field(..., description="Wallet address, lowercase")
    name: str
    holdings: list[HoldingResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PortfolioListResponse(BaseModel):
    """
    Response schema for paginated portfolio list.

    Attributes:
        items: Portfolios for current page
        pagination: Pagination metadata with computed fields
    """

    items: list[PortfolioResponse] = Field(..., description="Portfolios for current page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")
