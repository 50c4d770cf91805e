# backend/app/services/transactions/types.py
"""
Internal data types for transaction classification and aggregation.

These dataclasses are NOT Pydantic schemas - those are defined in
app/schemas/transactions.py for API serialization.

Design Principles:
- Amounts are Python ints in the token's smallest unit (arbitrary precision)
- direction and type are derived by the classifier, not trusted from chain data
- Enums subclass str so they compare equal to their wire values
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.services.constants import DEFAULT_TRANSACTION_PAGE_SIZE
from app.services.exceptions import ValidationError


class TransactionType(str, enum.Enum):
    SEND = "send"
    RECEIVE = "receive"
    SWAP = "swap"
    STAKE = "stake"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class TransactionDirection(str, enum.Enum):
    IN = "in"
    OUT = "out"


@dataclass
class Transaction:
    """
    A single native, internal or token transfer.

    Attributes:
        id: Unique id (tx hash, or "hash:contract" for token transfers)
        hash: Transaction hash
        from_address: Sender, lowercase
        to_address: Recipient, lowercase
        token_address: Contract address, "" for the native asset
        token_symbol: Token symbol if known
        amount: Amount in the token's smallest unit (None if unknown)
        type: Derived transaction type
        status: Execution status
        direction: Derived direction relative to the queried address
                   (None when it could not be determined)
        method_signature: 4-byte selector of the call ("0x" + 8 hex)
        input_data: Raw call input
        timestamp: Block time (timezone-aware)
        block_number: Block height
    """

    id: str
    hash: str
    from_address: str
    to_address: str
    token_address: str = ""
    token_symbol: str = ""
    amount: int | None = None
    type: TransactionType | None = None
    status: TransactionStatus = TransactionStatus.SUCCESS
    direction: TransactionDirection | None = None
    method_signature: str = ""
    input_data: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    block_number: int = 0

    @property
    def is_native(self) -> bool:
        return self.token_address == ""


@dataclass
class FilterOptions:
    """
    Query parameters for transaction retrieval.

    All filters are optional. After normalize(), page >= 1; a page_size
    of 0 or less means "return everything on one page".

    Attributes:
        address: Wallet address to query
        type: Keep only this transaction type
        status: Keep only this status
        token: Contract address or symbol (case-insensitive)
        direction: Keep only this direction
        from_date: Exclude transactions before this time
        to_date: Exclude transactions after this time
        page: 1-indexed page number
        page_size: Items per page
    """

    address: str = ""
    type: TransactionType | None = None
    status: TransactionStatus | None = None
    token: str | None = None
    direction: TransactionDirection | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = 1
    page_size: int = DEFAULT_TRANSACTION_PAGE_SIZE

    def normalize(self) -> FilterOptions:
        """Apply defaults in place and return self."""
        self.address = self.address.strip().lower()
        if self.page < 1:
            self.page = 1
        if self.token is not None:
            self.token = self.token.strip() or None
        # Naive bounds are taken as UTC
        if self.from_date is not None and self.from_date.tzinfo is None:
            self.from_date = self.from_date.replace(tzinfo=timezone.utc)
        if self.to_date is not None and self.to_date.tzinfo is None:
            self.to_date = self.to_date.replace(tzinfo=timezone.utc)
        return self

    def validate(self) -> None:
        """
        Reject inconsistent filter combinations.

        Raises:
            ValidationError: If the date range is inverted
        """
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValidationError(
                "from_date must not be after to_date",
                field="from_date",
            )

    @classmethod
    def from_raw(
            cls,
            address: str = "",
            type: str | None = None,
            status: str | None = None,
            token: str | None = None,
            direction: str | None = None,
            from_date: datetime | None = None,
            to_date: datetime | None = None,
            page: int = 1,
            page_size: int = DEFAULT_TRANSACTION_PAGE_SIZE,
    ) -> FilterOptions:
        """
        Build filters from plain strings (query parameters).

        Raises:
            ValidationError: If type, status or direction is not a known value
        """
        options = cls(
            address=address,
            type=_parse_enum(TransactionType, type, "type"),
            status=_parse_enum(TransactionStatus, status, "status"),
            token=token,
            direction=_parse_enum(TransactionDirection, direction, "direction"),
            from_date=from_date,
            to_date=to_date,
            page=page,
            page_size=page_size,
        )
        options.normalize()
        options.validate()
        return options


@dataclass
class TransactionPage:
    """One page of transactions plus the filtered total."""

    items: list[Transaction]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0 or self.total <= 0:
            return 1
        return (self.total + self.page_size - 1) // self.page_size


def _parse_enum(enum_cls: type[enum.Enum], raw: str | None, field_name: str):
    if raw is None or raw == "":
        return None
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name}: '{raw}'. Valid options: {valid}",
            field=field_name,
        )
