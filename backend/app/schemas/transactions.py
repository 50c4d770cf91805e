# backend/app/schemas/transactions.py
"""
Pydantic schemas for on-chain transaction listings.

Transactions are read from chain data and classified per request; they
are never stored, so there are no Create/Update schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.pagination import PageMeta
from app.services.transactions.classifier import method_name
from app.services.transactions.types import (
    Transaction,
    TransactionDirection,
    TransactionStatus,
    TransactionType,
)


class TransactionResponse(BaseModel):
    id: str
    hash: str
    from_address: str
    to_address: str
    token_address: str = Field(..., description="Contract address, empty for ETH")
    token_symbol: str
    amount: str | None = Field(..., description="Amount in smallest unit, as a decimal string")
    type: TransactionType | None
    status: TransactionStatus
    direction: TransactionDirection | None
    method_signature: str
    method_name: str
    timestamp: datetime
    block_number: int

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            hash=tx.hash,
            from_address=tx.from_address,
            to_address=tx.to_address,
            token_address=tx.token_address,
            token_symbol=tx.token_symbol,
            amount=str(tx.amount) if tx.amount is not None else None,
            type=tx.type,
            status=tx.status,
            direction=tx.direction,
            method_signature=tx.method_signature,
            method_name=method_name(tx.method_signature),
            timestamp=tx.timestamp,
            block_number=tx.block_number,
        )


class TransactionListResponse(BaseModel):
    """
    One page of classified transactions, newest first.

    Attributes:
        address: Address the transactions were classified against
        items: Transactions on this page
        pagination: Page metadata (total is the filtered count)
    """

    address: str
    items: list[TransactionResponse]
    pagination: PageMeta
