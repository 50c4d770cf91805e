# backend/app/models.py
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Integer, UniqueConstraint, TypeDecorator
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class BigIntString(TypeDecorator):
    """
    Arbitrary-precision integer stored as a decimal string.

    Token amounts in the smallest unit (wei) overflow BIGINT, so they are
    persisted as text and handed back to Python as int.
    """
    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class Portfolio(Base):
    """A tracked wallet. The address is stored lowercase and is unique."""
    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    address: Mapped[str] = mapped_column(String(42), unique=True, index=True)
    name: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationship: One Portfolio has Many Holdings
    holdings: Mapped[list["Holding"]] = relationship(
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="Holding.id",
    )


class Holding(Base):
    """
    A manually recorded token balance.

    One holding per (portfolio, token_address). The native asset uses the
    zero address.
    """
    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint('portfolio_id', 'token_address', name='uq_holding_portfolio_token'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"), index=True)

    token_address: Mapped[str] = mapped_column(String(42), index=True)  # lowercase, zero address for ETH
    token_symbol: Mapped[str] = mapped_column(String, default="")  # e.g. "USDC"
    token_name: Mapped[str | None] = mapped_column(String, nullable=True)
    token_decimals: Mapped[int] = mapped_column(Integer, default=18)

    # Amount in the token's smallest unit
    amount: Mapped[int] = mapped_column(BigIntString, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    portfolio: Mapped["Portfolio"] = relationship(back_populates="holdings")
