# backend/app/services/portfolio_service.py
"""
Portfolio Service for managing tracked wallets and their holdings.

This service handles:
- Creating, listing, reading and deleting portfolios
- Adding, updating and deleting manually recorded holdings
- Serving portfolios with holdings to the ValuationEngine

Design Principles:
- One instance per database session (built per request)
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Addresses are validated and stored lowercase
- Amounts are ints in the token's smallest unit

Usage:
    from app.services.portfolio_service import PortfolioService

    service = PortfolioService(db)

    portfolio = service.create_portfolio("0x742d35cc...", name="Main wallet")
    service.add_holding(portfolio.id, token_address=USDC, amount=1_000_000, token_symbol="USDC")
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.models import Holding, Portfolio
from app.services.constants import DEFAULT_TOKEN_DECIMALS
from app.services.exceptions import (
    HoldingNotFoundError,
    PortfolioExistsError,
    PortfolioNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str, field: str = "address") -> str:
    """
    Validate an Ethereum address and return it lowercase.

    Raises:
        ValidationError: If address is not "0x" followed by 40 hex chars
    """
    address = (address or "").strip()
    if not ADDRESS_PATTERN.match(address):
        raise ValidationError(f"Invalid Ethereum address: '{address}'", field=field)
    return address.lower()


class PortfolioService:
    """
    Portfolio and holding management over one SQLAlchemy session.

    Also satisfies the PortfolioStore protocol (get_with_holdings).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    # =========================================================================
    # PORTFOLIOS
    # =========================================================================

    def create_portfolio(self, address: str, name: str = "") -> Portfolio:
        """
        Create a portfolio for a wallet address.

        Raises:
            ValidationError: If the address is malformed
            PortfolioExistsError: If the address is already tracked
        """
        address = normalize_address(address)

        existing = self._db.scalar(select(Portfolio).where(Portfolio.address == address))
        if existing is not None:
            raise PortfolioExistsError(address)

        portfolio = Portfolio(address=address, name=name.strip())
        self._db.add(portfolio)
        self._db.commit()
        self._db.refresh(portfolio)

        logger.info(f"Created portfolio {portfolio.id} for {address}")
        return portfolio

    def list_portfolios(self, skip: int = 0, limit: int = 100) -> tuple[list[Portfolio], int]:
        """Returns (page of portfolios ordered by id, total count)."""
        total = self._db.scalar(select(func.count()).select_from(Portfolio)) or 0
        items = self._db.scalars(
            select(Portfolio)
            .options(selectinload(Portfolio.holdings))
            .order_by(Portfolio.id)
            .offset(skip)
            .limit(limit)
        ).all()
        return list(items), total

    def get_portfolio(self, portfolio_id: int) -> Portfolio:
        """
        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
        """
        portfolio = self.get_with_holdings(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def get_with_holdings(self, portfolio_id: int) -> Portfolio | None:
        """Portfolio with holdings eagerly loaded, or None."""
        return self._db.scalar(
            select(Portfolio)
            .options(selectinload(Portfolio.holdings))
            .where(Portfolio.id == portfolio_id)
        )

    def delete_portfolio(self, portfolio_id: int) -> None:
        """
        Delete a portfolio and its holdings.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
        """
        portfolio = self.get_portfolio(portfolio_id)
        self._db.delete(portfolio)
        self._db.commit()
        logger.info(f"Deleted portfolio {portfolio_id}")

    # =========================================================================
    # HOLDINGS
    # =========================================================================

    def add_holding(
            self,
            portfolio_id: int,
            token_address: str,
            amount: int,
            token_symbol: str = "",
            token_name: str | None = None,
            token_decimals: int = DEFAULT_TOKEN_DECIMALS,
    ) -> Holding:
        """
        Record a holding. An existing holding of the same token is topped up.

        Raises:
            PortfolioNotFoundError: If the portfolio doesn't exist
            ValidationError: If the amount is not positive or the address is malformed
        """
        if amount <= 0:
            raise ValidationError("Holding amount must be greater than zero", field="amount")
        if token_decimals < 0:
            raise ValidationError("Token decimals cannot be negative", field="token_decimals")

        token_address = normalize_address(token_address, field="token_address")
        portfolio = self.get_portfolio(portfolio_id)

        holding = next(
            (h for h in portfolio.holdings if h.token_address == token_address),
            None,
        )

        if holding is not None:
            holding.amount = holding.amount + amount
            logger.info(
                f"Merged {amount} into holding {holding.id} "
                f"({token_address}) of portfolio {portfolio_id}"
            )
        else:
            holding = Holding(
                portfolio_id=portfolio_id,
                token_address=token_address,
                token_symbol=token_symbol.strip().upper(),
                token_name=token_name,
                token_decimals=token_decimals,
                amount=amount,
            )
            self._db.add(holding)

        self._db.commit()
        self._db.refresh(holding)
        return holding

    def update_holding(self, portfolio_id: int, holding_id: int, amount: int) -> Holding:
        """
        Set the amount of a holding.

        Raises:
            HoldingNotFoundError: If the holding doesn't belong to the portfolio
            ValidationError: If amount is negative
        """
        if amount < 0:
            raise ValidationError("Holding amount cannot be negative", field="amount")

        holding = self._get_holding(portfolio_id, holding_id)
        holding.amount = amount
        self._db.commit()
        self._db.refresh(holding)
        return holding

    def delete_holding(self, portfolio_id: int, holding_id: int) -> None:
        """
        Raises:
            HoldingNotFoundError: If the holding doesn't belong to the portfolio
        """
        holding = self._get_holding(portfolio_id, holding_id)
        self._db.delete(holding)
        self._db.commit()
        logger.info(f"Deleted holding {holding_id} of portfolio {portfolio_id}")

    def _get_holding(self, portfolio_id: int, holding_id: int) -> Holding:
        holding = self._db.scalar(
            select(Holding).where(
                Holding.id == holding_id,
                Holding.portfolio_id == portfolio_id,
            )
        )
        if holding is None:
            raise HoldingNotFoundError(holding_id, portfolio_id=portfolio_id)
        return holding
