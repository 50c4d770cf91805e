#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo portfolio with recorded holdings.

Idempotent: an existing demo portfolio is topped up only for tokens it
does not hold yet.

    python backend/scripts/seed_sample_data.py
"""
import sys
from pathlib import Path

# Setup path to import app modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from app.database import SessionLocal, init_db
from app.services.constants import NATIVE_TOKEN_ADDRESS
from app.services.exceptions import PortfolioExistsError
from app.services.portfolio_service import PortfolioService
from app.utils import get_logger, setup_logging

logger = get_logger(__name__)

DEMO_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb1"
DEMO_NAME = "Demo wallet"

DEMO_HOLDINGS = [
    {
        "token_address": NATIVE_TOKEN_ADDRESS,
        "token_symbol": "ETH",
        "token_name": "Ethereum",
        "token_decimals": 18,
        "amount": 5 * 10 ** 18,
    },
    {
        "token_address": "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",
        "token_symbol": "WBTC",
        "token_name": "Wrapped BTC",
        "token_decimals": 8,
        "amount": 100_000_000,
    },
    {
        "token_address": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
        "token_symbol": "USDC",
        "token_name": "USDC",
        "token_decimals": 6,
        "amount": 5_000 * 10 ** 6,
    },
    {
        "token_address": "0x514910771af9ca656af840dff83e8264ecf986ca",
        "token_symbol": "LINK",
        "token_name": "Chainlink",
        "token_decimals": 18,
        "amount": 100 * 10 ** 18,
    },
]


def seed() -> None:
    init_db()
    db = SessionLocal()
    try:
        logger.info("Seeding demo portfolio...")
        service = PortfolioService(db)

        # 1. Portfolio
        try:
            portfolio = service.create_portfolio(DEMO_ADDRESS, name=DEMO_NAME)
            logger.info(f"Created portfolio {portfolio.id}: {portfolio.address}")
        except PortfolioExistsError:
            portfolio = next(
                p for p in service.list_portfolios(limit=1000)[0] if p.address == DEMO_ADDRESS
            )
            logger.info(f"Portfolio exists: {portfolio.id}")

        # 2. Holdings
        held = {h.token_address for h in portfolio.holdings}
        for data in DEMO_HOLDINGS:
            if data["token_address"] in held:
                logger.info(f"Holding exists: {data['token_symbol']}")
                continue
            service.add_holding(portfolio_id=portfolio.id, **data)
            logger.info(f"Added holding: {data['amount']} {data['token_symbol']}")

        logger.info("Seeding complete")
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    seed()
