# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Controllable clocks for the rate limiter and price resolver
- Stub price and chain-data providers with call counters and error injection
- Sample data factories
- A TestClient with every outbound dependency stubbed
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PRICE_PROVIDER", "mock")
os.environ.setdefault("TRANSACTION_PROVIDER", "mock")

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Holding, Portfolio
from app.services.constants import NATIVE_TOKEN_ADDRESS, WETH_ADDRESS
from app.services.exceptions import RateLimitError
from app.services.pricing.types import Price, Token
from app.services.transactions.types import (
    FilterOptions,
    Transaction,
    TransactionStatus,
)

WALLET = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"

USDC_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
LINK_ADDRESS = "0x514910771af9ca656af840dff83e8264ecf986ca"
UNKNOWN_ADDRESS = "0x9999999999999999999999999999999999999999"

USDC = Token(id="usd-coin", name="USDC", symbol="USDC", address=USDC_ADDRESS, decimals=6)
LINK = Token(id="chainlink", name="Chainlink", symbol="LINK", address=LINK_ADDRESS, decimals=18)
WETH = Token(id="weth", name="WETH", symbol="WETH", address=WETH_ADDRESS, decimals=18)

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# CLOCKS
# =============================================================================

class FakeClock:
    """Wall clock for the price resolver. Call it to read, advance() to move."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeMonotonic:
    """Monotonic seconds for the rate limiter."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


# =============================================================================
# RATE LIMITER STUBS
# =============================================================================

class AllowAllLimiter:
    def __init__(self):
        self.calls = 0

    def allow(self) -> None:
        self.calls += 1


class DenyAllLimiter:
    def __init__(self):
        self.calls = 0

    def allow(self) -> None:
        self.calls += 1
        raise RateLimitError("test-limiter", retry_after=1)


# =============================================================================
# STUB PRICE PROVIDER
# =============================================================================

class StubPriceProvider:
    """
    Price provider serving configured fixed-point quotes.

    Tokens without a configured quote are absent from the result.
    """

    def __init__(self, name: str = "stub", prices: dict[str, int] | None = None):
        self._name = name
        self.prices: dict[str, int] = {k.lower(): v for k, v in (prices or {}).items()}
        self.error: Exception | None = None
        self.calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def set_price(self, address: str, value: int) -> None:
        self.prices[address.lower()] = value

    def fail_with(self, error: Exception | None) -> None:
        self.error = error

    def get_prices(self, tokens: list[Token], currency: str) -> dict[str, Price]:
        self.calls.append([t.address for t in tokens])
        if self.error is not None:
            raise self.error

        return {
            token.address: Price(
                token=token,
                value=self.prices[token.address],
                currency=currency,
                last_updated=T0,
            )
            for token in tokens
            if token.address in self.prices
        }


# =============================================================================
# STUB CHAIN DATA PROVIDER
# =============================================================================

class StubChainDataProvider:
    """ChainDataProvider with configurable feeds and per-feed failures."""

    def __init__(
            self,
            native: list[Transaction] | None = None,
            internal: list[Transaction] | None = None,
            tokens: list[Transaction] | None = None,
            balance: int = 0,
    ):
        self.native = list(native or [])
        self.internal = list(internal or [])
        self.tokens = list(tokens or [])
        self.balance = balance
        self.errors: dict[str, Exception] = {}
        self.call_count: dict[str, int] = {
            "native": 0, "internal": 0, "tokens": 0, "balance": 0,
        }

    @property
    def name(self) -> str:
        return "stub-chain"

    def fail(self, feed: str, error: Exception) -> None:
        """feed is one of native, internal, tokens, balance."""
        self.errors[feed] = error

    def _serve(self, feed: str, items: list[Transaction]) -> list[Transaction]:
        self.call_count[feed] += 1
        if feed in self.errors:
            raise self.errors[feed]
        # Callers mutate classification fields; hand out copies
        return [_copy_tx(tx) for tx in items]

    def native_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return self._serve("native", self.native)

    def internal_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return self._serve("internal", self.internal)

    def token_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        return self._serve("tokens", self.tokens)

    def native_balance(self, address: str) -> int:
        self.call_count["balance"] += 1
        if "balance" in self.errors:
            raise self.errors["balance"]
        return self.balance


def _copy_tx(tx: Transaction) -> Transaction:
    from dataclasses import replace
    return replace(tx)


# =============================================================================
# STUB STORES
# =============================================================================

class InMemoryTokenStore:
    """TokenMetadataStore over a fixed token list."""

    def __init__(self, tokens: list[Token]):
        self._tokens = {t.address: t for t in tokens}

    def get_by_addresses(self, addresses) -> dict[str, Token]:
        return {a.lower(): self._tokens[a.lower()] for a in addresses if a.lower() in self._tokens}


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def make_transfer(
        n: int = 1,
        sender: str = OTHER,
        recipient: str = WALLET,
        amount: int | None = 100,
        token: Token | None = None,
        minutes_ago: int = 0,
        method_signature: str = "",
        status: TransactionStatus = TransactionStatus.SUCCESS,
        internal: bool = False,
) -> Transaction:
    """Build a transfer; native unless token is given."""
    tx_hash = "0x" + format(n, "064x")
    token_address = token.address if token else ""
    if token:
        tx_id = f"{tx_hash}:{token_address}"
    elif internal:
        tx_id = f"{tx_hash}:internal:0"
    else:
        tx_id = tx_hash

    return Transaction(
        id=tx_id,
        hash=tx_hash,
        from_address=sender,
        to_address=recipient,
        token_address=token_address,
        token_symbol=token.symbol if token else "ETH",
        amount=amount,
        status=status,
        method_signature=method_signature,
        timestamp=T0 - timedelta(minutes=minutes_ago),
        block_number=19_000_000 + n,
    )


def create_portfolio(
        db: Session,
        address: str = WALLET,
        name: str = "Test wallet",
        holdings: list[tuple[str, int]] | None = None,
) -> Portfolio:
    """Create a portfolio with (token_address, amount) holdings."""
    portfolio = Portfolio(address=address, name=name)
    db.add(portfolio)
    db.flush()

    for token_address, amount in holdings or []:
        db.add(Holding(
            portfolio_id=portfolio.id,
            token_address=token_address,
            token_symbol="ETH" if token_address == NATIVE_TOKEN_ADDRESS else "",
            token_decimals=18,
            amount=amount,
        ))

    db.commit()
    db.refresh(portfolio)
    return portfolio


@pytest.fixture
def price_provider() -> StubPriceProvider:
    return StubPriceProvider(name="primary")


@pytest.fixture
def chain_data() -> StubChainDataProvider:
    return StubChainDataProvider()


# =============================================================================
# API CLIENT
# =============================================================================
# Every outbound collaborator is replaced by a stub; the database is the
# in-memory session from the `db` fixture.

API_PRICES = {
    USDC_ADDRESS: 100_000_000,          # 1.00
    LINK_ADDRESS: 1_500_000_000,        # 15.00
    WETH_ADDRESS: 300_000_000_000,      # 3000.00
}


@pytest.fixture
def api_prices() -> StubPriceProvider:
    return StubPriceProvider(name="primary", prices=API_PRICES)


@pytest.fixture
def api_chain() -> StubChainDataProvider:
    return StubChainDataProvider()


@pytest.fixture
def client(db, api_prices, api_chain, clock):
    """TestClient with database and provider dependencies overridden."""
    from fastapi.testclient import TestClient

    from app.config import settings
    from app.database import get_db
    from app.dependencies import (
        clear_service_caches,
        get_chain_data_provider,
        get_price_resolver,
        get_token_repository,
        get_transaction_aggregator,
        get_valuation_engine,
    )
    from app.main import app
    from app.services.portfolio_service import PortfolioService
    from app.services.price_cache import PriceCache
    from app.services.pricing.resolver import PriceResolver
    from app.services.token_repository import TokenRepository
    from app.services.transactions import TransactionAggregator
    from app.services.valuation import ValuationEngine

    tokens = TokenRepository.from_file(settings.tokens_path)
    resolver = PriceResolver(
        primary=api_prices,
        fallback=None,
        cache=PriceCache(),
        rate_limiter=AllowAllLimiter(),
        clock=clock,
    )

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_repository] = lambda: tokens
    app.dependency_overrides[get_price_resolver] = lambda: resolver
    app.dependency_overrides[get_chain_data_provider] = lambda: api_chain
    app.dependency_overrides[get_transaction_aggregator] = lambda: TransactionAggregator(api_chain)
    app.dependency_overrides[get_valuation_engine] = lambda: ValuationEngine(
        portfolio_store=PortfolioService(db),
        token_store=tokens,
        chain_data=api_chain,
        price_resolver=resolver,
    )

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    # /health builds the real singletons
    clear_service_caches()
