# tests/routers/test_portfolios_api.py
"""
Integration tests for Portfolio API endpoints.

These tests verify full HTTP request/response cycles for:
- POST /api/v1/portfolios (Create)
- GET /api/v1/portfolios (List with pagination)
- GET /api/v1/portfolios/{id} (Read)
- DELETE /api/v1/portfolios/{id} (Delete)
- /api/v1/portfolios/{id}/holdings (Add, Update, Delete)
- GET /api/v1/portfolios/{id}/assets (Valuation)

Tests validate:
- Correct status codes
- Response structure matches schemas
- Integer amounts serialized as strings
- Error responses (400, 404, 409, 422, 503)
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from app.services.constants import NATIVE_TOKEN_ADDRESS
from app.services.exceptions import ChainDataError, ProviderUnavailableError
from tests.conftest import (
    LINK_ADDRESS,
    OTHER,
    USDC,
    USDC_ADDRESS,
    WALLET,
    create_portfolio,
    make_transfer,
)

BASE = "/api/v1/portfolios"
ETH = 10 ** 18


# =============================================================================
# PORTFOLIOS
# =============================================================================

class TestCreatePortfolio:
    """Tests for POST /api/v1/portfolios."""

    def test_create_success(self, client: TestClient):
        response = client.post(BASE, json={"address": WALLET, "name": "Main"})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["address"] == WALLET
        assert data["name"] == "Main"
        assert data["holdings"] == []

    def test_address_stored_lowercase(self, client: TestClient):
        response = client.post(BASE, json={"address": "0xA0B86991C6218B36C1D19D4A2E9EB0CE3606EB48"})

        assert response.json()["address"] == USDC_ADDRESS

    def test_duplicate_address_conflict(self, client: TestClient):
        client.post(BASE, json={"address": WALLET})

        response = client.post(BASE, json={"address": WALLET})

        assert response.status_code == 409
        assert response.json()["error"] == "PortfolioExistsError"
        assert response.json()["details"] == {"address": WALLET}

    def test_invalid_address(self, client: TestClient):
        response = client.post(BASE, json={"address": "not-an-address"})

        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "body.address"


class TestListPortfolios:
    """Tests for GET /api/v1/portfolios."""

    def test_empty(self, client: TestClient):
        data = client.get(BASE).json()

        assert data["items"] == []
        assert data["pagination"]["total"] == 0

    def test_pagination(self, client: TestClient, db):
        for address in (WALLET, OTHER, USDC_ADDRESS):
            create_portfolio(db, address=address)

        data = client.get(BASE, params={"skip": 1, "limit": 1}).json()

        assert [p["address"] for p in data["items"]] == [OTHER]
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["page"] == 2
        assert data["pagination"]["has_next"] is True

    def test_invalid_limit(self, client: TestClient):
        assert client.get(BASE, params={"limit": 0}).status_code == 422


class TestGetAndDeletePortfolio:

    def test_get_with_holdings(self, client: TestClient, db):
        portfolio = create_portfolio(db, holdings=[(USDC_ADDRESS, 2 ** 70)])

        data = client.get(f"{BASE}/{portfolio.id}").json()

        assert data["holdings"][0]["amount"] == str(2 ** 70)

    def test_get_not_found(self, client: TestClient):
        response = client.get(f"{BASE}/999")

        assert response.status_code == 404
        assert response.json()["details"] == {"portfolio_id": 999}

    def test_delete(self, client: TestClient, db):
        portfolio = create_portfolio(db)

        assert client.delete(f"{BASE}/{portfolio.id}").status_code == 204
        assert client.get(f"{BASE}/{portfolio.id}").status_code == 404

    def test_delete_not_found(self, client: TestClient):
        assert client.delete(f"{BASE}/999").status_code == 404


# =============================================================================
# HOLDINGS
# =============================================================================

class TestHoldings:
    """Tests for /api/v1/portfolios/{id}/holdings."""

    def test_add(self, client: TestClient, db):
        portfolio = create_portfolio(db)

        response = client.post(
            f"{BASE}/{portfolio.id}/holdings",
            json={"token_address": USDC_ADDRESS, "amount": "1500000", "token_symbol": "usdc", "token_decimals": 6},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["amount"] == "1500000"
        assert data["token_symbol"] == "USDC"
        assert data["portfolio_id"] == portfolio.id

    def test_add_merges(self, client: TestClient, db):
        portfolio = create_portfolio(db)
        url = f"{BASE}/{portfolio.id}/holdings"

        client.post(url, json={"token_address": LINK_ADDRESS, "amount": 5})
        response = client.post(url, json={"token_address": LINK_ADDRESS, "amount": 7})

        assert response.json()["amount"] == "12"

    def test_add_rejects_float_amount(self, client: TestClient, db):
        portfolio = create_portfolio(db)

        response = client.post(
            f"{BASE}/{portfolio.id}/holdings",
            json={"token_address": LINK_ADDRESS, "amount": 1.5},
        )

        assert response.status_code == 422

    def test_add_to_missing_portfolio(self, client: TestClient):
        response = client.post(f"{BASE}/999/holdings", json={"token_address": LINK_ADDRESS, "amount": 1})

        assert response.status_code == 404

    def test_update(self, client: TestClient, db):
        portfolio = create_portfolio(db, holdings=[(LINK_ADDRESS, 5)])
        holding_id = portfolio.holdings[0].id

        response = client.put(f"{BASE}/{portfolio.id}/holdings/{holding_id}", json={"amount": "0"})

        assert response.status_code == 200
        assert response.json()["amount"] == "0"

    def test_delete(self, client: TestClient, db):
        portfolio = create_portfolio(db, holdings=[(LINK_ADDRESS, 5)])
        holding_id = portfolio.holdings[0].id

        response = client.delete(f"{BASE}/{portfolio.id}/holdings/{holding_id}")

        assert response.status_code == 204
        assert client.get(f"{BASE}/{portfolio.id}").json()["holdings"] == []

    def test_holding_of_other_portfolio(self, client: TestClient, db):
        mine = create_portfolio(db)
        theirs = create_portfolio(db, address=OTHER, holdings=[(LINK_ADDRESS, 5)])

        response = client.delete(f"{BASE}/{mine.id}/holdings/{theirs.holdings[0].id}")

        assert response.status_code == 404
        assert response.json()["error"] == "HoldingNotFoundError"


# =============================================================================
# VALUATION
# =============================================================================

class TestPortfolioAssets:
    """Tests for GET /api/v1/portfolios/{id}/assets."""

    def test_values_holdings_and_transfers(self, client: TestClient, db, api_chain):
        """
        1000 USDC held + 300 USDC received = 1300 USDC at 1.00 -> 1300.00
        """
        portfolio = create_portfolio(db, holdings=[(USDC_ADDRESS, 1_000_000_000)])
        api_chain.tokens = [make_transfer(1, amount=300_000_000, token=USDC)]

        response = client.get(f"{BASE}/{portfolio.id}/assets")

        assert response.status_code == 200
        data = response.json()
        assert data["portfolio_id"] == portfolio.id
        assert data["address"] == WALLET
        assert data["currency"] == "usd"
        [asset] = data["assets"]
        assert asset["token"]["symbol"] == "USDC"
        assert asset["amount"] == "1300000000"
        assert Decimal(asset["amount_decimal"]) == Decimal("1300")
        assert asset["value"] == "130000000000"
        assert asset["price"]["value"] == "100000000"
        assert data["total_value"] == "130000000000"
        assert Decimal(data["total_value_decimal"]) == Decimal("1300")

    def test_sorted_by_value_unpriced_last(self, client: TestClient, db, api_chain, api_prices):
        """
        ETH 1 x 3000.00, LINK 10 x 15.00, DAI unpriced
        """
        dai = "0x6b175474e89094c44da98b954eedeac495271d0f"
        portfolio = create_portfolio(db, holdings=[(LINK_ADDRESS, 10 * ETH), (dai, ETH)])
        api_chain.balance = ETH

        data = client.get(f"{BASE}/{portfolio.id}/assets").json()

        assert [a["token"]["symbol"] for a in data["assets"]] == ["ETH", "LINK", "DAI"]
        assert data["assets"][2]["value"] is None
        assert data["priced_count"] == 2
        assert data["unpriced_count"] == 1
        assert data["total_value"] == "315000000000"

    def test_native_reported_with_zero_address(self, client: TestClient, db):
        portfolio = create_portfolio(db, holdings=[(NATIVE_TOKEN_ADDRESS, ETH)])

        [asset] = client.get(f"{BASE}/{portfolio.id}/assets").json()["assets"]

        assert asset["token"]["symbol"] == "ETH"
        assert asset["token"]["address"] == NATIVE_TOKEN_ADDRESS
        assert asset["value"] == "300000000000"

    def test_currency_parameter(self, client: TestClient, db, api_prices):
        portfolio = create_portfolio(db, holdings=[(USDC_ADDRESS, 1)])

        data = client.get(f"{BASE}/{portfolio.id}/assets", params={"currency": "EUR"}).json()

        assert data["currency"] == "eur"
        assert data["assets"][0]["price"]["currency"] == "eur"

    def test_invalid_currency(self, client: TestClient, db, api_prices):
        portfolio = create_portfolio(db, holdings=[(USDC_ADDRESS, 1)])

        response = client.get(f"{BASE}/{portfolio.id}/assets", params={"currency": "us$"})

        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "query.currency"
        assert api_prices.calls == []

    def test_empty_portfolio(self, client: TestClient, db):
        portfolio = create_portfolio(db)

        data = client.get(f"{BASE}/{portfolio.id}/assets").json()

        assert data["assets"] == []
        assert data["total_value"] == "0"

    def test_chain_outage_still_values_holdings(self, client: TestClient, db, api_chain):
        portfolio = create_portfolio(db, holdings=[(LINK_ADDRESS, ETH)])
        for feed in ("tokens", "internal", "balance"):
            api_chain.fail(feed, ChainDataError("down", provider="stub"))

        response = client.get(f"{BASE}/{portfolio.id}/assets")

        assert response.status_code == 200
        assert response.json()["total_value"] == "1500000000"

    def test_pricing_outage_is_503(self, client: TestClient, db, api_prices):
        portfolio = create_portfolio(db, holdings=[(LINK_ADDRESS, ETH)])
        api_prices.fail_with(ProviderUnavailableError("primary", "down"))

        response = client.get(f"{BASE}/{portfolio.id}/assets")

        assert response.status_code == 503
        assert response.json()["error"] == "PriceResolutionError"

    def test_not_found(self, client: TestClient):
        assert client.get(f"{BASE}/999/assets").status_code == 404
