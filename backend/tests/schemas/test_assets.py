# tests/schemas/test_assets.py
"""
Tests for asset, price and transaction response schemas.

Integer amounts leave the API as strings; the *_decimal fields are
whole-unit conveniences derived from them.
"""

from decimal import Decimal

from app.schemas.assets import AssetResponse, PriceResponse
from app.schemas.transactions import TransactionResponse
from app.services.pricing.types import Price
from app.services.transactions.types import TransactionDirection, TransactionType
from app.services.valuation import NATIVE_TOKEN, Asset
from tests.conftest import T0, USDC, make_transfer


class TestPriceResponse:

    def test_from_price(self):
        response = PriceResponse.from_price(Price(USDC, 99_990_000, "usd", T0))

        assert response.value == "99990000"
        assert response.value_decimal == Decimal("0.9999")
        assert response.token.symbol == "USDC"
        assert response.last_updated == T0


class TestAssetResponse:

    def test_priced_asset(self):
        """
        0.5 ETH at 3000.00 -> 1500.00
        """
        asset = Asset(
            token=NATIVE_TOKEN,
            amount=500_000_000_000_000_000,
            price=Price(NATIVE_TOKEN, 300_000_000_000, "usd", T0),
            value=150_000_000_000,
        )

        response = AssetResponse.from_asset(asset)

        assert response.amount == "500000000000000000"
        assert response.amount_decimal == Decimal("0.5")
        assert response.value == "150000000000"
        assert response.value_decimal == Decimal("1500")
        assert response.price.value == "300000000000"
        assert response.source == "aggregated"

    def test_unpriced_asset(self):
        response = AssetResponse.from_asset(Asset(token=USDC, amount=1))

        assert response.price is None
        assert response.value is None
        assert response.value_decimal is None

    def test_large_amount_survives_json(self):
        """Should not round amounts beyond JavaScript's safe integer range."""
        amount = 2 ** 80 + 1
        data = AssetResponse.from_asset(Asset(token=USDC, amount=amount)).model_dump(mode="json")

        assert data["amount"] == str(amount)


class TestTransactionResponse:

    def test_from_transaction(self):
        tx = make_transfer(1, amount=2 ** 70, method_signature="0x7ff36ab5")
        tx.type = TransactionType.SWAP
        tx.direction = TransactionDirection.IN

        response = TransactionResponse.from_transaction(tx)

        assert response.amount == str(2 ** 70)
        assert response.method_name == "swapExactETHForTokens"
        assert response.type == TransactionType.SWAP

    def test_unknown_amount(self):
        response = TransactionResponse.from_transaction(make_transfer(1, amount=None))

        assert response.amount is None
        assert response.method_name == "transfer"
