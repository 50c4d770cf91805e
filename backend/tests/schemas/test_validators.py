# tests/schemas/test_validators.py
"""
Tests for reusable schema validators and request schemas built on them.
"""

import pytest
from pydantic import ValidationError

from app.schemas.portfolios import HoldingCreate, HoldingUpdate, PortfolioCreate
from app.schemas.validators import (
    MAX_AMOUNT,
    parse_amount,
    validate_address,
    validate_currency,
)
from tests.conftest import USDC_ADDRESS


class TestValidateAddress:

    def test_lowercases_and_strips(self):
        assert validate_address(" 0xA0B86991C6218B36C1D19D4A2E9EB0CE3606EB48 ") == USDC_ADDRESS

    @pytest.mark.parametrize("value", ["", "0x", "0x123", USDC_ADDRESS[2:], USDC_ADDRESS + "00"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            validate_address(value)


class TestValidateCurrency:

    @pytest.mark.parametrize("value,expected", [("USD", "usd"), (" eur ", "eur"), ("btc", "btc")])
    def test_normalizes(self, value, expected):
        assert validate_currency(value) == expected

    @pytest.mark.parametrize("value", ["", "u", "us-d", "1usd", "averyverylongcurrency"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            validate_currency(value)


class TestParseAmount:

    def test_int(self):
        assert parse_amount(5) == 5

    def test_digit_string_beyond_int64(self):
        """Should parse wei amounts that exceed 64 bits exactly."""
        assert parse_amount("123456789012345678901234567890") == 123456789012345678901234567890

    @pytest.mark.parametrize("value", [1.5, "1.5", "1e18", "-1", -1, True, None, "abc"])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError):
            parse_amount(value)

    def test_rejects_beyond_uint256(self):
        with pytest.raises(ValueError):
            parse_amount(MAX_AMOUNT + 1)

    def test_accepts_uint256_max(self):
        assert parse_amount(str(MAX_AMOUNT)) == MAX_AMOUNT


class TestRequestSchemas:
    """Tests for portfolio and holding request bodies."""

    def test_portfolio_create_normalizes(self):
        payload = PortfolioCreate(address=USDC_ADDRESS.upper().replace("0X", "0x"), name=" Main ")

        assert payload.address == USDC_ADDRESS
        assert payload.name == "Main"

    def test_holding_create_parses_string_amount(self):
        payload = HoldingCreate(token_address=USDC_ADDRESS, amount="1000000")

        assert payload.amount == 1_000_000

    def test_holding_create_rejects_zero(self):
        with pytest.raises(ValidationError):
            HoldingCreate(token_address=USDC_ADDRESS, amount=0)

    def test_holding_update_allows_zero(self):
        assert HoldingUpdate(amount="0").amount == 0

    def test_holding_create_rejects_bad_decimals(self):
        with pytest.raises(ValidationError):
            HoldingCreate(token_address=USDC_ADDRESS, amount=1, token_decimals=-1)
