# backend/tests/services/test_token_repository.py
"""
Tests for TokenRepository lookups and file loading.
"""

import json

import pytest

from app.config import settings
from app.services.exceptions import ValidationError
from app.services.token_repository import TokenRepository
from tests.conftest import LINK_ADDRESS, USDC_ADDRESS

ENTRIES = [
    {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "platforms": {}},
    {"id": "usd-coin", "symbol": "usdc", "name": "USDC",
     "platforms": {"ethereum": USDC_ADDRESS.upper().replace("0X", "0x")}},
    {"id": "chainlink", "symbol": "link", "name": "Chainlink",
     "platforms": {"ethereum": LINK_ADDRESS}, "decimals": 18},
    {"id": "bridged-usdc", "symbol": "usdc", "name": "Bridged USDC",
     "platforms": {"polygon-pos": "0x2791bca1f2de4661ed88a30c99a7a9449aa84174"}},
    {"symbol": "nope"},
]


@pytest.fixture
def repo() -> TokenRepository:
    return TokenRepository(ENTRIES)


class TestLookups:
    """Tests for id, address and symbol indexes."""

    def test_skips_entries_without_id(self, repo):
        assert repo.count() == 4

    def test_get_by_id_case_insensitive(self, repo):
        assert repo.get_by_id("USD-Coin").symbol == "USDC"

    def test_get_by_address_normalizes(self, repo):
        """Should match regardless of case or a missing 0x prefix."""
        token = repo.get_by_address(USDC_ADDRESS[2:].upper())

        assert token.id == "usd-coin"
        assert token.address == USDC_ADDRESS

    def test_known_decimals_fill_gaps(self, repo):
        """Should use the well-known table when the file has no decimals."""
        assert repo.get_by_address(USDC_ADDRESS).decimals == 6

    def test_get_by_symbol_returns_all(self, repo):
        """Should return every token sharing a symbol."""
        ids = [t.id for t in repo.get_by_symbol("usdc")]

        assert ids == ["usd-coin", "bridged-usdc"]

    def test_token_without_ethereum_address(self, repo):
        """Should index non-Ethereum tokens by id only."""
        token = repo.get_by_id("ethereum")

        assert token.address == ""
        assert repo.get_by_address("") is None

    def test_get_by_addresses_skips_unknown(self, repo):
        result = repo.get_by_addresses([LINK_ADDRESS, "0x" + "9" * 40])

        assert list(result) == [LINK_ADDRESS]

    @pytest.mark.parametrize("identifier", ["usd-coin", "USDC", USDC_ADDRESS])
    def test_is_supported(self, repo, identifier):
        assert repo.is_supported(identifier)

    def test_is_supported_rejects_blank(self, repo):
        assert not repo.is_supported("  ")


class TestFromFile:
    """Tests for loading a JSON token list."""

    def test_loads_bundled_list(self):
        """Should load the bundled coins.json."""
        repo = TokenRepository.from_file(settings.tokens_path)

        assert repo.get_by_address(USDC_ADDRESS).decimals == 6
        assert repo.get_by_symbol("LINK")[0].address == LINK_ADDRESS

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            TokenRepository.from_file(tmp_path / "missing.json")

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "coins.json"
        path.write_text(json.dumps({"id": "x"}))

        with pytest.raises(ValidationError):
            TokenRepository.from_file(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "coins.json"
        path.write_text("[{")

        with pytest.raises(ValidationError):
            TokenRepository.from_file(path)
