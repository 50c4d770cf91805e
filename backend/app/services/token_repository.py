# backend/app/services/token_repository.py
"""
Token metadata repository.

Loads a CoinGecko `coins/list?include_platform=true` style JSON file:

    [
      {"id": "usd-coin", "symbol": "usdc", "name": "USDC",
       "platforms": {"ethereum": "0xa0b8..."}, "decimals": 6},
      ...
    ]

and indexes it for lookups by:
- CoinGecko id (case-insensitive)
- symbol (uppercase; several tokens can share one)
- Ethereum contract address (lowercase, "0x" optional on input)

Tokens without an Ethereum address are indexed by id and symbol only.
Decimals come from the file when present, otherwise from a table of
well-known tokens, otherwise 18.

Implements the TokenMetadataStore protocol used by the ValuationEngine.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from app.services.constants import DEFAULT_TOKEN_DECIMALS
from app.services.exceptions import ValidationError
from app.services.pricing.types import Token

logger = logging.getLogger(__name__)

# Ethereum tokens whose decimals differ from 18
KNOWN_DECIMALS: dict[str, int] = {
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": 6,   # USDC
    "0xdac17f958d2ee523a2206206994597c13d831ec7": 6,   # USDT
    "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": 8,   # WBTC
}


def _normalize_address(address: str) -> str:
    address = address.strip().lower()
    if address and not address.startswith("0x"):
        address = "0x" + address
    return address


class TokenRepository:
    """In-memory token metadata, safe for concurrent readers."""

    def __init__(self, entries: Iterable[dict[str, Any]] = ()) -> None:
        self._lock = threading.RLock()
        self._tokens: list[Token] = []
        self._by_id: dict[str, Token] = {}
        self._by_symbol: dict[str, list[Token]] = {}
        self._by_address: dict[str, Token] = {}
        self.load(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> TokenRepository:
        """
        Load tokens from a JSON file.

        Raises:
            ValidationError: If the file is missing or not a JSON array
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ValidationError(f"Token file not found: {path}", field="tokens_path")
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid token file {path}: {e}", field="tokens_path")

        if not isinstance(data, list):
            raise ValidationError(f"Token file {path} must contain a JSON array", field="tokens_path")

        repository = cls(data)
        logger.info(f"Loaded {repository.count()} tokens from {path}")
        return repository

    def load(self, entries: Iterable[dict[str, Any]]) -> None:
        """Add entries to the indexes (later entries win on id/address clashes)."""
        with self._lock:
            for entry in entries:
                token = self._to_token(entry)
                if token is None:
                    continue

                self._tokens.append(token)
                self._by_id[token.id.lower()] = token
                self._by_symbol.setdefault(token.symbol.upper(), []).append(token)
                if token.address:
                    self._by_address[token.address] = token

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_by_id(self, token_id: str) -> Token | None:
        with self._lock:
            return self._by_id.get(token_id.strip().lower())

    def get_by_address(self, address: str) -> Token | None:
        with self._lock:
            return self._by_address.get(_normalize_address(address))

    def get_by_symbol(self, symbol: str) -> list[Token]:
        """All tokens sharing the symbol (case-insensitive)."""
        with self._lock:
            return list(self._by_symbol.get(symbol.strip().upper(), []))

    def get_by_addresses(self, addresses: Iterable[str]) -> dict[str, Token]:
        """Tokens keyed by lowercase address; unknown addresses are absent."""
        with self._lock:
            result: dict[str, Token] = {}
            for address in addresses:
                key = _normalize_address(address)
                token = self._by_address.get(key)
                if token is not None:
                    result[key] = token
            return result

    def is_supported(self, identifier: str) -> bool:
        """True if identifier is a known id, symbol or Ethereum address."""
        identifier = identifier.strip()
        if not identifier:
            return False
        with self._lock:
            return (
                identifier.lower() in self._by_id
                or identifier.upper() in self._by_symbol
                or _normalize_address(identifier) in self._by_address
            )

    def count(self) -> int:
        with self._lock:
            return len(self._tokens)

    # =========================================================================
    # PARSING
    # =========================================================================

    @staticmethod
    def _to_token(entry: dict[str, Any]) -> Token | None:
        token_id = str(entry.get("id") or "").strip()
        if not token_id:
            logger.debug(f"Skipping token entry without id: {entry!r}")
            return None

        platforms = entry.get("platforms") or {}
        address = _normalize_address(str(platforms.get("ethereum") or ""))

        decimals = entry.get("decimals")
        if decimals is None:
            decimals = KNOWN_DECIMALS.get(address, DEFAULT_TOKEN_DECIMALS)

        return Token(
            id=token_id,
            name=str(entry.get("name") or ""),
            symbol=str(entry.get("symbol") or "").upper(),
            address=address,
            decimals=int(decimals),
        )
