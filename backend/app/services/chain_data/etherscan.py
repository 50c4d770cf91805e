# backend/app/services/chain_data/etherscan.py
"""
Etherscan chain-data provider.

Uses the Etherscan (v2, multichain) account API:

    action=txlist          -> native_transfers()
    action=txlistinternal  -> internal_transfers()
    action=tokentx         -> token_transfers()
    action=balance         -> native_balance()

Every request carries `module=account`, `apikey` and `chainid`.

Response envelope:
    {"status": "1", "message": "OK", "result": [...]}

    status "0" with one of the "No ... found" messages is an empty result,
    any other status "0" is an error (the message is in "result" for
    rate-limit and key errors).

Mapping rules:
    - addresses are lowercased
    - isError == "1" or txreceipt_status == "0" -> failed
    - token transfer ids are "hash:contract" (one tx can move many tokens)
    - timestamps are unix seconds, converted to aware UTC datetimes

Only the most recent `page_size` records of each kind are fetched
(sort=desc). History beyond that is not reconstructed.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from app.services.chain_data.base import BaseChainDataProvider
from app.services.constants import (
    ETHEREUM_CHAIN_ID,
    ETHERSCAN_DEFAULT_PAGE_SIZE,
    ETHERSCAN_EMPTY_RESULT_MESSAGES,
    ETHERSCAN_MAX_PAGE_SIZE,
)
from app.services.exceptions import ChainDataError, ProviderUnavailableError, RateLimitError
from app.services.protocols import RateLimiterProtocol
from app.services.transactions.classifier import extract_method_signature
from app.services.transactions.types import FilterOptions, Transaction, TransactionStatus

logger = logging.getLogger(__name__)

ETHERSCAN_V2_URL = "https://api.etherscan.io/v2/api"


def normalize_page_size(page_size: int | None) -> int:
    """Clamp an upstream page size to Etherscan's accepted range."""
    if not page_size or page_size <= 0:
        return ETHERSCAN_DEFAULT_PAGE_SIZE
    return min(page_size, ETHERSCAN_MAX_PAGE_SIZE)


def _to_int(raw: Any, default: int = 0) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _timestamp(raw: Any) -> datetime:
    return datetime.fromtimestamp(_to_int(raw), tz=timezone.utc)


class EtherscanChainDataProvider(BaseChainDataProvider):
    """
    Etherscan implementation of the ChainDataProvider protocol.

    Configuration:
        api_key: Etherscan API key
        base_url: API endpoint (v2 multichain by default)
        chain_id: Chain to query (1 = Ethereum mainnet)
        page_size: Records fetched per call (1000 default, 10000 max)
        rate_limiter: Per-provider admission control
        timeout: Request timeout in seconds
        client: Preconfigured httpx.Client (tests inject a MockTransport)
    """

    def __init__(
            self,
            api_key: str = "",
            base_url: str = ETHERSCAN_V2_URL,
            chain_id: int = ETHEREUM_CHAIN_ID,
            page_size: int = ETHERSCAN_DEFAULT_PAGE_SIZE,
            rate_limiter: RateLimiterProtocol | None = None,
            timeout: float = 10.0,
            client: httpx.Client | None = None,
    ) -> None:
        super().__init__(rate_limiter=rate_limiter)
        self._api_key = api_key
        self._base_url = base_url
        self._chain_id = chain_id
        self._page_size = normalize_page_size(page_size)
        self._client = client or httpx.Client(timeout=timeout)
        logger.info(
            f"EtherscanChainDataProvider initialized: base_url={base_url}, "
            f"chain_id={chain_id}, page_size={self._page_size}"
        )

    @property
    def name(self) -> str:
        return "etherscan"

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def native_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        rows = self._list("txlist", address)
        return [self._map_normal(row) for row in rows]

    def internal_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        rows = self._list("txlistinternal", address)
        return [self._map_internal(row, index) for index, row in enumerate(rows)]

    def token_transfers(self, address: str, filters: FilterOptions) -> list[Transaction]:
        rows = self._list("tokentx", address)
        return [self._map_token(row) for row in rows]

    def native_balance(self, address: str) -> int:
        result = self._execute_with_retry(
            self._request,
            {"action": "balance", "address": address.strip().lower(), "tag": "latest"},
        )
        balance = _to_int(result, default=-1)
        if balance < 0:
            raise ChainDataError(f"Unexpected balance result: {result!r}", provider=self.name)
        return balance

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # HTTP
    # =========================================================================

    def _list(self, action: str, address: str) -> list[dict]:
        params = {
            "action": action,
            "address": address.strip().lower(),
            "sort": "desc",
            "page": "1",
            "offset": str(self._page_size),
        }
        result = self._execute_with_retry(self._request, params)
        if not isinstance(result, list):
            raise ChainDataError(f"Unexpected {action} result: {result!r}", provider=self.name)
        logger.debug(f"Etherscan {action} returned {len(result)} rows for {params['address']}")
        return result

    def _request(self, params: dict[str, str]) -> Any:
        """Send one account API request and unwrap the envelope."""
        self._admit()

        query = {
            "module": "account",
            "chainid": str(self._chain_id),
            "apikey": self._api_key,
            **params,
        }

        try:
            response = self._client.get(self._base_url, params=query)
        except httpx.RequestError as e:
            raise ProviderUnavailableError(self.name, f"request failed: {e}")

        if response.status_code == 429:
            raise RateLimitError(self.name)
        if response.status_code >= 500:
            raise ProviderUnavailableError(self.name, f"HTTP {response.status_code}")
        if response.status_code != 200:
            raise ChainDataError(
                f"Etherscan API error: status {response.status_code}, body: {response.text[:200]}",
                provider=self.name,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ChainDataError(f"Invalid JSON from Etherscan: {e}", provider=self.name)

        status = str(payload.get("status", ""))
        message = str(payload.get("message", ""))
        result = payload.get("result")

        if status == "0":
            if message in ETHERSCAN_EMPTY_RESULT_MESSAGES:
                return []
            detail = result if isinstance(result, str) else message
            if "rate limit" in str(detail).lower():
                raise RateLimitError(self.name)
            raise ChainDataError(f"Etherscan API error: {detail}", provider=self.name)

        return result

    # =========================================================================
    # MAPPERS
    # =========================================================================

    @staticmethod
    def _status(row: dict) -> TransactionStatus:
        if row.get("isError") == "1" or row.get("txreceipt_status") == "0":
            return TransactionStatus.FAILED
        return TransactionStatus.SUCCESS

    def _map_normal(self, row: dict) -> Transaction:
        input_data = row.get("input") or ""
        method_id = (row.get("methodId") or "").lower()
        if len(method_id) != 10:
            method_id = extract_method_signature(input_data)

        return Transaction(
            id=row.get("hash", ""),
            hash=row.get("hash", ""),
            from_address=(row.get("from") or "").lower(),
            to_address=(row.get("to") or "").lower(),
            amount=_to_int(row.get("value")),
            status=self._status(row),
            method_signature=method_id,
            input_data=input_data,
            timestamp=_timestamp(row.get("timeStamp")),
            block_number=_to_int(row.get("blockNumber")),
        )

    def _map_internal(self, row: dict, index: int) -> Transaction:
        tx_hash = row.get("hash", "")
        trace = row.get("traceId") or str(index)
        return Transaction(
            id=f"{tx_hash}:internal:{trace}",
            hash=tx_hash,
            from_address=(row.get("from") or "").lower(),
            to_address=(row.get("to") or "").lower(),
            amount=_to_int(row.get("value")),
            status=self._status(row),
            timestamp=_timestamp(row.get("timeStamp")),
            block_number=_to_int(row.get("blockNumber")),
        )

    def _map_token(self, row: dict) -> Transaction:
        tx_hash = row.get("hash", "")
        contract = (row.get("contractAddress") or "").lower()
        return Transaction(
            id=f"{tx_hash}:{contract}",
            hash=tx_hash,
            from_address=(row.get("from") or "").lower(),
            to_address=(row.get("to") or "").lower(),
            token_address=contract,
            token_symbol=row.get("tokenSymbol") or "",
            amount=_to_int(row.get("value")),
            status=TransactionStatus.SUCCESS,
            timestamp=_timestamp(row.get("timeStamp")),
            block_number=_to_int(row.get("blockNumber")),
        )
