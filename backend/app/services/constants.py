# backend/app/services/constants.py
"""
Centralized constants for the valuation services.

Single source of truth for chain, pricing and API constants used across
the application.

Usage:
    from app.services.constants import (
        CURRENCY_DECIMALS,
        NATIVE_TOKEN_ADDRESS,
        WETH_ADDRESS,
    )
"""


# =============================================================================
# FIXED-POINT CURRENCY
# =============================================================================

# Prices and values are integers scaled by 10^8 (e.g. 3000.00 -> 300000000000)
CURRENCY_DECIMALS: int = 8
CURRENCY_SCALE: int = 10 ** CURRENCY_DECIMALS

DEFAULT_CURRENCY: str = "usd"


# =============================================================================
# CHAIN CONSTANTS (Ethereum mainnet)
# =============================================================================

ETHEREUM_CHAIN_ID: int = 1

# Reserved address for the native asset in stored holdings
NATIVE_TOKEN_ADDRESS: str = "0x0000000000000000000000000000000000000000"

# Native ETH is priced through its wrapped token
WETH_ADDRESS: str = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

NATIVE_TOKEN_ID: str = "ethereum"
NATIVE_TOKEN_NAME: str = "Ethereum"
NATIVE_TOKEN_SYMBOL: str = "ETH"
NATIVE_TOKEN_DECIMALS: int = 18

# Decimals assumed when token metadata does not carry them
DEFAULT_TOKEN_DECIMALS: int = 18


# =============================================================================
# PRICE RESOLUTION
# =============================================================================

# Seconds a cached price stays fresh for the resolver
DEFAULT_PRICE_CACHE_TTL_SECONDS: float = 60.0

# Tag attached to every Asset produced by the valuation engine
ASSET_SOURCE_AGGREGATED: str = "aggregated"

# CoinGecko /simple/price accepts at most 250 ids per request
COINGECKO_MAX_BATCH_SIZE: int = 250

# Deterministic price served by the mock/fallback provider (10.00)
MOCK_PRICE_VALUE: int = 1_000_000_000

# Most tokens accepted by GET /api/v1/prices in one request
MAX_PRICE_QUERY_TOKENS: int = 100


# =============================================================================
# RATE LIMITER DEFAULTS
# =============================================================================

DEFAULT_RATE_LIMIT_MAX_CALLS: int = 1
DEFAULT_RATE_LIMIT_WINDOW_SECONDS: float = 60.0

# Pruning runs at most every window/10, but never more often than this
MIN_RATE_LIMIT_CLEANUP_SECONDS: float = 1.0


# =============================================================================
# TRANSACTION LISTING
# =============================================================================

DEFAULT_TRANSACTION_PAGE_SIZE: int = 20
MAX_TRANSACTION_PAGE_SIZE: int = 500

# Etherscan page size per upstream request
ETHERSCAN_DEFAULT_PAGE_SIZE: int = 1000
ETHERSCAN_MAX_PAGE_SIZE: int = 10000

# Etherscan "status 0" messages that mean "empty result", not failure
ETHERSCAN_EMPTY_RESULT_MESSAGES: frozenset[str] = frozenset({
    "No transactions found",
    "No token transfers found",
    "No internal transactions found",
})


# =============================================================================
# API RATE LIMITING (inbound, slowapi)
# =============================================================================
# Format: "{count}/{period}" where period is second, minute, hour, day

# Default limit for read operations (GET requests)
RATE_LIMIT_DEFAULT: str = "100/minute"

# Limit for write operations (POST, PUT, DELETE)
RATE_LIMIT_WRITE: str = "30/minute"

# Valuation hits upstream providers on every cache miss
RATE_LIMIT_VALUATION: str = "20/minute"

# Health checks (high limit for monitoring systems)
RATE_LIMIT_HEALTH: str = "300/minute"
