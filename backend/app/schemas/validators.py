# backend/app/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Ethereum address validation and normalization
- Quote currency validation
- Integer amount parsing (token smallest units can exceed 2^64)

These validators ensure consistent input handling across all schemas.
"""

import re

# =============================================================================
# CONSTANTS
# =============================================================================

# "0x" + 40 hex chars, any case
ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')

# CoinGecko vs_currencies ids: "usd", "eur", "btc", ...
CURRENCY_PATTERN = re.compile(r'^[a-z]{2,10}$')

# Non-negative base-10 integer
AMOUNT_PATTERN = re.compile(r'^\d+$')

# 2^256 - 1 is the largest on-chain uint
MAX_AMOUNT = 2 ** 256 - 1


# =============================================================================
# ADDRESS VALIDATION
# =============================================================================

def validate_address(value: str) -> str:
    """
    Validate an Ethereum address and return it lowercase.

    Raises:
        ValueError: If the address is not "0x" followed by 40 hex chars
    """
    if not value:
        raise ValueError("Address cannot be empty")

    normalized = value.strip()
    if not ADDRESS_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid address: '{normalized}'. "
            "Address must be '0x' followed by 40 hexadecimal characters"
        )

    return normalized.lower()


# =============================================================================
# CURRENCY VALIDATION
# =============================================================================

def validate_currency(value: str) -> str:
    """
    Validate and normalize a quote currency (lowercase).

    Examples:
        "USD" -> "usd"
        " eur " -> "eur"
    """
    if not value:
        raise ValueError("Currency cannot be empty")

    normalized = value.strip().lower()
    if not CURRENCY_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid currency: '{value}'. Currency must be 2-10 letters (e.g. 'usd')"
        )

    return normalized


# =============================================================================
# AMOUNT PARSING
# =============================================================================

def parse_amount(value: int | str) -> int:
    """
    Parse a token amount in its smallest unit.

    Accepts ints and base-10 digit strings. Floats, decimals and
    booleans are rejected so no precision is silently lost.

    Raises:
        ValueError: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be an integer, not a boolean")

    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and AMOUNT_PATTERN.match(value.strip()):
        amount = int(value.strip())
    else:
        raise ValueError(
            f"Invalid amount: {value!r}. Amount must be a non-negative integer "
            "in the token's smallest unit (e.g. wei)"
        )

    if amount < 0:
        raise ValueError("Amount cannot be negative")
    if amount > MAX_AMOUNT:
        raise ValueError("Amount exceeds the uint256 range")

    return amount
