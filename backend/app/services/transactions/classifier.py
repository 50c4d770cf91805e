# backend/app/services/transactions/classifier.py
"""
Transaction classification.

Pure, stateless functions that turn raw transfer records into typed,
directed transactions. Same input always gives the same output.

Classification is two-step:
    1. classify_type() maps the call's 4-byte method selector to a type
       using the selector tables below.
    2. The direction relative to the queried address corrects the result:
       a "send" that arrives at the address is a "receive". A transfer's
       selector alone cannot tell sender from receiver.

Adding support for a new protocol means adding entries to the tables,
not new branches.

Known edge case:
    detect_direction() returns OUT when neither side matches the queried
    address. Transactions fetched under the wrong address are therefore
    reported as outgoing. The valuation path uses set_direction_for_address()
    instead, which leaves such transactions without a direction so they do
    not move balances.
"""

from app.services.transactions.types import (
    Transaction,
    TransactionDirection,
    TransactionType,
)

# Length of "0x" + 8 hex chars
METHOD_SIGNATURE_LENGTH = 10


# =============================================================================
# SELECTOR TABLES
# =============================================================================

# ERC-20 transfers
SEND_SELECTORS: dict[str, str] = {
    "0xa9059cbb": "transfer",
    "0x23b872dd": "transferFrom",
}

# Uniswap V2 router and V3 router / universal router
SWAP_SELECTORS: dict[str, str] = {
    # V2
    "0x7ff36ab5": "swapExactETHForTokens",
    "0x18cbafe5": "swapExactTokensForETH",
    "0x38ed1739": "swapExactTokensForTokens",
    "0x8803dbee": "swapTokensForExactTokens",
    "0xfb3bdb41": "swapETHForExactTokens",
    "0x4a25d94a": "swapTokensForExactETH",
    "0x5c11d795": "swapExactTokensForTokensSupportingFeeOnTransferTokens",
    "0xb6f9de95": "swapExactETHForTokensSupportingFeeOnTransferTokens",
    "0x791ac947": "swapExactTokensForETHSupportingFeeOnTransferTokens",
    # V3
    "0x414bf389": "exactInputSingle",
    "0xc04b8d59": "exactInput",
    "0xdb3e2198": "exactOutputSingle",
    "0xf28c0498": "exactOutput",
    "0x02751cec": "swap",
    "0x5ae401dc": "multicall",
    "0xac9650d8": "multicall",
    "0x3593564c": "execute",
}

# Staking contracts and deposit-style vaults
STAKE_SELECTORS: dict[str, str] = {
    "0x3d18b912": "stake",
    "0xb6b55f25": "deposit",
    "0xa694fc3a": "stake",
    "0xe2bbb158": "deposit",
}

# Selectors that are named but do not change the classified type
OTHER_SELECTORS: dict[str, str] = {
    "0x095ea7b3": "approve",
}

SELECTOR_TYPES: dict[str, TransactionType] = {
    **{sig: TransactionType.SEND for sig in SEND_SELECTORS},
    **{sig: TransactionType.SWAP for sig in SWAP_SELECTORS},
    **{sig: TransactionType.STAKE for sig in STAKE_SELECTORS},
}

METHOD_NAMES: dict[str, str] = {
    **SEND_SELECTORS,
    **SWAP_SELECTORS,
    **STAKE_SELECTORS,
    **OTHER_SELECTORS,
}


# =============================================================================
# PURE FUNCTIONS
# =============================================================================

def extract_method_signature(input_data: str | None) -> str:
    """
    Return the lowercase 4-byte selector of call input.

    Examples:
        >>> extract_method_signature("0xA9059CBB000000")
        '0xa9059cbb'
        >>> extract_method_signature("0x")
        ''
    """
    if not input_data or len(input_data) < METHOD_SIGNATURE_LENGTH:
        return ""
    return input_data[:METHOD_SIGNATURE_LENGTH].lower()


def classify_type(method_signature: str | None, input_data: str | None = None) -> TransactionType:
    """
    Classify a call by its method selector.

    Uses method_signature when given, otherwise extracts it from input_data.
    Empty or unrecognized selectors default to SEND.
    """
    signature = (method_signature or "").lower() or extract_method_signature(input_data)
    return SELECTOR_TYPES.get(signature, TransactionType.SEND)


def method_name(method_signature: str | None) -> str:
    """
    Human-readable method name for a selector.

    Plain value transfers have no selector and are reported as "transfer".
    """
    if not method_signature:
        return "transfer"
    return METHOD_NAMES.get(method_signature.lower(), "unknown")


def detect_direction(from_address: str, to_address: str, address: str) -> TransactionDirection:
    """
    Direction of a transfer relative to address (case-insensitive).

    from == address wins over to == address, so a self-transfer is OUT.
    When neither side matches, OUT is returned (see module docstring).
    """
    addr = address.lower()
    if from_address.lower() == addr:
        return TransactionDirection.OUT
    if to_address.lower() == addr:
        return TransactionDirection.IN
    return TransactionDirection.OUT


def set_direction_for_address(tx: Transaction, address: str) -> None:
    """
    Set tx.direction only when exactly one side is the address.

    Self-transfers and transfers between two other parties get
    direction None, clearing any earlier classification, and are
    skipped by balance reduction.
    """
    addr = address.lower()
    from_match = tx.from_address.lower() == addr
    to_match = tx.to_address.lower() == addr

    if from_match and not to_match:
        tx.direction = TransactionDirection.OUT
    elif to_match and not from_match:
        tx.direction = TransactionDirection.IN
    else:
        tx.direction = None


def classify(tx: Transaction, address: str) -> Transaction:
    """
    Derive direction and type for tx in place and return it.

    The selector decides the type when the transaction carries call data;
    otherwise the type falls back to SEND/RECEIVE from the direction.
    """
    tx.direction = detect_direction(tx.from_address, tx.to_address, address)

    if tx.type is None:
        tx.type = (
            TransactionType.RECEIVE
            if tx.direction == TransactionDirection.IN
            else TransactionType.SEND
        )

    signature = tx.method_signature or extract_method_signature(tx.input_data)
    if signature:
        tx.method_signature = signature
        tx.type = classify_type(signature)

    if tx.type == TransactionType.SEND and tx.direction == TransactionDirection.IN:
        tx.type = TransactionType.RECEIVE

    return tx
