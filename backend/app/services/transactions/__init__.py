# backend/app/services/transactions/__init__.py
"""
Transactions Package.

Usage:
    from app.services.transactions import TransactionAggregator, FilterOptions

    page = aggregator.list_transactions(address, FilterOptions(page=1, page_size=20))

Architecture:
    transactions/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Transaction, FilterOptions, TransactionPage, enums
    ├── classifier.py     # Selector tables and pure classification functions
    └── aggregator.py     # Fetch/classify/filter/sort/paginate, balance reduction
"""

from app.services.transactions.aggregator import (
    TransactionAggregator,
    calculate_token_amounts,
    matches_filters,
    paginate,
)
from app.services.transactions.classifier import (
    classify,
    classify_type,
    detect_direction,
    extract_method_signature,
    method_name,
    set_direction_for_address,
)
from app.services.transactions.types import (
    FilterOptions,
    Transaction,
    TransactionDirection,
    TransactionPage,
    TransactionStatus,
    TransactionType,
)

__all__ = [
    "TransactionAggregator",
    "calculate_token_amounts",
    "matches_filters",
    "paginate",
    "classify",
    "classify_type",
    "detect_direction",
    "extract_method_signature",
    "method_name",
    "set_direction_for_address",
    "FilterOptions",
    "Transaction",
    "TransactionDirection",
    "TransactionPage",
    "TransactionStatus",
    "TransactionType",
]
