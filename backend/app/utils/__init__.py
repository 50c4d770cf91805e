# backend/app/utils/__init__.py
"""
Cross-cutting utilities for the valuation API.

- logging: Root logger setup with correlation IDs, text or JSON output
- context: Request-scoped correlation ID

Usage:
    from app.utils import setup_logging, get_correlation_id
"""

from app.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from app.utils.logging import setup_logging, get_logger

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
