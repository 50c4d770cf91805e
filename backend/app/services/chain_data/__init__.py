# backend/app/services/chain_data/__init__.py
"""
Chain Data Package.

Transfer history and live balances for wallet addresses.

Architecture:
    chain_data/
    ├── __init__.py       # This file - package exports
    ├── base.py           # BaseChainDataProvider (rate limit + retry)
    ├── etherscan.py      # Etherscan account API adapter
    └── mock.py           # Deterministic sample history (local dev)
"""

from app.services.chain_data.base import BaseChainDataProvider
from app.services.chain_data.etherscan import EtherscanChainDataProvider
from app.services.chain_data.mock import MockChainDataProvider

__all__ = [
    "BaseChainDataProvider",
    "EtherscanChainDataProvider",
    "MockChainDataProvider",
]
