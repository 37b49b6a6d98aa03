"""Disposable, funded Solana wallets for integration tests."""

from solana_test_wallets.config import FundingConfig, WalletPoolConfig
from solana_test_wallets.errors import (
    EmptyPoolError,
    NoWalletsCreatedError,
    SnapshotFormatError,
    TestWalletsError,
    TransactionFailedError,
    UnknownTokenError,
    UnsupportedNetworkError,
    WalletNotFoundError,
)
from solana_test_wallets.network import Network, resolve_endpoint
from solana_test_wallets.pool import WalletPool
from solana_test_wallets.token_manager import MintRecord, TokenManager
from solana_test_wallets.wallet import MintResolution, MintSource, TestWallet

__version__ = "0.1.0"

__all__ = [
    "EmptyPoolError",
    "FundingConfig",
    "MintRecord",
    "MintResolution",
    "MintSource",
    "Network",
    "NoWalletsCreatedError",
    "SnapshotFormatError",
    "TestWallet",
    "TestWalletsError",
    "TokenManager",
    "TransactionFailedError",
    "UnknownTokenError",
    "UnsupportedNetworkError",
    "WalletNotFoundError",
    "WalletPool",
    "WalletPoolConfig",
    "resolve_endpoint",
]
