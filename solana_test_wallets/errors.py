"""Exceptions raised by solana-test-wallets.

RPC failures coming out of solana-py are not wrapped; they reach the caller
unchanged.
"""


class TestWalletsError(Exception):
    """Base class for all errors raised by this package."""

    __test__ = False


class UnknownTokenError(TestWalletsError):
    """A token symbol or address could not be resolved to a mint."""

    def __init__(self, token: str):
        super().__init__(f"Unknown token: {token}")
        self.token = token


class UnsupportedNetworkError(TestWalletsError):
    """The operation is not available on the wallet's network."""

    def __init__(self, operation: str, network: str):
        super().__init__(f"{operation} on {network} is not supported")
        self.operation = operation
        self.network = network


class EmptyPoolError(TestWalletsError):
    """Rotation was requested on a pool with no wallets."""


class WalletNotFoundError(TestWalletsError, LookupError):
    """No wallet at the requested index or label."""


class NoWalletsCreatedError(TestWalletsError):
    """Pool creation finished without producing a wallet."""


class SnapshotFormatError(TestWalletsError, ValueError):
    """A snapshot or keypair file has unexpected content."""


class TransactionFailedError(TestWalletsError):
    """The RPC node accepted a request but reported it as failed."""
