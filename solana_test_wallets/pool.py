"""A rotating pool of test wallets sharing one RPC client and mint registry."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.keypair import Keypair
from solders.signature import Signature

from solana_test_wallets.config import FundingConfig, WalletPoolConfig
from solana_test_wallets.errors import (
    EmptyPoolError,
    NoWalletsCreatedError,
    UnsupportedNetworkError,
    WalletNotFoundError,
)
from solana_test_wallets.network import Network, resolve_endpoint
from solana_test_wallets.snapshot import PathLike, PoolSnapshot, WalletEntry, load_keypair, save_keypair
from solana_test_wallets.token_manager import TokenManager
from solana_test_wallets.transactions import airdrop
from solana_test_wallets.wallet import TestWallet


logger = logging.getLogger(__name__)

WalletKey = Union[int, str]


def connect(network: Network, endpoint: Optional[str] = None) -> AsyncClient:
    """Open an RPC client for a network at confirmed commitment."""
    return AsyncClient(resolve_endpoint(network, endpoint), commitment=Confirmed)


class WalletPool:
    """Ordered, label-addressable collection of test wallets.

    Wallets keep their insertion order, so they can be fetched by position,
    by label, or handed out round-robin with next(). Pools are built with
    the async factories (create, create_one, load_from_file, ...), not by
    calling the constructor directly.
    """

    def __init__(
        self,
        client: AsyncClient,
        network: Network,
        known_mints: Optional[Mapping[str, str]] = None,
    ):
        self.client = client
        self.network = Network.parse(network)
        self.token_manager = TokenManager(client, self.network, known_mints)
        self._wallets: Dict[str, TestWallet] = {}
        self._cursor = 0

    async def __aenter__(self) -> "WalletPool":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def __len__(self) -> int:
        return len(self._wallets)

    def __iter__(self) -> Iterator[TestWallet]:
        return iter(list(self._wallets.values()))

    # -- Factories -----------------------------------------------------------

    @classmethod
    async def create(
        cls,
        config: Optional[WalletPoolConfig] = None,
        client: Optional[AsyncClient] = None,
        **overrides: Any,
    ) -> "WalletPool":
        """
        Generate and fund a pool of wallets.

        Wallets are created and funded one after another, SOL first and then
        each token. A funding failure propagates immediately; wallets funded
        before it keep their funds.

        Args:
            config: Pool configuration. Defaults to one unfunded localnet wallet.
            client: RPC client to use instead of opening one for the network.
            **overrides: WalletPoolConfig fields overriding ``config``.

        Returns:
            WalletPool: The funded pool.
        """
        config = config or WalletPoolConfig()
        if overrides:
            config = replace(config, **overrides)

        owns_client = client is None
        if owns_client:
            client = connect(config.network, config.endpoint)
        pool = cls(client, config.network, config.known_mints)
        try:
            for label, funding in config.funding_plan().items():
                wallet = pool.add_wallet(Keypair(), label)
                await pool._fund(wallet, funding)
        except BaseException:
            if owns_client:
                await client.close()
            raise

        logger.info("Created %d wallets on %s", len(pool), pool.network.value)
        return pool

    @classmethod
    async def create_one(
        cls,
        config: Optional[WalletPoolConfig] = None,
        client: Optional[AsyncClient] = None,
        **overrides: Any,
    ) -> TestWallet:
        """
        Create a single funded wallet.

        With a per-label ``wallets`` plan only its first entry is created.
        Close the wallet's client with ``await wallet.client.close()``.
        """
        config = replace(config or WalletPoolConfig(), **overrides)
        if config.wallets:
            first = dict(list(config.wallets.items())[:1])
            config = replace(config, wallets=first)
        else:
            config = replace(config, count=1, wallets=None)
        pool = await cls.create(config, client=client)
        if not len(pool):
            raise NoWalletsCreatedError("No wallets created")
        return pool.get(0)

    @classmethod
    async def load_from_file(
        cls,
        path: PathLike,
        endpoint: Optional[str] = None,
        client: Optional[AsyncClient] = None,
        known_mints: Optional[Mapping[str, str]] = None,
    ) -> "WalletPool":
        """
        Restore a pool, including its mint registry, from a snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist.
            SnapshotFormatError: If the file is not a valid snapshot.
        """
        snapshot = PoolSnapshot.load(path)
        owns_client = client is None
        if owns_client:
            client = connect(snapshot.network, endpoint)
        pool = cls(client, snapshot.network, known_mints)
        try:
            for entry in snapshot.wallets:
                pool.add_wallet(entry.keypair, entry.label)
            if snapshot.mints:
                pool.token_manager.import_mints(snapshot.mints)
        except BaseException:
            if owns_client:
                await client.close()
            raise
        return pool

    @classmethod
    async def load_wallet_from_file(
        cls,
        path: PathLike,
        network: Network,
        endpoint: Optional[str] = None,
        client: Optional[AsyncClient] = None,
        label: Optional[str] = None,
    ) -> "WalletPool":
        """Build a one-wallet pool from a bare secret-key file."""
        return await cls.load_wallets_from_files(
            [path], network, endpoint=endpoint, client=client, labels=[label] if label else None
        )

    @classmethod
    async def load_wallets_from_files(
        cls,
        paths: Sequence[PathLike],
        network: Network,
        endpoint: Optional[str] = None,
        client: Optional[AsyncClient] = None,
        labels: Optional[Sequence[str]] = None,
    ) -> "WalletPool":
        """
        Build a pool from several secret-key files, in the given order.

        Wallets are labelled with the file name stem unless ``labels`` is given.

        Raises:
            ValueError: If no paths are given.
            FileNotFoundError: If any file does not exist.
        """
        if not paths:
            raise ValueError("No filenames provided")
        if labels is not None and len(labels) != len(paths):
            raise ValueError("labels must match paths one to one")

        network = Network.parse(network)
        keypairs = [load_keypair(path) for path in paths]

        owns_client = client is None
        if owns_client:
            client = connect(network, endpoint)
        pool = cls(client, network)
        try:
            for i, keypair in enumerate(keypairs):
                label = labels[i] if labels is not None else pool._unique_label(Path(paths[i]).stem)
                pool.add_wallet(keypair, label)
        except BaseException:
            if owns_client:
                await client.close()
            raise
        return pool

    # -- Persistence ---------------------------------------------------------

    def snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(
            network=self.network,
            wallets=[
                WalletEntry(keypair=wallet.keypair, network=wallet.network, label=label)
                for label, wallet in self._wallets.items()
            ],
            mints=self.token_manager.export_mints(),
        )

    def save_to_file(self, path: PathLike) -> Path:
        """Write every wallet and the mint registry to a snapshot file."""
        return self.snapshot().save(path)

    def save_wallet_to_file(self, path: PathLike, key: WalletKey) -> Path:
        """Write one wallet's secret key as a bare keypair file."""
        return save_keypair(path, self.get(key).keypair)

    # -- Access --------------------------------------------------------------

    def add_wallet(self, keypair: Keypair, label: Optional[str] = None) -> TestWallet:
        """
        Add a keypair to the pool as a new wallet.

        Raises:
            ValueError: If the label is already taken.
        """
        if label is None:
            label = self._unique_label(f"wallet-{len(self._wallets)}")
        elif label in self._wallets:
            raise ValueError(f"Duplicate wallet label: {label}")

        wallet = TestWallet(keypair, self.client, self.network, self.token_manager)
        self._wallets[label] = wallet
        logger.debug("Added wallet %s as '%s'", wallet.pubkey, label)
        return wallet

    def _unique_label(self, base: str) -> str:
        label, n = base, 1
        while label in self._wallets:
            label = f"{base}-{n}"
            n += 1
        return label

    def next(self) -> TestWallet:
        """
        Hand out wallets round-robin, wrapping after the last one.

        Raises:
            EmptyPoolError: If the pool has no wallets.
        """
        if not self._wallets:
            raise EmptyPoolError("No wallets available")
        wallets = list(self._wallets.values())
        wallet = wallets[self._cursor % len(wallets)]
        self._cursor = (self._cursor + 1) % len(wallets)
        return wallet

    def get(self, key: WalletKey) -> TestWallet:
        """
        Look up a wallet by position or label.

        Raises:
            WalletNotFoundError: If the index is out of range or the label is unknown.
        """
        if isinstance(key, int) and not isinstance(key, bool):
            if 0 <= key < len(self._wallets):
                return list(self._wallets.values())[key]
            raise WalletNotFoundError(f"Wallet at index {key} not found")
        if key in self._wallets:
            return self._wallets[key]
        raise WalletNotFoundError(f"Wallet '{key}' not found")

    def count(self) -> int:
        return len(self._wallets)

    def labels(self) -> List[str]:
        return list(self._wallets)

    def all(self) -> List[TestWallet]:
        return list(self._wallets.values())

    # -- Funding -------------------------------------------------------------

    async def _fund(self, wallet: TestWallet, funding: FundingConfig) -> None:
        if funding.sol > 0:
            await self.fund_wallet_with_sol(wallet, funding.sol)
        for symbol, amount in funding.tokens.items():
            if amount > 0:
                await self.fund_wallet_with_tokens(wallet, symbol, amount)

    async def fund_wallet_with_sol(self, wallet: TestWallet, amount: float) -> Signature:
        """
        Airdrop SOL to a wallet.

        Raises:
            UnsupportedNetworkError: On mainnet-beta, which has no faucet.
        """
        if not self.network.has_faucet:
            raise UnsupportedNetworkError("Airdropping SOL", self.network.value)
        return await airdrop(self.client, wallet.pubkey, amount)

    async def fund_wallet_with_tokens(
        self, wallet: TestWallet, symbol: str, amount: float
    ) -> Optional[Signature]:
        return await self.token_manager.fund_with_tokens(wallet, symbol, amount)

    async def balances(self, symbols: Iterable[str] = ("USDC",)) -> List[Dict[str, Any]]:
        """Fetch SOL and token balances for every wallet, in pool order."""
        symbols = list(symbols)
        result = []
        for label, wallet in list(self._wallets.items()):
            result.append({
                "label": label,
                "publicKey": str(wallet.pubkey),
                "sol": await wallet.balance(),
                "tokens": {symbol: await wallet.token_balance(symbol) for symbol in symbols},
            })
        return result

    # -- Teardown ------------------------------------------------------------

    def dispose(self) -> None:
        """Forget every wallet and reset rotation. On-chain state is untouched."""
        self._wallets.clear()
        self._cursor = 0

    async def close(self) -> None:
        """Dispose the pool and close its RPC client."""
        self.dispose()
        await self.client.close()
