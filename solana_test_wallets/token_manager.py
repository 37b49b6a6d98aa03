"""SPL token funding for test wallets and the per-pool mint registry."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import CreateAccountParams, create_account
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import InitializeMintParams, MintToParams, initialize_mint, mint_to

from solana_test_wallets.errors import UnsupportedNetworkError
from solana_test_wallets.network import Network
from solana_test_wallets.transactions import airdrop, send_and_confirm, to_base_units

if TYPE_CHECKING:
    from solana_test_wallets.wallet import TestWallet


logger = logging.getLogger(__name__)

MINT_DECIMALS = 6
MINT_ACCOUNT_SIZE = 82
# Covers rent for the mint plus fees for every ATA the authority pays for.
AUTHORITY_FUNDING_SOL = 10

# Symbols resolvable without a local mint. The USDC address is the devnet mint.
DEFAULT_KNOWN_MINTS: Dict[str, str] = {
    "USDC": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
}


@dataclass
class MintRecord:
    """A mint created by this process together with its mint authority."""

    symbol: str
    address: Pubkey
    authority: Keypair

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": str(self.address),
            "authority": list(bytes(self.authority)),
        }

    @classmethod
    def from_dict(cls, symbol: str, data: Mapping[str, Any]) -> "MintRecord":
        return cls(
            symbol=symbol,
            address=Pubkey.from_string(data["address"]),
            authority=Keypair.from_bytes(bytes(data["authority"])),
        )


class TokenManager:
    """Create localnet mints on demand and mint tokens into test wallets.

    Each symbol gets at most one mint per TokenManager. The registry can be
    exported and re-imported so later test runs keep minting against the
    same addresses.
    """

    def __init__(
        self,
        client: AsyncClient,
        network: Network,
        known_mints: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            client: Shared RPC client.
            network: Network the pool runs on. Minting only works on localnet.
            known_mints: Symbol to mint address table for tokens that are not
                minted locally. Defaults to DEFAULT_KNOWN_MINTS.
        """
        self.client = client
        self.network = Network.parse(network)
        table = DEFAULT_KNOWN_MINTS if known_mints is None else known_mints
        self._known: Dict[str, Pubkey] = {
            symbol: Pubkey.from_string(address) for symbol, address in table.items()
        }
        self._mints: Dict[str, MintRecord] = {}
        self._mint_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._mints)

    def symbols(self) -> List[str]:
        return list(self._mints)

    def mint_info(self, symbol: str) -> Optional[MintRecord]:
        return self._mints.get(symbol)

    def mint_address(self, symbol: str) -> Optional[Pubkey]:
        record = self._mints.get(symbol)
        return record.address if record else None

    def known_mint(self, symbol: str) -> Optional[Pubkey]:
        return self._known.get(symbol)

    async def fund_with_tokens(
        self, wallet: "TestWallet", symbol: str, amount: float
    ) -> Optional[Signature]:
        """
        Mint tokens into a wallet, creating the mint on first use.

        Args:
            wallet: Wallet to receive the tokens.
            symbol: Token symbol, e.g. 'USDC'.
            amount: Amount in display units. Zero does nothing.

        Returns:
            Signature of the mint transaction, or None for a zero amount.

        Raises:
            UnsupportedNetworkError: If the pool is not on localnet.
            ValueError: If the amount is negative.
        """
        if not self.network.is_local:
            raise UnsupportedNetworkError("Funding tokens", self.network.value)
        if amount < 0:
            raise ValueError(f"Token amount must not be negative: {amount}")
        if amount == 0:
            logger.debug("Skipping zero %s funding for %s", symbol, wallet.pubkey)
            return None

        record = await self._get_or_create_mint(symbol)
        ata = await wallet.ensure_token_account(str(record.address), payer=record.authority)

        raw_amount = to_base_units(amount, MINT_DECIMALS)
        ix = mint_to(MintToParams(
            program_id=TOKEN_PROGRAM_ID,
            mint=record.address,
            dest=ata,
            mint_authority=record.authority.pubkey(),
            amount=raw_amount,
        ))
        sig = await send_and_confirm(self.client, [ix], [record.authority])
        logger.debug("Minted %s %s to %s (tx: %s)", amount, symbol, ata, sig)
        return sig

    async def _get_or_create_mint(self, symbol: str) -> MintRecord:
        async with self._mint_lock:
            record = self._mints.get(symbol)
            if record is None:
                record = await self._create_mint(symbol)
                self._mints[symbol] = record
            return record

    async def _create_mint(self, symbol: str) -> MintRecord:
        authority = Keypair()
        await airdrop(self.client, authority.pubkey(), AUTHORITY_FUNDING_SOL)

        mint_keypair = Keypair()
        rent = await self.client.get_minimum_balance_for_rent_exemption(MINT_ACCOUNT_SIZE)

        create_ix = create_account(CreateAccountParams(
            from_pubkey=authority.pubkey(),
            to_pubkey=mint_keypair.pubkey(),
            lamports=rent.value,
            space=MINT_ACCOUNT_SIZE,
            owner=TOKEN_PROGRAM_ID,
        ))
        init_ix = initialize_mint(InitializeMintParams(
            program_id=TOKEN_PROGRAM_ID,
            mint=mint_keypair.pubkey(),
            decimals=MINT_DECIMALS,
            mint_authority=authority.pubkey(),
        ))

        sig = await send_and_confirm(self.client, [create_ix, init_ix], [authority, mint_keypair])
        logger.info("Created %s mint %s (tx: %s)", symbol, mint_keypair.pubkey(), sig)
        return MintRecord(symbol=symbol, address=mint_keypair.pubkey(), authority=authority)

    def export_mints(self) -> Dict[str, Dict[str, Any]]:
        """Return the registry as plain JSON-serializable data."""
        return {symbol: record.to_dict() for symbol, record in self._mints.items()}

    def import_mints(self, mints: Mapping[str, Mapping[str, Any]]) -> None:
        """Merge serialized mints into the registry, replacing same-symbol entries."""
        for symbol, data in mints.items():
            self._mints[symbol] = MintRecord.from_dict(symbol, data)
