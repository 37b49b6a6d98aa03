"""A single disposable test wallet bound to one network."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from solana.rpc.async_api import AsyncClient
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from solana_test_wallets.errors import UnknownTokenError
from solana_test_wallets.network import Network
from solana_test_wallets.transactions import LAMPORTS_PER_SOL, from_base_units, send_and_confirm

if TYPE_CHECKING:
    from solana_test_wallets.token_manager import TokenManager


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_DECIMALS = 6


class MintSource(str, Enum):
    """Where a mint address came from when resolving a token."""

    ADDRESS = "address"
    REGISTRY = "registry"
    KNOWN = "known"


@dataclass(frozen=True)
class MintResolution:
    mint: Pubkey
    source: MintSource


def parse_pubkey(value: str) -> Optional[Pubkey]:
    """Return the Pubkey for a base58 address, or None if it is not one."""
    try:
        return Pubkey.from_string(value)
    except ValueError:
        return None


def create_ata_ix(payer: Pubkey, owner: Pubkey, mint: Pubkey) -> Instruction:
    """Build a CreateAssociatedTokenAccount instruction for the SPL token program."""
    ata = get_associated_token_address(owner, mint)
    keys = [
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=ata, is_signer=False, is_writable=True),
        AccountMeta(pubkey=owner, is_signer=False, is_writable=False),
        AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(ASSOCIATED_TOKEN_PROGRAM_ID, bytes(), keys)


class TestWallet:
    """A generated keypair plus the RPC queries a test needs against it.

    Balances are never cached: every call goes to the cluster.
    """

    __test__ = False

    def __init__(
        self,
        keypair: Keypair,
        client: AsyncClient,
        network: Network,
        token_manager: "TokenManager",
    ):
        """
        Args:
            keypair: The wallet's signing keypair. Owned by this wallet.
            client: Shared RPC client.
            network: Network the wallet lives on.
            token_manager: Mint registry used to resolve localnet token symbols.
        """
        self._keypair = keypair
        self.client = client
        self.network = Network.parse(network)
        self.token_manager = token_manager

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    def __repr__(self) -> str:
        return f"TestWallet({self.pubkey}, network={self.network.value})"

    async def balance(self) -> float:
        """Return the SOL balance."""
        resp = await self.client.get_balance(self.pubkey)
        return resp.value / LAMPORTS_PER_SOL

    def resolve_mint(self, token: str) -> MintResolution:
        """
        Resolve a token symbol or mint address.

        Tries, in order: the string as a mint address, the localnet mint
        registry, then the known-symbol table.

        Raises:
            UnknownTokenError: If no step resolves the token.
        """
        address = parse_pubkey(token)
        if address is not None:
            return MintResolution(address, MintSource.ADDRESS)

        if self.network.is_local:
            record = self.token_manager.mint_info(token)
            if record is not None:
                return MintResolution(record.address, MintSource.REGISTRY)

        known = self.token_manager.known_mint(token)
        if known is not None:
            return MintResolution(known, MintSource.KNOWN)

        raise UnknownTokenError(token)

    def token_account_address(self, token: str) -> Pubkey:
        """Derive the associated token account for a token. No RPC call."""
        mint = self.resolve_mint(token).mint
        return get_associated_token_address(self.pubkey, mint)

    async def has_token_account(self, token: str) -> bool:
        ata = self.token_account_address(token)
        resp = await self.client.get_account_info(ata)
        return resp.value is not None

    async def token_balance(self, token: str, decimals: int = DEFAULT_TOKEN_DECIMALS) -> float:
        """
        Get the wallet's balance of a token.

        Args:
            token: Token symbol or mint address.
            decimals: Decimal places of the mint.

        Returns:
            float: Balance in display units, 0.0 if the token account does not exist.

        Raises:
            UnknownTokenError: If the token cannot be resolved.
        """
        ata = self.token_account_address(token)
        info = await self.client.get_account_info(ata)
        if info.value is None:
            return 0.0

        resp = await self.client.get_token_account_balance(ata)
        return from_base_units(int(resp.value.amount), decimals)

    async def ensure_token_account(self, token: str, payer: Optional[Keypair] = None) -> Pubkey:
        """
        Return the wallet's associated token account, creating it if needed.

        Args:
            token: Token symbol or mint address.
            payer: Keypair paying for account creation. Defaults to the wallet.

        Returns:
            Pubkey: The associated token account address.
        """
        mint = self.resolve_mint(token).mint
        ata = get_associated_token_address(self.pubkey, mint)

        existing = await self.client.get_account_info(ata)
        if existing.value is not None:
            return ata

        fee_payer = payer or self._keypair
        ix = create_ata_ix(fee_payer.pubkey(), self.pubkey, mint)
        sig = await send_and_confirm(self.client, [ix], [fee_payer])
        logger.debug("Created token account %s for %s (tx: %s)", ata, self.pubkey, sig)
        return ata

    def info(self) -> Dict[str, str]:
        return {"publicKey": str(self.pubkey), "network": self.network.value}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the wallet for a snapshot file."""
        return {
            "secretKey": list(bytes(self._keypair)),
            "publicKey": str(self.pubkey),
            "network": self.network.value,
        }
