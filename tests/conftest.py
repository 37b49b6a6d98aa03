"""Shared fixtures: an in-memory stand-in for the Solana RPC client."""

from __future__ import annotations

from collections import defaultdict
from types import SimpleNamespace
from typing import Any

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID

from solana_test_wallets.network import Network
from solana_test_wallets.token_manager import TokenManager

_INITIALIZE_MINT = 0
_MINT_TO = 7


def _resp(value: Any) -> SimpleNamespace:
    return SimpleNamespace(value=value)


def _new_signature():
    return Keypair().sign_message(b"fake-rpc")


class FakeRpcClient:
    """Mimics the parts of AsyncClient the package uses.

    Sent transactions are decoded so account creation, mint initialization
    and mint-to instructions change the fake ledger like a validator would.
    """

    def __init__(self) -> None:
        self.lamports: dict[Pubkey, int] = defaultdict(int)
        self.accounts: set[Pubkey] = set()
        self.token_balances: dict[Pubkey, int] = {}
        self.mints: list[Pubkey] = []
        self.created_token_accounts: list[Pubkey] = []
        self.airdrops: list[tuple[Pubkey, int]] = []
        self.sent: list[Any] = []
        self.closed = False
        self.fail_airdrops_after: int | None = None

    async def get_balance(self, pubkey, commitment=None):
        return _resp(self.lamports[pubkey])

    async def request_airdrop(self, pubkey, lamports, commitment=None):
        if self.fail_airdrops_after is not None and len(self.airdrops) >= self.fail_airdrops_after:
            raise ConnectionError("faucet unavailable")
        self.lamports[pubkey] += lamports
        self.airdrops.append((pubkey, lamports))
        return _resp(_new_signature())

    async def confirm_transaction(self, signature, commitment=None, **kwargs):
        return _resp([SimpleNamespace(err=None)])

    async def get_latest_blockhash(self, commitment=None):
        return _resp(SimpleNamespace(blockhash=Hash.default(), last_valid_block_height=1))

    async def get_minimum_balance_for_rent_exemption(self, usize, commitment=None):
        return _resp(1_461_600)

    async def get_account_info(self, pubkey, commitment=None, **kwargs):
        return _resp(SimpleNamespace(owner=TOKEN_PROGRAM_ID) if pubkey in self.accounts else None)

    async def get_token_account_balance(self, pubkey, commitment=None):
        if pubkey not in self.token_balances:
            raise RuntimeError(f"could not find account {pubkey}")
        return _resp(SimpleNamespace(amount=str(self.token_balances[pubkey]), decimals=6))

    async def send_transaction(self, txn, opts=None):
        self.sent.append(txn)
        msg = txn.message
        keys = msg.account_keys
        for ix in msg.instructions:
            program = keys[ix.program_id_index]
            accounts = [keys[i] for i in ix.accounts]
            data = bytes(ix.data)
            if program == ASSOCIATED_TOKEN_PROGRAM_ID:
                self.accounts.add(accounts[1])
                self.token_balances[accounts[1]] = 0
                self.created_token_accounts.append(accounts[1])
            elif program == SYSTEM_PROGRAM_ID:
                self.accounts.add(accounts[1])
            elif program == TOKEN_PROGRAM_ID and data[0] == _INITIALIZE_MINT:
                self.mints.append(accounts[0])
            elif program == TOKEN_PROGRAM_ID and data[0] == _MINT_TO:
                self.token_balances[accounts[1]] += int.from_bytes(data[1:9], "little")
        return _resp(txn.signatures[0])

    async def close(self):
        self.closed = True


@pytest.fixture
def rpc() -> FakeRpcClient:
    return FakeRpcClient()


@pytest.fixture
def token_manager(rpc) -> TokenManager:
    return TokenManager(rpc, Network.LOCALNET)


@pytest.fixture
def devnet_token_manager(rpc) -> TokenManager:
    return TokenManager(rpc, Network.DEVNET)
