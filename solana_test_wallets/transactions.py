"""Transaction plumbing shared by wallets and the token manager."""

import logging
from typing import List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from solana_test_wallets.errors import TransactionFailedError


logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000


def sol_to_lamports(amount_sol: float) -> int:
    return int(round(amount_sol * LAMPORTS_PER_SOL))


def to_base_units(amount: float, decimals: int) -> int:
    """Convert a display amount into the token's smallest units."""
    return int(round(amount * 10 ** decimals))


def from_base_units(raw_amount: int, decimals: int) -> float:
    return raw_amount / 10 ** decimals


async def confirm(client: AsyncClient, signature: Signature) -> None:
    """
    Wait until the cluster reports the transaction as confirmed.

    Raises:
        TransactionFailedError: If the transaction landed with an error.
    """
    resp = await client.confirm_transaction(signature, commitment=Confirmed)
    statuses = resp.value
    if statuses and statuses[0] is not None and statuses[0].err:
        raise TransactionFailedError(f"Transaction {signature} failed: {statuses[0].err}")


async def send_and_confirm(
    client: AsyncClient,
    instructions: List[Instruction],
    signers: List[Keypair],
    payer: Optional[Keypair] = None,
) -> Signature:
    """
    Build, sign, send and confirm a transaction.

    Args:
        client: RPC client.
        instructions: Instructions in execution order.
        signers: Every keypair the instructions require. Must include the payer.
        payer: Fee payer. Defaults to the first signer.

    Returns:
        Signature: The confirmed transaction signature.

    Raises:
        TransactionFailedError: If the node returns no signature or the
            transaction fails on chain.
    """
    fee_payer = payer or signers[0]
    blockhash_resp = await client.get_latest_blockhash()
    blockhash = blockhash_resp.value.blockhash

    msg = Message.new_with_blockhash(instructions, fee_payer.pubkey(), blockhash)
    tx = Transaction.new_unsigned(msg)
    tx.sign(signers, blockhash)

    resp = await client.send_transaction(tx, opts=TxOpts(preflight_commitment=Confirmed))
    sig = resp.value
    if sig is None:
        raise TransactionFailedError(f"Transaction was not accepted: {resp}")

    await confirm(client, sig)
    return sig


async def airdrop(client: AsyncClient, pubkey: Pubkey, amount_sol: float) -> Signature:
    """Request SOL from the cluster faucet and wait for it to land."""
    lamports = sol_to_lamports(amount_sol)
    resp = await client.request_airdrop(pubkey, lamports)
    sig = resp.value
    if sig is None:
        raise TransactionFailedError(f"Airdrop request failed: {resp}")

    await confirm(client, sig)
    logger.debug("Airdropped %s SOL to %s (tx: %s)", amount_sol, pubkey, sig)
    return sig
