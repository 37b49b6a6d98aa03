#!/usr/bin/env python3
"""solana-test-wallets CLI."""

import argparse
import asyncio
import logging
import os
import sys
from typing import Dict, List

from solana_test_wallets.config import WalletPoolConfig
from solana_test_wallets.network import Network
from solana_test_wallets.pool import WalletPool


def parse_token_amounts(values: List[str]) -> Dict[str, float]:
    """Turn ['USDC=100', 'BONK=5'] into {'USDC': 100.0, 'BONK': 5.0}."""
    tokens: Dict[str, float] = {}
    for value in values:
        symbol, sep, amount = value.partition("=")
        if not sep or not symbol:
            raise ValueError(f"Expected SYMBOL=AMOUNT, got '{value}'")
        try:
            tokens[symbol] = float(amount)
        except ValueError:
            raise ValueError(f"Invalid amount in '{value}'")
    return tokens


async def cmd_create(args):
    """Create and fund wallets, then save them to a snapshot."""
    config = WalletPoolConfig(
        network=args.network,
        endpoint=args.endpoint,
        count=args.count,
        label=args.label,
        fund_sol=args.fund_sol,
        fund_tokens=parse_token_amounts(args.fund_token),
    )
    async with await WalletPool.create(config) as pool:
        path = pool.save_to_file(args.out)
        for label, wallet in zip(pool.labels(), pool.all()):
            print(f"{label}: {wallet.pubkey}")
        print(f"Saved {pool.count()} wallets to {path}")


async def cmd_list(args):
    """Show wallets in a snapshot with their balances."""
    async with await WalletPool.load_from_file(args.file, endpoint=args.endpoint) as pool:
        print(f"Network: {pool.network.value}")
        for row in await pool.balances(args.token):
            print(f"{row['label']}: {row['publicKey']}")
            print(f"  Balance: {row['sol']:.9f} SOL")
            for symbol, amount in row["tokens"].items():
                print(f"  Tokens: {amount} {symbol}")


async def cmd_export_wallet(args):
    """Write one wallet from a snapshot as a bare keypair file."""
    async with await WalletPool.load_from_file(args.file, endpoint=args.endpoint) as pool:
        key = int(args.wallet) if args.wallet.isdigit() else args.wallet
        path = pool.save_wallet_to_file(args.out, key)
        print(f"Wallet {pool.get(key).pubkey} saved to {path}")


async def cmd_import_wallets(args):
    """Bundle keypair files into a snapshot."""
    pool = await WalletPool.load_wallets_from_files(args.files, args.network, endpoint=args.endpoint)
    async with pool:
        path = pool.save_to_file(args.out)
        print(f"Saved {pool.count()} wallets to {path}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Disposable Solana test wallets")
    parser.add_argument("--endpoint", default=os.environ.get("SOLANA_RPC_URL"), help="RPC endpoint override")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    networks = [n.value for n in Network]

    # create
    p = sub.add_parser("create", help="Create and fund wallets")
    p.add_argument("--network", default=Network.LOCALNET.value, choices=networks, help="Solana network")
    p.add_argument("--count", type=int, default=1, help="Number of wallets")
    p.add_argument("--label", default="wallet", help="Label prefix")
    p.add_argument("--fund-sol", type=float, default=0, help="SOL to airdrop to each wallet")
    p.add_argument("--fund-token", action="append", default=[], metavar="SYMBOL=AMOUNT",
                   help="Tokens to mint to each wallet (localnet only, repeatable)")
    p.add_argument("--out", default="test-wallets.json", help="Snapshot file to write")

    # list
    p = sub.add_parser("list", help="Show wallets and balances from a snapshot")
    p.add_argument("file", help="Snapshot file")
    p.add_argument("--token", action="append", default=None, help="Token symbol to show (repeatable)")

    # export-wallet
    p = sub.add_parser("export-wallet", help="Export one wallet's secret key")
    p.add_argument("file", help="Snapshot file")
    p.add_argument("wallet", help="Wallet index or label")
    p.add_argument("--out", required=True, help="Keypair file to write")

    # import-wallet
    p = sub.add_parser("import-wallet", help="Bundle keypair files into a snapshot")
    p.add_argument("files", nargs="+", help="Keypair files")
    p.add_argument("--network", default=Network.LOCALNET.value, choices=networks, help="Solana network")
    p.add_argument("--out", default="test-wallets.json", help="Snapshot file to write")

    args = parser.parse_args()
    if args.command == "list" and args.token is None:
        args.token = ["USDC"]

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    cmd_map = {
        "create": cmd_create,
        "list": cmd_list,
        "export-wallet": cmd_export_wallet,
        "import-wallet": cmd_import_wallets,
    }
    try:
        asyncio.run(cmd_map[args.command](args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
