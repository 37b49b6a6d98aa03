"""Tests for the CLI commands, run against the fake RPC client."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest
from solders.keypair import Keypair

import solana_test_wallets.pool as pool_module
from solana_test_wallets.cli import (
    cmd_create,
    cmd_export_wallet,
    cmd_import_wallets,
    cmd_list,
)
from solana_test_wallets.snapshot import load_keypair, save_keypair


@pytest.fixture
def patched_connect(rpc, monkeypatch):
    monkeypatch.setattr(pool_module, "connect", lambda network, endpoint=None: rpc)
    return rpc


def _create_args(out: Path, **kwargs) -> argparse.Namespace:
    values = dict(
        network="localnet",
        endpoint=None,
        count=2,
        label="bot",
        fund_sol=1.0,
        fund_token=["USDC=25"],
        out=str(out),
    )
    values.update(kwargs)
    return argparse.Namespace(**values)


class TestCreateCommand:
    @pytest.mark.asyncio
    async def test_writes_funded_snapshot(self, patched_connect, tmp_path: Path, capsys) -> None:
        out = tmp_path / "wallets.json"
        await cmd_create(_create_args(out))

        data = json.loads(out.read_text())
        assert [w["label"] for w in data["wallets"]] == ["bot-0", "bot-1"]
        assert set(data["mints"]) == {"USDC"}
        assert patched_connect.closed
        assert f"Saved 2 wallets to {out}" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_bad_token_amount(self, patched_connect, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="SYMBOL=AMOUNT"):
            await cmd_create(_create_args(tmp_path / "w.json", fund_token=["USDC"]))


class TestSnapshotCommands:
    @pytest.mark.asyncio
    async def test_list_prints_balances(self, patched_connect, tmp_path: Path, capsys) -> None:
        out = tmp_path / "wallets.json"
        await cmd_create(_create_args(out, count=1))
        capsys.readouterr()

        await cmd_list(argparse.Namespace(file=str(out), endpoint=None, token=["USDC"]))
        printed = capsys.readouterr().out
        assert "Network: localnet" in printed
        assert "Balance: 1.000000000 SOL" in printed
        assert "Tokens: 25.0 USDC" in printed

    @pytest.mark.asyncio
    async def test_export_wallet_by_label(self, patched_connect, tmp_path: Path) -> None:
        snapshot = tmp_path / "wallets.json"
        await cmd_create(_create_args(snapshot, fund_sol=0, fund_token=[]))
        secret = json.loads(snapshot.read_text())["wallets"][1]["secretKey"]

        exported = tmp_path / "bot-1.json"
        await cmd_export_wallet(
            argparse.Namespace(file=str(snapshot), endpoint=None, wallet="bot-1", out=str(exported))
        )
        assert list(bytes(load_keypair(exported))) == secret

    @pytest.mark.asyncio
    async def test_export_wallet_by_index(self, patched_connect, tmp_path: Path) -> None:
        snapshot = tmp_path / "wallets.json"
        await cmd_create(_create_args(snapshot, fund_sol=0, fund_token=[]))
        secret = json.loads(snapshot.read_text())["wallets"][0]["secretKey"]

        exported = tmp_path / "first.json"
        await cmd_export_wallet(
            argparse.Namespace(file=str(snapshot), endpoint=None, wallet="0", out=str(exported))
        )
        assert list(bytes(load_keypair(exported))) == secret

    @pytest.mark.asyncio
    async def test_import_wallets(self, patched_connect, tmp_path: Path) -> None:
        keypairs = [Keypair(), Keypair()]
        files = [str(save_keypair(tmp_path / f"id{i}.json", k)) for i, k in enumerate(keypairs)]
        out = tmp_path / "bundle.json"

        await cmd_import_wallets(
            argparse.Namespace(files=files, network="devnet", endpoint=None, out=str(out))
        )
        data = json.loads(out.read_text())
        assert data["network"] == "devnet"
        assert [w["publicKey"] for w in data["wallets"]] == [str(k.pubkey()) for k in keypairs]
        assert patched_connect.closed
