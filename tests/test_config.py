"""Tests for pool configuration and the CLI helpers."""

from __future__ import annotations

import pytest

from solana_test_wallets.cli import parse_token_amounts
from solana_test_wallets.config import FundingConfig, WalletPoolConfig
from solana_test_wallets.network import Network


class TestWalletPoolConfig:
    def test_defaults(self) -> None:
        config = WalletPoolConfig()
        assert config.network is Network.LOCALNET
        assert config.count == 1
        assert config.endpoint is None
        assert config.known_mints is None

    def test_network_string_is_parsed(self) -> None:
        assert WalletPoolConfig(network="testnet").network is Network.TESTNET

    def test_negative_count(self) -> None:
        with pytest.raises(ValueError):
            WalletPoolConfig(count=-1)

    def test_flat_funding_plan(self) -> None:
        config = WalletPoolConfig(count=2, label="bot", fund_sol=1, fund_tokens={"USDC": 3})
        plan = config.funding_plan()
        assert list(plan) == ["bot-0", "bot-1"]
        assert plan["bot-1"] == FundingConfig(sol=1, tokens={"USDC": 3})

    def test_wallets_take_precedence(self) -> None:
        config = WalletPoolConfig(count=9, wallets={"alice": FundingConfig(sol=2)})
        assert config.funding_plan() == {"alice": FundingConfig(sol=2)}

    def test_from_camel_case(self) -> None:
        config = WalletPoolConfig.from_dict({
            "network": "devnet",
            "endpoint": "http://localhost:8899",
            "count": 4,
            "fundSOL": 10,
            "fundTokens": {"USDC": 100},
        })
        assert config.network is Network.DEVNET
        assert config.endpoint == "http://localhost:8899"
        assert config.count == 4
        assert config.fund_sol == 10
        assert config.fund_tokens == {"USDC": 100}

    def test_from_dict_with_labels(self) -> None:
        config = WalletPoolConfig.from_dict({
            "wallets": {"alice": {"fundSOL": 1}, "bob": {"sol": 2, "tokens": {"USDC": 5}}},
        })
        assert config.wallets == {
            "alice": FundingConfig(sol=1),
            "bob": FundingConfig(sol=2, tokens={"USDC": 5}),
        }


class TestParseTokenAmounts:
    def test_pairs(self) -> None:
        assert parse_token_amounts(["USDC=100", "BONK=0.5"]) == {"USDC": 100.0, "BONK": 0.5}

    @pytest.mark.parametrize("value", ["USDC", "=5", "USDC=lots"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_token_amounts([value])
