"""Configuration for creating wallet pools."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from solana_test_wallets.network import Network


@dataclass
class FundingConfig:
    """SOL and token amounts to give one wallet at creation."""

    sol: float = 0
    tokens: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FundingConfig":
        return cls(
            sol=data.get("sol", data.get("fundSOL", 0)),
            tokens=dict(data.get("tokens", data.get("fundTokens", {}))),
        )


@dataclass
class WalletPoolConfig:
    """
    How many wallets to create, where, and how to fund them.

    Either set ``count`` (with shared ``fund_sol`` / ``fund_tokens``), or
    ``wallets``, a label to FundingConfig mapping that takes precedence.

    Attributes:
        network: Cluster to create wallets on.
        endpoint: RPC URL override.
        count: Number of wallets for a flat pool.
        label: Label prefix for a flat pool; wallets become '<label>-0', '<label>-1', ...
        fund_sol: SOL airdropped to each wallet of a flat pool.
        fund_tokens: Token symbol to amount minted to each wallet of a flat pool.
        wallets: Per-label funding.
        known_mints: Symbol to mint address table; None keeps the default table.
    """

    network: Network = Network.LOCALNET
    endpoint: Optional[str] = None
    count: int = 1
    label: str = "wallet"
    fund_sol: float = 0
    fund_tokens: Dict[str, float] = field(default_factory=dict)
    wallets: Optional[Dict[str, FundingConfig]] = None
    known_mints: Optional[Dict[str, str]] = None

    def __post_init__(self):
        self.network = Network.parse(self.network)
        if self.count < 0:
            raise ValueError(f"count must not be negative: {self.count}")

    def funding_plan(self) -> Dict[str, FundingConfig]:
        """Return the label to funding mapping, in creation order."""
        if self.wallets is not None:
            return dict(self.wallets)
        shared = FundingConfig(sol=self.fund_sol, tokens=dict(self.fund_tokens))
        return {f"{self.label}-{i}": shared for i in range(self.count)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WalletPoolConfig":
        """Build a config from snake_case or the camelCase keys used by the JS tooling."""
        wallets = data.get("wallets")
        return cls(
            network=data.get("network", Network.LOCALNET),
            endpoint=data.get("endpoint"),
            count=data.get("count", 1),
            label=data.get("label", "wallet"),
            fund_sol=data.get("fund_sol", data.get("fundSOL", 0)),
            fund_tokens=dict(data.get("fund_tokens", data.get("fundTokens", {}))),
            wallets=(
                {label: FundingConfig.from_dict(funding) for label, funding in wallets.items()}
                if wallets is not None else None
            ),
            known_mints=data.get("known_mints", data.get("knownMints")),
        )
