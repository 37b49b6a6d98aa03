"""Cluster names and RPC endpoint resolution."""

from enum import Enum
from typing import Optional, Union


LOCALNET_ENDPOINT = "http://127.0.0.1:8899"


class Network(str, Enum):
    """Solana clusters a test wallet can live on."""

    LOCALNET = "localnet"
    DEVNET = "devnet"
    TESTNET = "testnet"
    MAINNET = "mainnet-beta"

    @classmethod
    def parse(cls, value: Union["Network", str]) -> "Network":
        """
        Coerce a cluster name into a Network.

        Raises:
            ValueError: If the name is not a known cluster.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(n.value for n in cls)
            raise ValueError(f"Unknown network '{value}' (expected one of: {names})")

    @property
    def is_local(self) -> bool:
        return self is Network.LOCALNET

    @property
    def has_faucet(self) -> bool:
        return self is not Network.MAINNET


def resolve_endpoint(network: Union[Network, str], endpoint: Optional[str] = None) -> str:
    """
    Pick the RPC endpoint for a network.

    An explicit endpoint always wins. Localnet maps to the local validator,
    every other cluster to its public api.<cluster>.solana.com endpoint.
    """
    if endpoint:
        return endpoint

    network = Network.parse(network)
    if network.is_local:
        return LOCALNET_ENDPOINT
    return f"https://api.{network.value}.solana.com"
