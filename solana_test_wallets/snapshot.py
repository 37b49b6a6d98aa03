"""On-disk formats: full pool snapshots and bare keypair files.

A snapshot is a JSON object::

    {
      "formatVersion": "1.0.0",
      "network": "localnet",
      "wallets": [{"secretKey": [...], "publicKey": "...", "network": "localnet", "label": "..."}],
      "mints": {"USDC": {"address": "...", "authority": [...]}}
    }

A keypair file is the bare 64-byte secret key as a JSON array, the same
layout solana-keygen writes.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from solders.keypair import Keypair

from solana_test_wallets.errors import SnapshotFormatError
from solana_test_wallets.network import Network
from solana_test_wallets.token_manager import MintRecord


logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0.0"

PathLike = Union[str, Path]


def _read_json(path: PathLike) -> Any:
    expanded = Path(path).expanduser()
    if not expanded.exists():
        raise FileNotFoundError(f"File not found: {expanded}")

    with open(expanded, "r") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"Invalid JSON in {expanded}: {e}") from e


def _write_json(path: PathLike, data: Any) -> Path:
    expanded = Path(path).expanduser()
    expanded.parent.mkdir(parents=True, exist_ok=True)
    with open(expanded, "w") as f:
        json.dump(data, f, indent=2)
    return expanded


def keypair_from_secret(secret: Any) -> Keypair:
    """Rebuild a keypair from a list of byte values."""
    try:
        return Keypair.from_bytes(bytes(secret))
    except (ValueError, TypeError) as e:
        raise SnapshotFormatError(f"Invalid secret key: {e}") from e


def load_keypair(path: PathLike) -> Keypair:
    """
    Load a keypair from a JSON secret-key file.

    Raises:
        FileNotFoundError: If the file does not exist.
        SnapshotFormatError: If the file does not hold a secret-key array.
    """
    data = _read_json(path)
    if not isinstance(data, list):
        raise SnapshotFormatError(f"Expected a secret-key array in {path}")
    return keypair_from_secret(data)


def save_keypair(path: PathLike, keypair: Keypair) -> Path:
    return _write_json(path, list(bytes(keypair)))


@dataclass
class WalletEntry:
    keypair: Keypair
    network: Network
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "secretKey": list(bytes(self.keypair)),
            "publicKey": str(self.keypair.pubkey()),
            "network": self.network.value,
        }
        if self.label is not None:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_network: Network) -> "WalletEntry":
        if not isinstance(data, dict) or "secretKey" not in data:
            raise SnapshotFormatError(f"Wallet entry without secretKey: {data!r}")

        keypair = keypair_from_secret(data["secretKey"])
        public_key = data.get("publicKey")
        if public_key is not None and public_key != str(keypair.pubkey()):
            raise SnapshotFormatError(
                f"publicKey {public_key} does not match secret key ({keypair.pubkey()})"
            )

        try:
            network = Network.parse(data.get("network", default_network))
        except ValueError as e:
            raise SnapshotFormatError(str(e)) from e
        return cls(keypair=keypair, network=network, label=data.get("label"))


def _assign_labels(wallets: List[WalletEntry]) -> None:
    """Give unlabelled entries a unique wallet-<position> label; reject duplicate labels."""
    taken = set()
    for entry in wallets:
        if entry.label is None:
            continue
        if entry.label in taken:
            raise SnapshotFormatError(f"Duplicate wallet label: {entry.label}")
        taken.add(entry.label)

    for i, entry in enumerate(wallets):
        if entry.label is not None:
            continue
        label, n = f"wallet-{i}", 1
        while label in taken:
            label = f"wallet-{i}-{n}"
            n += 1
        entry.label = label
        taken.add(label)


@dataclass
class PoolSnapshot:
    """Everything needed to rebuild a wallet pool."""

    network: Network
    wallets: List[WalletEntry] = field(default_factory=list)
    mints: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    version: str = FORMAT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formatVersion": self.version,
            "network": self.network.value,
            "wallets": [entry.to_dict() for entry in self.wallets],
            "mints": self.mints,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PoolSnapshot":
        """
        Validate and parse a decoded snapshot.

        Raises:
            SnapshotFormatError: On missing fields, bad keys or unknown networks.
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot must be a JSON object")

        try:
            network = Network.parse(data["network"])
        except KeyError:
            raise SnapshotFormatError("Snapshot has no network")
        except ValueError as e:
            raise SnapshotFormatError(str(e)) from e

        wallets = [WalletEntry.from_dict(entry, network) for entry in data.get("wallets") or []]
        for entry in wallets:
            if entry.network is not network:
                raise SnapshotFormatError(
                    f"Wallet {entry.keypair.pubkey()} is on {entry.network.value}, "
                    f"snapshot is on {network.value}"
                )
        _assign_labels(wallets)

        mints = data.get("mints") or {}
        if not isinstance(mints, dict):
            raise SnapshotFormatError("Snapshot mints must be an object keyed by symbol")
        for symbol, mint in mints.items():
            try:
                MintRecord.from_dict(symbol, mint)
            except (KeyError, ValueError, TypeError) as e:
                raise SnapshotFormatError(f"Invalid mint entry for {symbol}: {e}") from e

        version = data.get("formatVersion", data.get("version", FORMAT_VERSION))
        if version != FORMAT_VERSION:
            logger.warning("Snapshot version %s differs from %s", version, FORMAT_VERSION)

        return cls(network=network, wallets=wallets, mints=dict(mints), version=version)

    @classmethod
    def load(cls, path: PathLike) -> "PoolSnapshot":
        snapshot = cls.from_dict(_read_json(path))
        logger.info("Loaded snapshot with %d wallets from %s", len(snapshot.wallets), path)
        return snapshot

    def save(self, path: PathLike) -> Path:
        written = _write_json(path, self.to_dict())
        logger.info("Saved snapshot with %d wallets to %s", len(self.wallets), written)
        return written
