"""Persistent address registry for deployed contracts."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import RegistryCorruptError

logger = logging.getLogger(__name__)

Snapshot = Dict[str, List[str]]


def registry_key(network: str, role: Optional[str] = None) -> str:
    """
    Build the snapshot key for a (network, role) bucket.

    Token proxies use the bare network key, other roles use "<network>_<role>".
    """
    return f"{network}_{role}" if role else network


class ContractRegistry:
    """
    Ordered, deduplicated address buckets keyed by (network, role).

    The whole file is read on every query and rewritten on every mutation.
    A file that cannot be parsed is treated as an empty registry.

    Not safe under concurrent processes: there is no file locking, so two
    operators writing at once can lose each other's updates.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    def _read(self) -> Snapshot:
        """
        Read the snapshot from disk.

        Raises:
            RegistryCorruptError: If the file is not a mapping of string keys
                                  to lists of address strings
        """
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RegistryCorruptError(f"Registry {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RegistryCorruptError(f"Registry {self.path} is not a JSON object")
        for key, addresses in data.items():
            if not isinstance(addresses, list) or not all(isinstance(a, str) for a in addresses):
                raise RegistryCorruptError(
                    f"Registry {self.path} entry '{key}' is not a list of addresses"
                )
        return data

    def load(self) -> Snapshot:
        """
        Load the full snapshot.

        Returns:
            Mapping of registry key -> addresses (latest last).
            Empty dict if the file is missing or corrupted.
        """
        try:
            return self._read()
        except RegistryCorruptError as e:
            logger.warning("%s; continuing with an empty registry", e)
            return {}

    def save(self, snapshot: Snapshot) -> None:
        """
        Replace the persisted snapshot.

        The file is written to a temporary sibling and moved into place, so a
        crash never leaves a partially written registry.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(snapshot, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def addresses(self, network: str, role: Optional[str] = None) -> List[str]:
        """Addresses recorded for a bucket, oldest first; empty if none."""
        return list(self.load().get(registry_key(network, role), []))

    def latest(self, network: str, role: Optional[str] = None) -> Optional[str]:
        """Most recently recorded address of a bucket, or None."""
        addresses = self.addresses(network, role)
        return addresses[-1] if addresses else None

    def append(self, network: str, role: Optional[str], address: str) -> bool:
        """
        Record an address at the end of a bucket.

        Appending an address that is already present is a no-op.

        Returns:
            True if the registry changed
        """
        snapshot = self.load()
        bucket = snapshot.setdefault(registry_key(network, role), [])
        if address in bucket:
            return False
        bucket.append(address)
        self.save(snapshot)
        logger.debug("Recorded %s under %s", address, registry_key(network, role))
        return True

    def remove(self, network: str, role: Optional[str], address: str) -> bool:
        """
        Drop an address from a bucket.

        Removing an address that is not present is a no-op.

        Returns:
            True if the registry changed
        """
        snapshot = self.load()
        key = registry_key(network, role)
        bucket = snapshot.get(key, [])
        if address not in bucket:
            return False
        snapshot[key] = [a for a in bucket if a != address]
        self.save(snapshot)
        logger.debug("Removed %s from %s", address, key)
        return True
