"""Network session: profile, provider and signer bound together."""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .config import Settings
from .constants import NETWORK_CONFIG
from .exceptions import InvalidAddressError, NetworkNotFoundError, WalletNotConfiguredError
from .rpc import select_rpc_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkProfile:
    """Static description of a supported network."""

    key: str
    name: str
    rpc_url: Optional[str]
    fallback_rpc_url: str
    chain_id: int
    explorer_url: str

    @classmethod
    def from_config(cls, network: str, rpc_url: Optional[str] = None) -> "NetworkProfile":
        """
        Build a profile from NETWORK_CONFIG.

        Raises:
            NetworkNotFoundError: If the network key is unknown
        """
        if network not in NETWORK_CONFIG:
            raise NetworkNotFoundError(
                f"Network '{network}' is not configured "
                f"(choose from {', '.join(NETWORK_CONFIG)})"
            )
        config = NETWORK_CONFIG[network]
        return cls(
            key=network,
            name=config["chain_name"],
            rpc_url=rpc_url,
            fallback_rpc_url=config["fallback_rpc_url"],
            chain_id=config["chain_id"],
            explorer_url=config["block_explorer_url"],
        )


def to_address(web3: Web3, value: str) -> str:
    """
    Validate and checksum an address.

    Raises:
        InvalidAddressError: If the value is not a well-formed address
    """
    value = (value or "").strip()
    if not web3.is_address(value):
        raise InvalidAddressError(f"Invalid address: {value!r}")
    return web3.to_checksum_address(value)


@dataclass(frozen=True)
class Session:
    """
    The active network together with its provider and optional signer.

    Sessions are immutable; switching networks builds a new one.
    """

    network: NetworkProfile
    web3: Web3
    account: Optional[LocalAccount]
    settings: Settings

    @classmethod
    def connect(
        cls, network: str, settings: Optional[Settings] = None, probe: bool = True
    ) -> "Session":
        """
        Open a session on a network.

        Args:
            network: Network key from NETWORK_CONFIG
            settings: Settings (defaults to the environment)
            probe: Check the primary RPC endpoint before using it
        """
        if settings is None:
            settings = Settings.from_env()

        profile = NetworkProfile.from_config(network, settings.rpc_urls.get(network))
        rpc_url = select_rpc_url(
            profile.rpc_url, profile.fallback_rpc_url, profile.chain_id, probe=probe
        )
        web3 = Web3(Web3.HTTPProvider(rpc_url))
        account = Account.from_key(settings.private_key) if settings.private_key else None

        logger.info(
            "Connected to %s via %s (wallet: %s)",
            profile.name,
            rpc_url,
            account.address if account else "not set",
        )
        return cls(network=profile, web3=web3, account=account, settings=settings)

    def switch_network(self, network: str, probe: bool = True) -> "Session":
        """Return a new session on another network with the same settings."""
        return type(self).connect(network, self.settings, probe=probe)

    def require_account(self) -> LocalAccount:
        """
        Signer for write operations.

        Raises:
            WalletNotConfiguredError: If no signing key was supplied
        """
        if self.account is None:
            raise WalletNotConfiguredError(
                "Wallet not configured: set PRIVATE_KEY to use write operations"
            )
        return self.account

    def to_address(self, value: str) -> str:
        return to_address(self.web3, value)

    def explorer_url(self, address: str) -> str:
        return f"{self.network.explorer_url.rstrip('/')}/address/{address}"
