"""Environment-driven settings for var-deployments library."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from .constants import CONFIRMATION_TIMEOUT, DEFAULT_SOLC_VERSION, NETWORK_CONFIG
from .paths import get_default_project_root


@dataclass(frozen=True)
class Settings:
    """Secrets and endpoints supplied from outside the program."""

    private_key: Optional[str] = field(default=None, repr=False)
    rpc_urls: Dict[str, str] = field(default_factory=dict)
    project_root: Path = field(default_factory=get_default_project_root)
    solc_version: str = DEFAULT_SOLC_VERSION
    confirmation_timeout: int = CONFIRMATION_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from environment variables.

        Variables:
            PRIVATE_KEY: signing key (optional; write operations need it)
            SEPOLIA_RPC_URL, BSC_TESTNET_RPC_URL, BSC_MAINNET_RPC_URL: primary RPC URLs
            VAR_PROJECT_ROOT: directory with contract sources and state files
            VAR_SOLC_VERSION: compiler release
            VAR_CONFIRMATION_TIMEOUT: seconds to wait for a receipt
        """
        if environ is None:
            environ = os.environ

        rpc_urls = {
            network: environ[config["rpc_env"]]
            for network, config in NETWORK_CONFIG.items()
            if environ.get(config["rpc_env"])
        }
        project_root = environ.get("VAR_PROJECT_ROOT")

        return cls(
            private_key=environ.get("PRIVATE_KEY") or None,
            rpc_urls=rpc_urls,
            project_root=Path(project_root).absolute() if project_root else get_default_project_root(),
            solc_version=environ.get("VAR_SOLC_VERSION") or DEFAULT_SOLC_VERSION,
            confirmation_timeout=int(environ.get("VAR_CONFIRMATION_TIMEOUT") or CONFIRMATION_TIMEOUT),
        )
