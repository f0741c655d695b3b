"""Data types and dataclasses for var-deployments library."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .paths import get_source_root


@dataclass(frozen=True)
class SourceReference:
    """A contract source file plus the contract to extract from it."""

    path: Path
    contract_name: str

    @property
    def unit_name(self) -> str:
        """Source unit key used in compiler input and output."""
        return self.path.name


@dataclass(frozen=True)
class Diagnostic:
    """A single compiler message."""

    severity: str  # "error", "warning" or "info"
    message: str
    formatted_message: str

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


@dataclass
class CompiledArtifact:
    """ABI and creation bytecode for exactly one contract."""

    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str  # 0x-prefixed hex
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def member_names(self) -> List[str]:
        return [item["name"] for item in self.abi if "name" in item]


@dataclass(frozen=True)
class TransactionHandle:
    """A submitted, not yet confirmed transaction."""

    tx_hash: str
    description: str = ""


@dataclass
class ParsedEvent:
    """An event decoded from a receipt log."""

    name: str
    args: Dict[str, Any]
    address: Optional[str] = None
    log_index: Optional[int] = None


@dataclass
class FactoryDeployment:
    """Outcome of the Owner flow."""

    network: str
    factory: str
    bot: str
    url: str


@dataclass
class EcosystemDeployment:
    """Outcome of the Bot flow."""

    network: str
    factory: str
    implementation: str
    proxy: str
    name: str
    symbol: str
    initial_supply: int  # base units
    tx_hash: Optional[str] = None


@dataclass(frozen=True)
class ContractSources:
    """Where the factory and token contracts are compiled from."""

    factory: SourceReference
    token: SourceReference

    @classmethod
    def for_project(cls, project_root: Optional[Path] = None) -> "ContractSources":
        source_root = get_source_root(project_root)
        return cls(
            factory=SourceReference(source_root / "VARDeployer.sol", "VARDeployer"),
            token=SourceReference(source_root / "VAR.sol", "VAR"),
        )
