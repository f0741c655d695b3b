"""
var-deployments: compile, deploy and operate the VAR upgradeable token ecosystem
"""

from importlib.metadata import PackageNotFoundError, version

from .activity import ActivityLog
from .compiler import compile_contract
from .config import Settings
from .exceptions import (
    CallArgumentError,
    ChainCallError,
    CompilationError,
    DeploymentError,
    EventNotFoundError,
    FlowStateError,
    ImportNotFoundError,
    InvalidAddressError,
    InvalidAmountError,
    NetworkNotFoundError,
    NoFactoryError,
    NoProxyError,
    ProxyAddressUnavailableError,
    RegistryCorruptError,
    RpcUnavailableError,
    TransactionError,
    WalletNotConfiguredError,
)
from .orchestrator import BotFlow, BotFlowState, Orchestrator, OwnerFlow, OwnerFlowState
from .registry import ContractRegistry
from .resolver import ImportResolver
from .session import NetworkProfile, Session
from .transactions import TransactionManager, extract_event
from .types import CompiledArtifact, EcosystemDeployment, FactoryDeployment, ParsedEvent, SourceReference
from .units import from_base_units, to_base_units

try:
    __version__ = version("var-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "ActivityLog",
    "BotFlow",
    "BotFlowState",
    "CompiledArtifact",
    "ContractRegistry",
    "EcosystemDeployment",
    "FactoryDeployment",
    "ImportResolver",
    "NetworkProfile",
    "Orchestrator",
    "OwnerFlow",
    "OwnerFlowState",
    "ParsedEvent",
    "Session",
    "Settings",
    "SourceReference",
    "TransactionManager",
    "compile_contract",
    "extract_event",
    "from_base_units",
    "to_base_units",
    "DeploymentError",
    "ImportNotFoundError",
    "CompilationError",
    "TransactionError",
    "EventNotFoundError",
    "ProxyAddressUnavailableError",
    "InvalidAddressError",
    "InvalidAmountError",
    "CallArgumentError",
    "NoFactoryError",
    "NoProxyError",
    "RegistryCorruptError",
    "WalletNotConfiguredError",
    "NetworkNotFoundError",
    "RpcUnavailableError",
    "ChainCallError",
    "FlowStateError",
]
