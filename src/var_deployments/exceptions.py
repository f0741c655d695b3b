"""Custom exception classes for var-deployments library."""

from typing import Any, Optional, Sequence


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ImportNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when an import identifier cannot be mapped to a source file."""

    def __init__(self, import_path: str, attempted: Sequence[str] = ()):
        self.import_path = import_path
        self.attempted = list(attempted)
        if self.attempted:
            message = f"File not found: {self.attempted[0]}"
        else:
            message = f"File not found: {import_path}"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class CompilationError(DeploymentError):
    """Raised when the compiler reports one or more error-severity diagnostics."""

    def __init__(self, message: str, diagnostics: Sequence[Any] = ()):
        super().__init__(message)
        self.diagnostics = list(diagnostics)


class TransactionError(DeploymentError):
    """Raised when a transaction fails to submit or to confirm successfully."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        data: Any = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.data = data
        self.tx_hash = tx_hash


class EventNotFoundError(DeploymentError, LookupError):
    """Raised when a receipt contains no log decoding to the requested event."""

    pass


class ProxyAddressUnavailableError(EventNotFoundError):
    """Raised when an ecosystem deployment confirmed but its proxy address is unknown."""

    def __init__(self, message: str, tx_hash: Optional[str] = None, implementation: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.implementation = implementation


class InvalidAddressError(DeploymentError, ValueError):
    """Raised when an input is not a well-formed chain address."""

    pass


class InvalidAmountError(DeploymentError, ValueError):
    """Raised when a decimal amount cannot be represented in base units."""

    pass


class CallArgumentError(DeploymentError, ValueError):
    """Raised when arguments do not fit a contract function's ABI."""

    pass


class NoFactoryError(DeploymentError, LookupError):
    """Raised when no factory is recorded for the active network."""

    pass


class NoProxyError(DeploymentError, LookupError):
    """Raised when no proxy is recorded or selected for the active network."""

    pass


class RegistryCorruptError(DeploymentError, ValueError):
    """Raised when the registry snapshot cannot be parsed."""

    pass


class WalletNotConfiguredError(DeploymentError):
    """Raised when a write-capable operation runs without a signing key."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when requested network is not configured."""

    pass


class RpcUnavailableError(DeploymentError, ConnectionError):
    """Raised when an RPC endpoint does not answer a probe."""

    pass


class ChainCallError(DeploymentError):
    """Raised when a read-only contract call or chain query fails."""

    pass


class FlowStateError(DeploymentError, RuntimeError):
    """Raised when a deployment step is invoked out of order."""

    pass
