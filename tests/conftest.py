"""Shared pytest fixtures for var-deployments tests."""

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3
from web3.datastructures import AttributeDict

from var_deployments.activity import ActivityLog
from var_deployments.config import Settings
from var_deployments.orchestrator import Orchestrator
from var_deployments.registry import ContractRegistry
from var_deployments.session import NetworkProfile, Session
from var_deployments.transactions import extract_event
from var_deployments.types import CompiledArtifact, ContractSources, SourceReference

TEST_PRIVATE_KEY = "0x" + "11" * 32


def make_address(n: int) -> str:
    """Deterministic checksummed address for test number `n`."""
    return Web3.to_checksum_address(f"0x{n:040x}")


def _fn(name: str, inputs: List[Tuple[str, str]], outputs=(), mutability="nonpayable") -> Dict:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t, "internalType": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t, "internalType": t} for t in outputs],
        "stateMutability": mutability,
    }


FACTORY_ABI = [
    _fn("initialize", [("implementation", "address")]),
    _fn("setDeployerBot", [("bot", "address")]),
    _fn("setImplementation", [("implementation", "address")]),
    _fn(
        "botDeployEcosystem",
        [("name", "string"), ("symbol", "string"), ("initialSupply", "uint256")],
        outputs=["address"],
    ),
    _fn("owner", [], outputs=["address"], mutability="view"),
    _fn("sendNative", [("to", "address"), ("amount", "uint256")]),
    {
        "type": "event",
        "name": "Deployed",
        "anonymous": False,
        "inputs": [
            {"name": "proxy", "type": "address", "indexed": False, "internalType": "address"},
            {"name": "implementation", "type": "address", "indexed": False, "internalType": "address"},
        ],
    },
]

TOKEN_ABI = [
    _fn("add", [("to", "address"), ("amount", "uint256")]),
    _fn("transfer", [("to", "address"), ("amount", "uint256")], outputs=["bool"]),
    _fn(
        "transfer",
        [("from", "address"), ("to", "address"), ("amount", "uint256")],
        outputs=["bool"],
    ),
    _fn("remove", [("amount", "uint256")]),
    _fn("totalSupply", [], outputs=["uint256"], mutability="view"),
    _fn("balanceOf", [("account", "address")], outputs=["uint256"], mutability="view"),
    _fn("taxBps", [], outputs=["uint256"], mutability="view"),
    _fn("setTaxConfig", [("collector", "address"), ("bps", "uint256")]),
    _fn("withdrawNative", [("to", "address"), ("amount", "uint256")]),
    _fn("authority", [], outputs=["address"], mutability="view"),
    _fn("owner", [], outputs=["address"], mutability="view"),
    _fn("upgradeToAndCall", [("newImplementation", "address"), ("data", "bytes")], mutability="payable"),
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True, "internalType": "address"},
            {"name": "to", "type": "address", "indexed": True, "internalType": "address"},
            {"name": "value", "type": "uint256", "indexed": False, "internalType": "uint256"},
        ],
    },
]

TX_HASH = HexBytes("0x" + "ab" * 32)


def _topic(signature: str) -> HexBytes:
    return HexBytes(keccak(text=signature))


def _address_topic(address: str) -> HexBytes:
    return HexBytes(b"\x00" * 12 + HexBytes(address))


def build_log(
    address: str,
    topics: List[HexBytes],
    data: bytes,
    log_index: int = 0,
    tx_hash: HexBytes = TX_HASH,
) -> AttributeDict:
    return AttributeDict(
        {
            "address": address,
            "blockHash": HexBytes("0x" + "cd" * 32),
            "blockNumber": 100,
            "data": HexBytes(data),
            "logIndex": log_index,
            "topics": topics,
            "transactionHash": tx_hash,
            "transactionIndex": 0,
        }
    )


def deployed_log(factory: str, proxy: str, implementation: str, log_index: int = 0) -> AttributeDict:
    """Receipt log of the factory's Deployed(proxy, implementation) event."""
    return build_log(
        factory,
        [_topic("Deployed(address,address)")],
        encode(["address", "address"], [proxy, implementation]),
        log_index,
    )


def transfer_log(token: str, sender: str, to: str, value: int, log_index: int = 0) -> AttributeDict:
    """Receipt log of an ERC-20 Transfer event."""
    return build_log(
        token,
        [_topic("Transfer(address,address,uint256)"), _address_topic(sender), _address_topic(to)],
        encode(["uint256"], [value]),
        log_index,
    )


def build_receipt(logs=(), status: int = 1, contract_address: Optional[str] = None) -> AttributeDict:
    return AttributeDict(
        {
            "transactionHash": TX_HASH,
            "blockNumber": 100,
            "status": status,
            "contractAddress": contract_address,
            "logs": list(logs),
        }
    )


class FakeTransactionManager:
    """
    Stand-in for TransactionManager that never touches a node.

    Records every submitted call as (function name, args, description) and
    hands out deterministic contract addresses for deployments.
    """

    def __init__(self, account, addresses=None):
        self.account = account
        self.submitted: List[Tuple[str, tuple, str]] = []
        self.deployed: List[Tuple[str, str]] = []
        self.receipts: Dict[str, AttributeDict] = {}
        self.failures: Dict[str, Exception] = {}
        self.call_results: Dict[str, Any] = {}
        self.balances: Dict[str, int] = {}
        self.codes: Dict[str, bytes] = {}
        self._addresses = iter(addresses) if addresses else (make_address(n) for n in itertools.count(0x1000))

    def deploy(self, artifact: CompiledArtifact, description: str = ""):
        key = f"deploy:{artifact.contract_name}"
        if key in self.failures:
            raise self.failures[key]
        address = next(self._addresses)
        self.deployed.append((artifact.contract_name, address))
        return address, build_receipt(contract_address=address)

    def transact(self, call: Any, value: int = 0, description: str = ""):
        if call.fn_name in self.failures:
            raise self.failures[call.fn_name]
        self.submitted.append((call.fn_name, tuple(call.args), description))
        return self.receipts.get(call.fn_name, build_receipt())

    def extract_event(self, receipt, contract, event_name):
        return extract_event(receipt, contract, event_name)

    def call(self, fn: Any, description: str = ""):
        result = self.call_results[fn.fn_name]
        return result(*fn.args) if callable(result) else result

    def balance(self, address: str) -> int:
        return self.balances.get(address, 0)

    def code(self, address: str) -> bytes:
        return self.codes.get(address, b"")

    def submitted_names(self) -> List[str]:
        return [name for name, _, _ in self.submitted]


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a project directory with the contract source tree."""
    source_root = tmp_path / "VAR (implementation)" / "src"
    source_root.mkdir(parents=True)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> Settings:
    """Settings with a signing key and no configured RPC URLs."""
    return Settings(private_key=TEST_PRIVATE_KEY, project_root=project_root)


@pytest.fixture
def session(settings: Settings) -> Session:
    """Offline sepolia session with a signer."""
    return Session(
        network=NetworkProfile.from_config("sepolia"),
        web3=Web3(),
        account=Account.from_key(TEST_PRIVATE_KEY),
        settings=settings,
    )


@pytest.fixture
def readonly_session(project_root: Path) -> Session:
    """Offline sepolia session without a signer."""
    return Session(
        network=NetworkProfile.from_config("sepolia"),
        web3=Web3(),
        account=None,
        settings=Settings(project_root=project_root),
    )


@pytest.fixture
def registry(project_root: Path) -> ContractRegistry:
    return ContractRegistry(project_root / "deployed_contracts.json")


@pytest.fixture
def activity(project_root: Path):
    log = ActivityLog(project_root / "var_manager.log")
    yield log
    log.close()


@pytest.fixture
def fake_compiler() -> Callable[[SourceReference], CompiledArtifact]:
    """Compiler returning canned artifacts for the factory and token contracts."""
    abis = {"VARDeployer": FACTORY_ABI, "VAR": TOKEN_ABI}

    def compile_source(source: SourceReference) -> CompiledArtifact:
        return CompiledArtifact(source.contract_name, abis[source.contract_name], "0x6080")

    return compile_source


@pytest.fixture
def fake_tx(session: Session) -> FakeTransactionManager:
    return FakeTransactionManager(session.account)


@pytest.fixture
def make_orchestrator(
    registry: ContractRegistry,
    activity: ActivityLog,
    fake_compiler,
    fake_tx: FakeTransactionManager,
    project_root: Path,
):
    """Build an orchestrator over a session with the fake compiler and transactions."""

    def build(session: Session) -> Orchestrator:
        def transactions(s: Session) -> FakeTransactionManager:
            s.require_account()
            return fake_tx

        return Orchestrator(
            session,
            registry,
            activity,
            sources=ContractSources.for_project(project_root),
            compiler=fake_compiler,
            transactions_factory=transactions,
        )

    return build


@pytest.fixture
def orchestrator(make_orchestrator, session: Session) -> Orchestrator:
    return make_orchestrator(session)


@pytest.fixture
def private_key() -> str:
    """Signing key of the test wallet."""
    return TEST_PRIVATE_KEY


@pytest.fixture
def factory_abi() -> List[Dict]:
    return FACTORY_ABI


@pytest.fixture
def token_abi() -> List[Dict]:
    return TOKEN_ABI


@pytest.fixture
def make_receipt():
    """Build a receipt: make_receipt(logs=(), status=1, contract_address=None)."""
    return build_receipt


@pytest.fixture
def make_deployed_log():
    """Build a Deployed log: make_deployed_log(factory, proxy, implementation, log_index=0)."""
    return deployed_log


@pytest.fixture
def make_transfer_log():
    """Build a Transfer log: make_transfer_log(token, sender, to, value, log_index=0)."""
    return transfer_log
