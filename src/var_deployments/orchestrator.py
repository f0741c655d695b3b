"""Owner and Bot deployment flows for the VAR token ecosystem."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from web3.contract import Contract

from .activity import ActivityLog
from .compiler import compile_contract
from .config import Settings
from .constants import (
    ACTIVITY_TAIL_LINES,
    DEFAULT_INITIAL_SUPPLY,
    ROLE_FACTORY,
    ROLE_IMPLEMENTATION,
    ZERO_ADDRESS,
)
from .exceptions import (
    EventNotFoundError,
    FlowStateError,
    NoFactoryError,
    NoProxyError,
    ProxyAddressUnavailableError,
)
from .paths import get_state_paths
from .registry import ContractRegistry
from .resolver import ImportResolver
from .session import Session
from .transactions import TransactionManager, bind_call
from .types import (
    CompiledArtifact,
    ContractSources,
    EcosystemDeployment,
    FactoryDeployment,
    SourceReference,
)
from .units import from_base_units, parse_amount

logger = logging.getLogger(__name__)


class OwnerFlowState(Enum):
    START = "start"
    FACTORY_DEPLOYED = "factory_deployed"
    FACTORY_INITIALIZED = "factory_initialized"
    BOT_ASSIGNED = "bot_assigned"


class BotFlowState(Enum):
    FACTORY_SELECTED = "factory_selected"
    IMPLEMENTATION_DEPLOYED = "implementation_deployed"
    IMPLEMENTATION_LINKED = "implementation_linked"
    PROXY_DEPLOYED = "proxy_deployed"


class Orchestrator:
    """
    Coordinates compilation, transactions and the registry for one operator.

    Holds the active session; switching networks replaces it.
    """

    def __init__(
        self,
        session: Session,
        registry: ContractRegistry,
        activity: ActivityLog,
        sources: Optional[ContractSources] = None,
        compiler: Optional[Callable[[SourceReference], CompiledArtifact]] = None,
        transactions_factory: Callable[[Session], TransactionManager] = TransactionManager.for_session,
        resolver: Optional[ImportResolver] = None,
    ):
        project_root = session.settings.project_root
        self.session = session
        self.registry = registry
        self.activity = activity
        self.sources = sources or ContractSources.for_project(project_root)
        self.resolver = resolver or ImportResolver.for_project(project_root)
        self._compiler = compiler
        self._transactions_factory = transactions_factory
        self._token_abi: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def from_settings(
        cls, network: str, settings: Optional[Settings] = None, probe: bool = True
    ) -> "Orchestrator":
        """Connect to a network and open the registry and activity log of the project."""
        if settings is None:
            settings = Settings.from_env()
        session = Session.connect(network, settings, probe=probe)
        registry_path, log_path = get_state_paths(settings.project_root)
        return cls(session, ContractRegistry(registry_path), ActivityLog(log_path))

    @property
    def network(self) -> str:
        return self.session.network.key

    def switch_network(self, network: str, probe: bool = True) -> Session:
        """Replace the session with one bound to another network."""
        self.session = self.session.switch_network(network, probe=probe)
        logger.info("Switched to %s", self.session.network.name)
        return self.session

    def compile(self, source: SourceReference) -> CompiledArtifact:
        """Compile a source from scratch."""
        if self._compiler is not None:
            return self._compiler(source)
        return compile_contract(
            source, resolver=self.resolver, solc_version=self.session.settings.solc_version
        )

    def transactions(self) -> TransactionManager:
        """Transaction manager for the session (needs a configured wallet)."""
        return self._transactions_factory(self.session)

    def contract(self, address: str, abi: List[Dict[str, Any]]) -> Contract:
        return self.session.web3.eth.contract(address=address, abi=abi)

    def factory_contract(self, address: str) -> Contract:
        return self.contract(address, self.compile(self.sources.factory).abi)

    def token_abi(self) -> List[Dict[str, Any]]:
        """Token ABI, compiled once per orchestrator."""
        if self._token_abi is None:
            self._token_abi = self.compile(self.sources.token).abi
        return self._token_abi

    # Registry

    def latest_factory(self) -> str:
        """
        Most recently recorded factory on the active network.

        Raises:
            NoFactoryError: If the Owner flow never ran on this network
        """
        factory = self.registry.latest(self.network, ROLE_FACTORY)
        if factory is None:
            raise NoFactoryError(
                f"No factory recorded on {self.network}: deploy the factory first"
            )
        return factory

    def proxies(self) -> List[str]:
        return self.registry.addresses(self.network)

    def latest_proxy(self) -> str:
        """
        Most recently recorded token proxy on the active network.

        Raises:
            NoProxyError: If no proxy is recorded
        """
        proxy = self.registry.latest(self.network)
        if proxy is None:
            raise NoProxyError(f"No proxy recorded on {self.network}: deploy or register one first")
        return proxy

    def register_proxy(self, address: str) -> str:
        proxy = self.session.to_address(address)
        if self.registry.append(self.network, None, proxy):
            self.activity.record(f"Registered Proxy: {proxy} ({self.network})")
        return proxy

    def remove_proxy(self, address: str) -> bool:
        proxy = self.session.to_address(address)
        removed = self.registry.remove(self.network, None, proxy)
        if removed:
            self.activity.record(f"Removed Proxy: {proxy} ({self.network})")
        return removed

    def recent_activity(self, limit: int = ACTIVITY_TAIL_LINES) -> List[str]:
        return self.activity.tail(limit)

    # Flows

    def owner_flow(
        self, factory_address: Optional[str] = None, state: OwnerFlowState = OwnerFlowState.START
    ) -> "OwnerFlow":
        """Start the Owner flow, or re-enter it for an existing factory."""
        return OwnerFlow(self, factory_address, state)

    def deploy_factory(
        self,
        bot_address: str,
        factory_address: Optional[str] = None,
        resume_from: Optional[str] = None,
    ) -> FactoryDeployment:
        """
        Run the Owner flow: deploy, initialize, assign the bot.

        Args:
            bot_address: Address allowed to deploy ecosystems through the factory
            factory_address: Existing factory to continue with instead of deploying one
            resume_from: Last completed step for that factory ("factory_deployed"
                         when omitted, or "factory_initialized")

        Raises:
            FlowStateError: If a resume step is given without a factory or is unknown
        """
        if factory_address is None and resume_from is None:
            return self.owner_flow().run(bot_address)
        if factory_address is None:
            raise FlowStateError(f"Resuming at {resume_from} needs a factory address")

        try:
            state = OwnerFlowState(resume_from or OwnerFlowState.FACTORY_DEPLOYED.value)
        except ValueError as e:
            raise FlowStateError(f"Unknown Owner flow step: {resume_from!r}") from e
        if state in (OwnerFlowState.START, OwnerFlowState.BOT_ASSIGNED):
            raise FlowStateError(
                f"Cannot resume at {state.value}: use factory_deployed or factory_initialized"
            )

        factory = self.session.to_address(factory_address)
        self.session.to_address(bot_address)
        flow = self.owner_flow(factory, state)
        self.registry.append(self.network, ROLE_FACTORY, factory)
        logger.info("Resuming Owner flow for %s after %s", factory, state.value)
        return flow.run(bot_address)

    def bot_flow(self) -> "BotFlow":
        """
        Start the Bot flow on the latest factory.

        Raises:
            WalletNotConfiguredError: If no signing key is configured
            NoFactoryError: If no factory is recorded (nothing is submitted)
        """
        self.session.require_account()
        factory = self.latest_factory()
        return BotFlow(self, factory)

    def deploy_ecosystem(
        self, name: str, symbol: str, initial_supply: Optional[str] = None
    ) -> EcosystemDeployment:
        """Run the whole Bot flow: implementation, link, proxy."""
        return self.bot_flow().run(name, symbol, initial_supply)

    # Factory funds

    def wallet_balance(self) -> int:
        account = self.session.require_account()
        return self.transactions().balance(account.address)

    def factory_balance(self) -> int:
        return self.transactions().balance(self.latest_factory())

    def withdraw_factory(self, amount: str, to: Optional[str] = None) -> str:
        """Send native funds held by the latest factory; returns the transaction hash."""
        factory_address = self.latest_factory()
        tx = self.transactions()
        recipient = self.session.to_address(to) if to else tx.account.address
        value = parse_amount(amount)
        factory = self.factory_contract(factory_address)
        receipt = tx.transact(
            bind_call(factory, "sendNative", recipient, value),
            description="Withdraw from factory",
        )
        self.activity.record(
            f"Withdrew {from_base_units(value)} from Factory {factory_address} to {recipient}"
        )
        return self.session.web3.to_hex(receipt["transactionHash"])


class OwnerFlow:
    """
    Owner deployment: START -> FACTORY_DEPLOYED -> FACTORY_INITIALIZED -> BOT_ASSIGNED.

    A failed step leaves `state` at the last completed step. Nothing is
    rolled back; the factory is recorded as soon as its deployment confirms.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        factory_address: Optional[str] = None,
        state: OwnerFlowState = OwnerFlowState.START,
    ):
        if state is not OwnerFlowState.START and factory_address is None:
            raise FlowStateError(f"Resuming at {state.value} needs a factory address")
        self.orchestrator = orchestrator
        self.state = state
        self.factory_address = factory_address
        self.bot_address: Optional[str] = None
        self._tx = orchestrator.transactions()
        self._factory: Optional[Contract] = None

    def _require(self, expected: OwnerFlowState, step: str) -> None:
        if self.state is not expected:
            raise FlowStateError(
                f"Cannot {step} in state '{self.state.value}' (expected '{expected.value}')"
            )

    def _contract(self) -> Contract:
        if self._factory is None:
            self._factory = self.orchestrator.factory_contract(self.factory_address)
        return self._factory

    def deploy_factory(self) -> str:
        self._require(OwnerFlowState.START, "deploy the factory")
        o = self.orchestrator
        artifact = o.compile(o.sources.factory)
        address, _ = self._tx.deploy(artifact, "Deploy factory")

        self.factory_address = address
        self._factory = o.contract(address, artifact.abi)
        self.state = OwnerFlowState.FACTORY_DEPLOYED
        o.registry.append(o.network, ROLE_FACTORY, address)
        o.activity.record(f"Deployed Factory: {address} ({o.network})")
        logger.info("Factory deployed at %s", address)
        return address

    def initialize(self) -> None:
        """Initialize with a zero implementation; the Bot links the real one later."""
        self._require(OwnerFlowState.FACTORY_DEPLOYED, "initialize the factory")
        o = self.orchestrator
        self._tx.transact(
            bind_call(self._contract(), "initialize", ZERO_ADDRESS),
            description="Initialize factory",
        )
        self.state = OwnerFlowState.FACTORY_INITIALIZED
        o.activity.record(f"Initialized Factory: {self.factory_address} ({o.network})")

    def assign_bot(self, bot_address: str) -> str:
        self._require(OwnerFlowState.FACTORY_INITIALIZED, "assign the bot")
        o = self.orchestrator
        bot = o.session.to_address(bot_address)
        self._tx.transact(
            bind_call(self._contract(), "setDeployerBot", bot),
            description="Set deployer bot",
        )
        self.bot_address = bot
        self.state = OwnerFlowState.BOT_ASSIGNED
        o.activity.record(f"Set Bot Address: {bot} on Factory {self.factory_address} ({o.network})")
        return bot

    def run(self, bot_address: str) -> FactoryDeployment:
        """Complete the flow from the current state."""
        # Reject a malformed bot address before anything is submitted
        self.orchestrator.session.to_address(bot_address)

        if self.state is OwnerFlowState.START:
            self.deploy_factory()
        if self.state is OwnerFlowState.FACTORY_DEPLOYED:
            self.initialize()
        if self.state is OwnerFlowState.FACTORY_INITIALIZED:
            self.assign_bot(bot_address)

        session = self.orchestrator.session
        return FactoryDeployment(
            network=session.network.key,
            factory=self.factory_address,
            bot=self.bot_address or session.to_address(bot_address),
            url=session.explorer_url(self.factory_address),
        )


class BotFlow:
    """
    Bot deployment: FACTORY_SELECTED -> IMPLEMENTATION_DEPLOYED
    -> IMPLEMENTATION_LINKED -> PROXY_DEPLOYED.

    A fresh implementation is deployed every time. It is recorded as soon as
    its deployment confirms, independently of what happens to the proxy.
    """

    def __init__(self, orchestrator: Orchestrator, factory_address: str):
        self.orchestrator = orchestrator
        self.factory_address = factory_address
        self.state = BotFlowState.FACTORY_SELECTED
        self.implementation: Optional[str] = None
        self.proxy: Optional[str] = None
        self.tx_hash: Optional[str] = None
        self._tx = orchestrator.transactions()
        self._factory: Optional[Contract] = None

    def _require(self, expected: BotFlowState, step: str) -> None:
        if self.state is not expected:
            raise FlowStateError(
                f"Cannot {step} in state '{self.state.value}' (expected '{expected.value}')"
            )

    def _contract(self) -> Contract:
        if self._factory is None:
            self._factory = self.orchestrator.factory_contract(self.factory_address)
        return self._factory

    def deploy_implementation(self) -> str:
        self._require(BotFlowState.FACTORY_SELECTED, "deploy the implementation")
        o = self.orchestrator
        artifact = o.compile(o.sources.token)
        address, _ = self._tx.deploy(artifact, "Deploy implementation")

        self.implementation = address
        self.state = BotFlowState.IMPLEMENTATION_DEPLOYED
        o.registry.append(o.network, ROLE_IMPLEMENTATION, address)
        o.activity.record(f"Bot deployed Implementation: {address} ({o.network})")
        return address

    def link_implementation(self) -> None:
        self._require(BotFlowState.IMPLEMENTATION_DEPLOYED, "link the implementation")
        o = self.orchestrator
        self._tx.transact(
            bind_call(self._contract(), "setImplementation", self.implementation),
            description="Set implementation",
        )
        self.state = BotFlowState.IMPLEMENTATION_LINKED
        o.activity.record(
            f"Linked Implementation {self.implementation} into Factory {self.factory_address}"
        )

    def deploy_proxy(self, name: str, symbol: str, initial_supply: Optional[str] = None) -> str:
        """
        Deploy the token proxy through the factory.

        Raises:
            ProxyAddressUnavailableError: If the transaction confirmed but its
                                          receipt has no Deployed event
        """
        self._require(BotFlowState.IMPLEMENTATION_LINKED, "deploy the proxy")
        o = self.orchestrator
        supply = parse_amount(initial_supply or DEFAULT_INITIAL_SUPPLY)
        factory = self._contract()

        receipt = self._tx.transact(
            bind_call(factory, "botDeployEcosystem", name, symbol, supply),
            description="Deploy ecosystem",
        )
        tx_hash = o.session.web3.to_hex(receipt["transactionHash"])
        self.tx_hash = tx_hash

        try:
            event = self._tx.extract_event(receipt, factory, "Deployed")
            proxy = event.args["proxy"]
        except (EventNotFoundError, KeyError) as e:
            o.activity.record(
                f"Ecosystem {name} ({symbol}) deployed in {tx_hash} but proxy address is unknown"
            )
            raise ProxyAddressUnavailableError(
                f"Proxy deployed on-chain in {tx_hash} but its address is undiscoverable: "
                "no Deployed event in the receipt",
                tx_hash=tx_hash,
                implementation=self.implementation,
            ) from e

        self.proxy = o.session.to_address(proxy)
        self.state = BotFlowState.PROXY_DEPLOYED
        o.registry.append(o.network, None, self.proxy)
        o.activity.record(
            f"Bot deployed VAR: {self.implementation} and Proxy: {self.proxy} "
            f"for {name} ({symbol})"
        )
        return self.proxy

    def run(self, name: str, symbol: str, initial_supply: Optional[str] = None) -> EcosystemDeployment:
        """Complete the flow from the current state."""
        # Reject a malformed supply before anything is submitted
        supply = parse_amount(initial_supply or DEFAULT_INITIAL_SUPPLY)

        if self.state is BotFlowState.FACTORY_SELECTED:
            self.deploy_implementation()
        if self.state is BotFlowState.IMPLEMENTATION_DEPLOYED:
            self.link_implementation()
        if self.state is BotFlowState.IMPLEMENTATION_LINKED:
            self.deploy_proxy(name, symbol, initial_supply)

        return EcosystemDeployment(
            network=self.orchestrator.network,
            factory=self.factory_address,
            implementation=self.implementation,
            proxy=self.proxy,
            name=name,
            symbol=symbol,
            initial_supply=supply,
            tx_hash=self.tx_hash,
        )
