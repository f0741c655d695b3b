"""Operator commands and their dispatch."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .constants import ACTIVITY_TAIL_LINES
from .exceptions import DeploymentError, ProxyAddressUnavailableError, TransactionError
from .interaction import ProxyInteraction
from .orchestrator import Orchestrator
from .units import from_base_units

logger = logging.getLogger(__name__)


# Deployment and session commands


@dataclass(frozen=True)
class DeployFactory:
    bot_address: str
    # Continue an interrupted run for an existing factory
    factory: Optional[str] = None
    resume_from: Optional[str] = None


@dataclass(frozen=True)
class DeployEcosystem:
    name: str
    symbol: str
    initial_supply: Optional[str] = None


@dataclass(frozen=True)
class CheckBalance:
    pass


@dataclass(frozen=True)
class ViewActivity:
    limit: int = ACTIVITY_TAIL_LINES


@dataclass(frozen=True)
class SwitchNetwork:
    network: str


@dataclass(frozen=True)
class ListProxies:
    pass


@dataclass(frozen=True)
class RegisterProxy:
    address: str


@dataclass(frozen=True)
class RemoveProxy:
    address: str


@dataclass(frozen=True)
class FactoryBalance:
    pass


@dataclass(frozen=True)
class WithdrawFactory:
    amount: str
    to: Optional[str] = None


# Interaction commands; each targets one proxy


@dataclass(frozen=True)
class InteractionCommand:
    proxy: Optional[str]  # None targets the latest recorded proxy


@dataclass(frozen=True)
class Mint(InteractionCommand):
    to: str
    amount: str


@dataclass(frozen=True)
class Transfer(InteractionCommand):
    to: str
    amount: str


@dataclass(frozen=True)
class AdminTransfer(InteractionCommand):
    sender: str
    to: str
    amount: str


@dataclass(frozen=True)
class Burn(InteractionCommand):
    amount: str


@dataclass(frozen=True)
class TotalSupply(InteractionCommand):
    pass


@dataclass(frozen=True)
class BalanceOf(InteractionCommand):
    address: str


@dataclass(frozen=True)
class TaxConfig(InteractionCommand):
    pass


@dataclass(frozen=True)
class SetTaxBurn(InteractionCommand):
    bps: int


@dataclass(frozen=True)
class ProxyNativeBalance(InteractionCommand):
    pass


@dataclass(frozen=True)
class WithdrawNative(InteractionCommand):
    amount: str
    to: Optional[str] = None


@dataclass(frozen=True)
class AccessCheck(InteractionCommand):
    pass


@dataclass(frozen=True)
class Upgrade(InteractionCommand):
    pass


Command = Union[
    DeployFactory,
    DeployEcosystem,
    CheckBalance,
    ViewActivity,
    SwitchNetwork,
    ListProxies,
    RegisterProxy,
    RemoveProxy,
    FactoryBalance,
    WithdrawFactory,
    InteractionCommand,
]


@dataclass
class CommandResult:
    """What a command did, ready for display."""

    ok: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


def _done(message: str, **data: Any) -> CommandResult:
    return CommandResult(ok=True, message=message, data=data)


def _interact(orchestrator: Orchestrator, command: InteractionCommand) -> CommandResult:
    proxy = ProxyInteraction(orchestrator, command.proxy)

    match command:
        case Mint(to=to, amount=amount):
            return _done("Tokens added successfully!", tx_hash=proxy.mint(to, amount))
        case Transfer(to=to, amount=amount):
            return _done("Transfer successful!", tx_hash=proxy.transfer(to, amount))
        case AdminTransfer(sender=sender, to=to, amount=amount):
            return _done(
                "Admin Transfer successful!", tx_hash=proxy.admin_transfer(sender, to, amount)
            )
        case Burn(amount=amount):
            return _done("Tokens removed successfully!", tx_hash=proxy.burn(amount))
        case TotalSupply():
            supply = proxy.total_supply()
            return _done(f"Total Supply: {from_base_units(supply)}", total_supply=supply)
        case BalanceOf(address=address):
            balance = proxy.balance_of(address)
            return _done(f"Balance: {from_base_units(balance)}", balance=balance)
        case TaxConfig():
            bps = proxy.tax_bps()
            return _done(f"Current Tax Burn: {bps} BPS ({bps / 100}%)", tax_bps=bps)
        case SetTaxBurn(bps=bps):
            return _done("Tax burn configuration updated!", tx_hash=proxy.set_tax_burn(bps))
        case ProxyNativeBalance():
            balance = proxy.native_balance()
            return _done(f"Proxy Native Balance: {from_base_units(balance)}", balance=balance)
        case WithdrawNative(amount=amount, to=to):
            return _done("Withdrawal successful!", tx_hash=proxy.withdraw_native(amount, to))
        case AccessCheck():
            report = proxy.access_report()
            lines = [
                f"Authority (Factory): {report.authority}",
                f"Token Owner:         {report.token_owner}",
                f"Factory Owner:       {report.factory_owner}",
                f"Your Address:        {report.signer}",
                f"Is Admin?            {'Yes' if report.is_admin else 'No'}",
            ]
            if report.has_code:
                lines.append("Verification: contract code present at proxy address.")
            return _done("\n".join(lines), **vars(report))
        case Upgrade():
            implementation = proxy.upgrade()
            return _done(
                f"Contract upgraded successfully! New Implementation at: {implementation}",
                implementation=implementation,
            )
        case _:
            raise TypeError(f"Unknown interaction command: {command!r}")


def dispatch(orchestrator: Orchestrator, command: Command) -> CommandResult:
    """
    Execute one command.

    Raises:
        DeploymentError: Any failure of the command (see run_command)
    """
    match command:
        case DeployFactory(bot_address=bot_address, factory=factory, resume_from=resume_from):
            deployment = orchestrator.deploy_factory(bot_address, factory, resume_from)
            return _done(
                f"Deployer Factory at: {deployment.factory}; Bot Address set to: {deployment.bot}. "
                "Next step: the Bot deploys the implementation and token proxy.",
                factory=deployment.factory,
                bot=deployment.bot,
                url=deployment.url,
            )
        case DeployEcosystem(name=name, symbol=symbol, initial_supply=initial_supply):
            deployment = orchestrator.deploy_ecosystem(name, symbol, initial_supply)
            return _done(
                f"Ecosystem Deployed by Bot! Implementation: {deployment.implementation}; "
                f"Token Proxy: {deployment.proxy}",
                implementation=deployment.implementation,
                proxy=deployment.proxy,
                tx_hash=deployment.tx_hash,
            )
        case CheckBalance():
            balance = orchestrator.wallet_balance()
            address = orchestrator.session.require_account().address
            return _done(
                f"Wallet: {address}\nBalance: {from_base_units(balance)}",
                address=address,
                balance=balance,
            )
        case ViewActivity(limit=limit):
            lines = orchestrator.recent_activity(limit)
            if not lines:
                return _done("No activity logs found.", lines=[])
            return _done("\n".join(lines), lines=lines)
        case SwitchNetwork(network=network):
            session = orchestrator.switch_network(network)
            return _done(f"Switched to {session.network.name}", network=network)
        case ListProxies():
            proxies = orchestrator.proxies()
            message = "\n".join(proxies) if proxies else f"No proxies recorded on {orchestrator.network}."
            return _done(message, proxies=proxies)
        case RegisterProxy(address=address):
            proxy = orchestrator.register_proxy(address)
            return _done(f"Proxy {proxy} registered.", proxy=proxy)
        case RemoveProxy(address=address):
            removed = orchestrator.remove_proxy(address)
            message = "Address removed." if removed else "Address was not registered."
            return _done(message, removed=removed)
        case FactoryBalance():
            balance = orchestrator.factory_balance()
            return _done(f"Factory Balance: {from_base_units(balance)}", balance=balance)
        case WithdrawFactory(amount=amount, to=to):
            return _done("Withdrawal successful!", tx_hash=orchestrator.withdraw_factory(amount, to))
        case InteractionCommand():
            return _interact(orchestrator, command)
        case _:
            raise TypeError(f"Unknown command: {command!r}")


def describe_error(error: DeploymentError) -> str:
    """Human-readable failure text, including revert data where present."""
    if isinstance(error, ProxyAddressUnavailableError):
        return f"Inconsistent state: {error}"
    message = str(error)
    if isinstance(error, TransactionError) and error.data:
        message += f"\nData: {error.data}"
    return message


def run_command(orchestrator: Orchestrator, command: Command) -> CommandResult:
    """
    Execute one command, reporting failures instead of raising them.

    Failed interaction commands are also written to the activity log.
    """
    try:
        return dispatch(orchestrator, command)
    except DeploymentError as e:
        logger.debug("Command %r failed", command, exc_info=True)
        if isinstance(command, InteractionCommand):
            orchestrator.activity.record(f"Error on {command.proxy or 'latest proxy'}: {e}")
        return CommandResult(
            ok=False, message=describe_error(e), data={"error": type(e).__name__}
        )
