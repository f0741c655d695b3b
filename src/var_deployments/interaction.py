"""Single-shot admin and token calls against a deployed proxy."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .constants import ROLE_IMPLEMENTATION, ZERO_ADDRESS
from .orchestrator import Orchestrator
from .transactions import bind_call
from .units import from_base_units, parse_amount, parse_bps

logger = logging.getLogger(__name__)


@dataclass
class AccessReport:
    """Who controls a proxy, as seen from the active wallet."""

    authority: str
    token_owner: str
    factory_owner: str
    signer: str
    is_admin: bool
    has_code: bool


class ProxyInteraction:
    """
    Calls against one token proxy using the token ABI.

    Every call is independent. Write calls wait for confirmation, so an
    upgrade has taken effect before the next call is made.
    """

    def __init__(self, orchestrator: Orchestrator, proxy: Optional[str] = None):
        self.orchestrator = orchestrator
        self.proxy = orchestrator.session.to_address(proxy or orchestrator.latest_proxy())
        self.contract = orchestrator.contract(self.proxy, orchestrator.token_abi())
        self._tx = orchestrator.transactions()

    @property
    def signer(self) -> str:
        return self._tx.account.address

    def _address(self, value: str) -> str:
        return self.orchestrator.session.to_address(value)

    def _send(self, fn: Any, description: str, activity: str) -> str:
        receipt = self._tx.transact(fn, description=description)
        self.orchestrator.activity.record(activity)
        return self.orchestrator.session.web3.to_hex(receipt["transactionHash"])

    # Token supply

    def mint(self, to: str, amount: str) -> str:
        recipient = self._address(to)
        value = parse_amount(amount)
        return self._send(
            bind_call(self.contract, "add", recipient, value),
            "Mint",
            f"Minted {from_base_units(value)} for {self.proxy} to {recipient}",
        )

    def transfer(self, to: str, amount: str) -> str:
        recipient = self._address(to)
        value = parse_amount(amount)
        return self._send(
            bind_call(self.contract, "transfer", recipient, value),
            "Transfer",
            f"Transferred {from_base_units(value)} from {self.proxy} to {recipient}",
        )

    def admin_transfer(self, sender: str, to: str, amount: str) -> str:
        """Move tokens between arbitrary holders (rescue overload of transfer)."""
        source = self._address(sender)
        recipient = self._address(to)
        value = parse_amount(amount)
        return self._send(
            bind_call(self.contract, "transfer(address,address,uint256)", source, recipient, value),
            "Admin transfer",
            f"Admin Transfer {from_base_units(value)} from {source} to {recipient} on {self.proxy}",
        )

    def burn(self, amount: str) -> str:
        value = parse_amount(amount)
        return self._send(
            bind_call(self.contract, "remove", value),
            "Burn",
            f"Burned {from_base_units(value)} on {self.proxy}",
        )

    def total_supply(self) -> int:
        return self._tx.call(self.contract.functions.totalSupply(), "totalSupply")

    def balance_of(self, address: str) -> int:
        fn = bind_call(self.contract, "balanceOf", self._address(address))
        return self._tx.call(fn, "balanceOf")

    # Tax

    def tax_bps(self) -> int:
        return int(self._tx.call(self.contract.functions.taxBps(), "taxBps"))

    def set_tax_burn(self, bps: int) -> str:
        """Set the burn tax in basis points (100 = 1%)."""
        rate = parse_bps(bps)
        return self._send(
            bind_call(self.contract, "setTaxConfig", ZERO_ADDRESS, rate),
            "Set tax config",
            f"Updated tax to {rate} BPS on {self.proxy}",
        )

    # Native funds

    def native_balance(self) -> int:
        return self._tx.balance(self.proxy)

    def withdraw_native(self, amount: str, to: Optional[str] = None) -> str:
        recipient = self._address(to) if to else self.signer
        value = parse_amount(amount)
        return self._send(
            bind_call(self.contract, "withdrawNative", recipient, value),
            "Withdraw native",
            f"Withdrew {from_base_units(value)} native from Proxy {self.proxy} to {recipient}",
        )

    # Administration

    def access_report(self) -> AccessReport:
        """Authority, owners and whether the active wallet is the factory owner."""
        authority = self._tx.call(self.contract.functions.authority(), "authority")
        token_owner = self._tx.call(self.contract.functions.owner(), "owner")
        factory = self.orchestrator.factory_contract(authority)
        factory_owner = self._tx.call(factory.functions.owner(), "factory owner")
        return AccessReport(
            authority=authority,
            token_owner=token_owner,
            factory_owner=factory_owner,
            signer=self.signer,
            is_admin=factory_owner.lower() == self.signer.lower(),
            has_code=len(self._tx.code(self.proxy)) > 0,
        )

    def upgrade(self) -> str:
        """
        Deploy a freshly compiled implementation and point the proxy at it.

        Returns:
            Address of the new implementation
        """
        o = self.orchestrator
        artifact = o.compile(o.sources.token)
        implementation, _ = self._tx.deploy(artifact, "Deploy new implementation")
        logger.info("New implementation at %s", implementation)
        o.registry.append(o.network, ROLE_IMPLEMENTATION, implementation)

        self._send(
            bind_call(self.contract, "upgradeToAndCall", implementation, b""),
            "Upgrade",
            f"Upgraded {self.proxy} to {implementation}",
        )
        return implementation
