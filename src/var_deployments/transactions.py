"""Transaction submission, confirmation and receipt decoding."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from eth_abi.exceptions import DecodingError
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.types import TxReceipt

from .constants import CONFIRMATION_TIMEOUT
from .exceptions import CallArgumentError, ChainCallError, EventNotFoundError, TransactionError
from .types import CompiledArtifact, ParsedEvent, TransactionHandle

logger = logging.getLogger(__name__)


def _event(contract: Contract, event_name: str) -> Any:
    """Event object for `event_name`, checked against the contract ABI."""
    # Linear search through ABI for event
    for item in contract.abi:
        if item.get("type") == "event" and item.get("name") == event_name:
            return getattr(contract.events, event_name)()
    raise EventNotFoundError(f"Event '{event_name}' not found in contract ABI")


def bind_call(contract: Contract, function: str, *args: Any) -> Any:
    """
    Bind arguments to a contract function.

    Args:
        contract: Contract the function belongs to
        function: Function name, or a full signature such as
                  "transfer(address,address,uint256)" to pick an overload
        *args: Call arguments

    Raises:
        CallArgumentError: If the function is missing from the ABI or the
                           arguments do not fit its parameter types
    """
    try:
        if "(" in function:
            unbound = contract.get_function_by_signature(function)
        else:
            unbound = getattr(contract.functions, function)
        return unbound(*args)
    except (Web3Exception, ValueError) as e:
        raise CallArgumentError(f"Arguments rejected by {function}: {e}") from e


def decode_log(event: Any, log: Dict[str, Any]) -> Optional[ParsedEvent]:
    """
    Decode one receipt log against an event definition.

    Returns:
        ParsedEvent, or None if the log belongs to another event or contract
    """
    try:
        decoded = event.process_log(log)
    except (Web3Exception, DecodingError) as e:
        logger.debug("Log %s is not %s: %s", log.get("logIndex"), event.event_name, e)
        return None
    return ParsedEvent(
        name=decoded["event"],
        args=dict(decoded["args"]),
        address=decoded.get("address"),
        log_index=decoded.get("logIndex"),
    )


def find_events(receipt: TxReceipt, contract: Contract, event_name: str) -> List[ParsedEvent]:
    """All logs of a receipt that decode to `event_name`, in log order."""
    event = _event(contract, event_name)
    decoded = (decode_log(event, log) for log in receipt["logs"])
    return [parsed for parsed in decoded if parsed is not None]


def extract_event(receipt: TxReceipt, contract: Contract, event_name: str) -> ParsedEvent:
    """
    First event named `event_name` among a receipt's logs.

    Logs from other contracts or of other event kinds are skipped.

    Raises:
        EventNotFoundError: If no log decodes to the event
    """
    matches = find_events(receipt, contract, event_name)
    if not matches:
        raise EventNotFoundError(
            f"No '{event_name}' event in receipt of {Web3.to_hex(receipt['transactionHash'])}"
        )
    if len(matches) > 1:
        logger.warning(
            "Receipt contains %d '%s' events; using the first", len(matches), event_name
        )
    return matches[0]


class TransactionManager:
    """Submits signed transactions and waits for their receipts."""

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        chain_id: int,
        timeout: int = CONFIRMATION_TIMEOUT,
    ):
        self.web3 = web3
        self.account = account
        self.chain_id = chain_id
        self.timeout = timeout

    @classmethod
    def for_session(cls, session: Any) -> "TransactionManager":
        """Manager signing with the session's wallet on its network."""
        return cls(
            session.web3,
            session.require_account(),
            session.network.chain_id,
            session.settings.confirmation_timeout,
        )

    def submit(self, call: Any, value: int = 0, description: str = "") -> TransactionHandle:
        """
        Build, sign and send a contract call or constructor.

        Args:
            call: Bound ContractFunction or ContractConstructor
            value: Native value to attach, in wei
            description: Label used in logs and errors

        Raises:
            TransactionError: If gas estimation reverts or the node rejects the transaction
        """
        address = self.account.address
        try:
            params: Dict[str, Any] = {
                "from": address,
                "nonce": self.web3.eth.get_transaction_count(address, "pending"),
                "chainId": self.chain_id,
            }
            if value:
                params["value"] = value
            tx = call.build_transaction(params)
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise TransactionError(
                f"{description or 'Transaction'} reverted: {e.message}",
                reason=e.message,
                data=e.data,
            ) from e
        except (Web3Exception, requests.RequestException, ValueError) as e:
            raise TransactionError(f"{description or 'Transaction'} failed to submit: {e}") from e

        handle = TransactionHandle(self.web3.to_hex(tx_hash), description)
        logger.info("Submitted %s: %s", description or "transaction", handle.tx_hash)
        return handle

    def await_confirmation(self, handle: TransactionHandle) -> TxReceipt:
        """
        Wait for a receipt and check its status.

        Raises:
            TransactionError: On timeout, RPC failure or a reverted receipt
                              (with the revert reason when the node supplies one)
        """
        label = handle.description or "Transaction"
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                handle.tx_hash, timeout=self.timeout
            )
        except TimeExhausted as e:
            raise TransactionError(
                f"{label} {handle.tx_hash} not confirmed within {self.timeout}s",
                tx_hash=handle.tx_hash,
            ) from e
        except (Web3Exception, requests.RequestException) as e:
            raise TransactionError(
                f"{label} {handle.tx_hash} could not be confirmed: {e}",
                tx_hash=handle.tx_hash,
            ) from e

        if receipt["status"] != 1:
            reason, data = self._revert_reason(handle.tx_hash, receipt)
            message = f"{label} {handle.tx_hash} reverted"
            if reason:
                message += f": {reason}"
            raise TransactionError(message, reason=reason, data=data, tx_hash=handle.tx_hash)

        logger.info("Confirmed %s in block %s", handle.tx_hash, receipt["blockNumber"])
        return receipt

    def _revert_reason(self, tx_hash: str, receipt: TxReceipt) -> Tuple[Optional[str], Any]:
        """Replay a reverted transaction as a call to recover its revert reason."""
        try:
            tx = self.web3.eth.get_transaction(tx_hash)
            call: Dict[str, Any] = {"from": tx["from"], "data": tx["input"], "value": tx["value"]}
            if tx.get("to"):
                call["to"] = tx["to"]
            self.web3.eth.call(call, receipt["blockNumber"])
        except ContractLogicError as e:
            return e.message, e.data
        except (Web3Exception, requests.RequestException) as e:
            logger.debug("Could not replay %s for a revert reason: %s", tx_hash, e)
        return None, None

    def transact(self, call: Any, value: int = 0, description: str = "") -> TxReceipt:
        """Submit a call and wait for its confirmed receipt."""
        return self.await_confirmation(self.submit(call, value=value, description=description))

    def deploy(self, artifact: CompiledArtifact, description: str = "") -> Tuple[str, TxReceipt]:
        """
        Deploy a compiled contract without constructor arguments.

        Returns:
            Tuple of (contract address, receipt)
        """
        factory = self.web3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        label = description or f"Deploy {artifact.contract_name}"
        receipt = self.transact(factory.constructor(), description=label)
        address = receipt.get("contractAddress")
        if not address:
            raise TransactionError(
                f"{label} confirmed without a contract address",
                tx_hash=Web3.to_hex(receipt["transactionHash"]),
            )
        return Web3.to_checksum_address(address), receipt

    def extract_event(self, receipt: TxReceipt, contract: Contract, event_name: str) -> ParsedEvent:
        return extract_event(receipt, contract, event_name)

    def call(self, fn: Any, description: str = "") -> Any:
        """
        Run a read-only contract call.

        Raises:
            ChainCallError: If the call reverts or the node cannot be reached
        """
        try:
            return fn.call()
        except ContractLogicError as e:
            raise ChainCallError(f"{description or 'Call'} reverted: {e.message}") from e
        except (Web3Exception, requests.RequestException, ValueError) as e:
            raise ChainCallError(f"{description or 'Call'} failed: {e}") from e

    def balance(self, address: str) -> int:
        """Native balance of an address, in wei."""
        try:
            return self.web3.eth.get_balance(address)
        except (Web3Exception, requests.RequestException) as e:
            raise ChainCallError(f"Balance query for {address} failed: {e}") from e

    def code(self, address: str) -> bytes:
        """Runtime bytecode at an address (empty for accounts)."""
        try:
            return bytes(self.web3.eth.get_code(address))
        except (Web3Exception, requests.RequestException) as e:
            raise ChainCallError(f"Code query for {address} failed: {e}") from e
