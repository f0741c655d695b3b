"""RPC endpoint probing and selection for var-deployments library."""

import logging
from typing import Optional

import requests

from .constants import RPC_PROBE_TIMEOUT
from .exceptions import RpcUnavailableError

logger = logging.getLogger(__name__)


def probe_chain_id(rpc_url: str, timeout: float = RPC_PROBE_TIMEOUT) -> int:
    """
    Ask an RPC endpoint for its chain id.

    Args:
        rpc_url: RPC endpoint URL
        timeout: Request timeout in seconds

    Returns:
        Chain id reported by the endpoint

    Raises:
        RpcUnavailableError: On network errors, HTTP errors, RPC errors or a
                             malformed response
    """
    try:
        response = requests.post(
            rpc_url,
            json={"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": 1},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RpcUnavailableError(f"Network error during RPC call to {rpc_url}: {e}") from e

    # Check for HTTP errors
    if response.status_code != 200:
        raise RpcUnavailableError(
            f"RPC request to {rpc_url} failed with status {response.status_code}"
        )

    try:
        result = response.json()
    except ValueError as e:
        raise RpcUnavailableError(f"RPC endpoint {rpc_url} returned invalid JSON") from e

    # Check for RPC errors
    if "error" in result:
        raise RpcUnavailableError(f"RPC error from {rpc_url}: {result['error']}")

    try:
        return int(result["result"], 16)
    except (KeyError, TypeError, ValueError) as e:
        raise RpcUnavailableError(f"Malformed eth_chainId response from {rpc_url}") from e


def select_rpc_url(
    primary: Optional[str],
    fallback: str,
    chain_id: int,
    probe: bool = True,
) -> str:
    """
    Pick the endpoint a session connects to.

    The primary URL wins when it is configured and (if probing) answers with
    the expected chain id; otherwise the fallback URL is used.
    """
    if not primary:
        logger.info("No RPC URL configured, using fallback %s", fallback)
        return fallback
    if not probe:
        return primary

    try:
        reported = probe_chain_id(primary)
    except RpcUnavailableError as e:
        logger.warning("%s; using fallback %s", e, fallback)
        return fallback

    if reported != chain_id:
        logger.warning(
            "RPC %s reports chain id %d, expected %d; using fallback %s",
            primary,
            reported,
            chain_id,
            fallback,
        )
        return fallback
    return primary
