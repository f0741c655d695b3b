"""Configuration constants for var-deployments library."""

# Network configuration for the supported EVM chains.
# The primary RPC URL is read from `rpc_env`; `fallback_rpc_url` is used when
# it is unset or unreachable.
NETWORK_CONFIG = {
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia (Ethereum Testnet)",
        "block_explorer_url": "https://sepolia.etherscan.io/",
        "rpc_env": "SEPOLIA_RPC_URL",
        "fallback_rpc_url": "https://rpc2.sepolia.org",
    },
    "bsc_testnet": {
        "chain_id": 97,
        "chain_name": "BSC Testnet",
        "block_explorer_url": "https://testnet.bscscan.com/",
        "rpc_env": "BSC_TESTNET_RPC_URL",
        "fallback_rpc_url": "https://data-seed-prebsc-1-s1.binance.org:8545/",
    },
    "bsc_mainnet": {
        "chain_id": 56,
        "chain_name": "BSC Mainnet",
        "block_explorer_url": "https://bscscan.com/",
        "rpc_env": "BSC_MAINNET_RPC_URL",
        "fallback_rpc_url": "https://bsc-dataseed.binance.org/",
    },
}

DEFAULT_NETWORK = "sepolia"

# Token amounts and native balances are fixed-point with 18 decimals
TOKEN_DECIMALS = 18
DEFAULT_INITIAL_SUPPLY = "1000000"

# Tax rates are basis points; 10000 is 100%
MAX_BPS = 10_000

# Compiler profile
DEFAULT_SOLC_VERSION = "0.8.24"
OPTIMIZER_RUNS = 200

# Registry role tags; token proxies live under the bare network key
ROLE_FACTORY = "factory"
ROLE_IMPLEMENTATION = "implementation"

# Import prefixes understood by the resolver
UPGRADEABLE_LIBRARY_PREFIX = "@openzeppelin/contracts-upgradeable/"
LIBRARY_PREFIX = "@openzeppelin/contracts/"
UNSUPPORTED_IMPORT_PREFIXES = ("forge-std/",)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

ACTIVITY_TAIL_LINES = 20
CONFIRMATION_TIMEOUT = 120
RPC_PROBE_TIMEOUT = 10
