"""Command-line entry point for var-deployments."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from . import commands
from .config import Settings
from .constants import ACTIVITY_TAIL_LINES, DEFAULT_NETWORK, NETWORK_CONFIG
from .exceptions import DeploymentError
from .orchestrator import Orchestrator, OwnerFlowState

# Owner flow steps an interrupted deploy-factory can continue from
RESUME_STATES = [OwnerFlowState.FACTORY_DEPLOYED.value, OwnerFlowState.FACTORY_INITIALIZED.value]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="var-deployments",
        description="Deploy and operate the VAR upgradeable token ecosystem.",
    )
    parser.add_argument("--network", choices=sorted(NETWORK_CONFIG), default=DEFAULT_NETWORK)
    parser.add_argument("--project-root", type=Path, help="Directory with contracts and state files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("deploy-factory", help="Owner: deploy and initialize the factory, assign the bot")
    p.add_argument("bot_address")
    p.add_argument("--factory", help="Continue with an already deployed factory")
    p.add_argument(
        "--from-state",
        dest="resume_from",
        choices=RESUME_STATES,
        help="Last completed step for --factory (default factory_deployed)",
    )

    p = sub.add_parser("deploy-ecosystem", help="Bot: deploy implementation and token proxy")
    p.add_argument("name")
    p.add_argument("symbol")
    p.add_argument("--supply", help="Initial mint amount (default 1,000,000)")

    sub.add_parser("balance", help="Native balance of the configured wallet")

    p = sub.add_parser("logs", help="Recent activity log lines")
    p.add_argument("-n", "--limit", type=int, default=ACTIVITY_TAIL_LINES)

    sub.add_parser("proxies", help="List recorded token proxies")
    p = sub.add_parser("add-proxy", help="Record a token proxy address")
    p.add_argument("address")
    p = sub.add_parser("remove-proxy", help="Forget a token proxy address")
    p.add_argument("address")

    sub.add_parser("factory-balance", help="Native balance of the latest factory")
    p = sub.add_parser("withdraw-factory", help="Withdraw native funds from the latest factory")
    p.add_argument("amount")
    p.add_argument("--to")

    def proxy_command(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--proxy", help="Proxy address (default: latest recorded)")
        return p

    p = proxy_command("mint", "Add tokens")
    p.add_argument("to")
    p.add_argument("amount")
    p = proxy_command("transfer", "Transfer tokens from the wallet")
    p.add_argument("to")
    p.add_argument("amount")
    p = proxy_command("admin-transfer", "Move tokens between holders (rescue)")
    p.add_argument("sender")
    p.add_argument("to")
    p.add_argument("amount")
    p = proxy_command("burn", "Remove tokens")
    p.add_argument("amount")
    proxy_command("total-supply", "Show total supply")
    p = proxy_command("balance-of", "Show token balance of an address")
    p.add_argument("address")
    proxy_command("tax", "Show tax configuration")
    p = proxy_command("set-tax", "Set tax burn in basis points (100 = 1%)")
    p.add_argument("bps", type=int)
    proxy_command("proxy-balance", "Show native balance held by the proxy")
    p = proxy_command("withdraw-native", "Withdraw native funds from the proxy")
    p.add_argument("amount")
    p.add_argument("--to")
    proxy_command("access", "Show authority and ownership")
    proxy_command("upgrade", "Deploy a new implementation and upgrade the proxy")

    return parser


def to_command(args: argparse.Namespace) -> commands.Command:
    """Translate parsed arguments into a command variant."""
    match args.command:
        case "deploy-factory":
            return commands.DeployFactory(args.bot_address, args.factory, args.resume_from)
        case "deploy-ecosystem":
            return commands.DeployEcosystem(args.name, args.symbol, args.supply)
        case "balance":
            return commands.CheckBalance()
        case "logs":
            return commands.ViewActivity(args.limit)
        case "proxies":
            return commands.ListProxies()
        case "add-proxy":
            return commands.RegisterProxy(args.address)
        case "remove-proxy":
            return commands.RemoveProxy(args.address)
        case "factory-balance":
            return commands.FactoryBalance()
        case "withdraw-factory":
            return commands.WithdrawFactory(args.amount, args.to)
        case "mint":
            return commands.Mint(args.proxy, args.to, args.amount)
        case "transfer":
            return commands.Transfer(args.proxy, args.to, args.amount)
        case "admin-transfer":
            return commands.AdminTransfer(args.proxy, args.sender, args.to, args.amount)
        case "burn":
            return commands.Burn(args.proxy, args.amount)
        case "total-supply":
            return commands.TotalSupply(args.proxy)
        case "balance-of":
            return commands.BalanceOf(args.proxy, args.address)
        case "tax":
            return commands.TaxConfig(args.proxy)
        case "set-tax":
            return commands.SetTaxBurn(args.proxy, args.bps)
        case "proxy-balance":
            return commands.ProxyNativeBalance(args.proxy)
        case "withdraw-native":
            return commands.WithdrawNative(args.proxy, args.amount, args.to)
        case "access":
            return commands.AccessCheck(args.proxy)
        case "upgrade":
            return commands.Upgrade(args.proxy)
        case _:
            raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    settings = Settings.from_env()
    if args.project_root is not None:
        settings = replace(settings, project_root=args.project_root.absolute())

    try:
        orchestrator = Orchestrator.from_settings(args.network, settings)
    except DeploymentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = commands.run_command(orchestrator, to_command(args))
    print(result.message, file=sys.stdout if result.ok else sys.stderr)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
