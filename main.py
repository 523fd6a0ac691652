from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from bidi.config import Settings, load_settings
from bidi.logger import get_logger, quiet_libraries, resolve_log_level
from bidi.mirror import MirrorClient, format_admin_key
from bidi.operations import Operations
from bidi.store import ContractIdStore


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="BIDI token and NFT redemption tooling for Hedera")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--local-config", default="config.local.yaml", help="Secret overrides path")
    parser.add_argument("--env-file", default=".env", help="dotenv file with operator credentials")
    commands = parser.add_subparsers(dest="command", required=True)

    deploy = commands.add_parser("deploy", help="Deploy the HelloWorld message contract")
    deploy.add_argument("--message", default="Hello from Hedera!")

    token = commands.add_parser("token", help="BIDI token contract").add_subparsers(dest="action", required=True)
    token.add_parser("create", help="Deploy the token contract and save its id")
    balance = token.add_parser("balance", help="Show token balance and NFT allowance")
    balance.add_argument("account_id", nargs="?", help="Account to check (defaults to operator)")
    allow = token.add_parser("allow", help="Approve the NFT contract to spend tokens")
    allow.add_argument("amount", help="Whole-token amount, e.g. 500 or 1,000.25")

    nft = commands.add_parser("nft", help="NFT redemption contract").add_subparsers(dest="action", required=True)
    nft.add_parser("deploy", help="Deploy the NFTCollection contract")
    redemption = nft.add_parser("deploy-collection", help="Deploy the redemption collection bound to the token")
    redemption.add_argument("--token-contract-id")
    nft.add_parser("create-collection", help="Deploy the CreateCollection contract")
    mint = nft.add_parser("mint", help="Mint an NFT locking a token amount")
    mint.add_argument("recipient_id")
    mint.add_argument("amount")
    mint.add_argument("contract_id", nargs="?")
    redeem = nft.add_parser("redeem", help="Redeem an NFT for its locked tokens")
    redeem.add_argument("token_id", type=int)
    redeem.add_argument("contract_id", nargs="?")
    listing = nft.add_parser("list", help="List NFTs in a collection")
    listing.add_argument("contract_id", nargs="?")
    listing.add_argument("--limit", type=int)

    collections = commands.add_parser("collections", help="List contracts created by an account")
    collections.add_argument("account_id", nargs="?")
    return parser.parse_args(argv)


def build_operations(settings: Settings, logger, with_ledger: bool = True) -> Operations:
    ledger = None
    if with_ledger:
        from bidi.ledger import Ledger

        ledger = Ledger(settings, logger)
    return Operations(
        settings,
        ledger,
        ContractIdStore(settings.data_dir),
        logger,
        mirror=MirrorClient.from_settings(settings, logger),
    )


def run_command(args: argparse.Namespace, ops: Operations, logger):
    if args.command == "collections":
        for info in ops.list_collections(args.account_id):
            admin_key = format_admin_key((info.contract or {}).get("admin_key"))
            logger.info("%s | %s | %s | admin key %s", info.contract_id, info.name, info.symbol, admin_key)
        return None

    with ops.ledger:
        if args.command == "deploy":
            return ops.deploy_hello_world(args.message)
        if args.command == "token":
            if args.action == "create":
                return ops.create_token()
            if args.action == "balance":
                return ops.get_balance(args.account_id)
            return ops.set_allowance(args.amount)
        if args.action == "deploy":
            return ops.deploy_nft_contract()
        if args.action == "deploy-collection":
            return ops.deploy_redemption_collection(args.token_contract_id)
        if args.action == "create-collection":
            return ops.create_collection()
        if args.action == "mint":
            return ops.mint_nft(args.recipient_id, args.amount, args.contract_id)
        if args.action == "redeem":
            return ops.redeem_nft(args.token_id, args.contract_id)
        return ops.list_nfts(args.contract_id, limit=args.limit)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config, args.local_config, args.env_file)
    except Exception as exc:  # noqa: BLE001
        get_logger().error("Failed to load configuration: %s", exc)
        return 1
    logger = get_logger(level=resolve_log_level(settings.log_level), log_file=settings.log_file)
    quiet_libraries()

    try:
        ops = build_operations(settings, logger, with_ledger=args.command != "collections")
        result = run_command(args, ops, logger)
    except Exception as exc:  # noqa: BLE001
        logger.error("%s failed: %s", args.command, exc)
        return 1
    if result is not None:
        logger.info("Completed: %s", result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
