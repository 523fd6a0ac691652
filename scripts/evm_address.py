#!/usr/bin/env python3
"""Utility script to convert between shard.realm.num ids and EVM addresses."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bidi.codec import (  # noqa: E402
    CodecError,
    account_id_to_evm_address,
    evm_address_to_account_id,
    evm_address_to_account_num,
)
from bidi.logger import get_logger  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert account ids and EVM addresses")
    parser.add_argument("value", help="Account id (0.0.1234) or EVM address (0x...)")
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Decode addresses as 0.0.<all digits>, ignoring shard and realm",
    )
    return parser.parse_args()


def convert(value: str, legacy: bool = False) -> str:
    if value.lower().startswith("0x"):
        decoder = evm_address_to_account_num if legacy else evm_address_to_account_id
        return str(decoder(value))
    return account_id_to_evm_address(value)


def main() -> None:
    args = parse_args()
    logger = get_logger(name="evm-address")
    try:
        result = convert(args.value, args.legacy)
    except CodecError as exc:
        raise SystemExit(f"Cannot convert {args.value}: {exc}")
    logger.info("%s -> %s", args.value, result)


if __name__ == "__main__":
    main()
