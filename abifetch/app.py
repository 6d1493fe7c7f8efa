# abifetch/app.py
"""
Fetch a contract ABI from the block explorer, save it, and connect a signing
client to the contract.

Needs env/.env (or the environment):
  ETHERSCAN_API_KEY, CONTRACT_ADDRESS, PRIVATE_KEY or PRIV_KEY_PATH
optional: RPC_URL, EXPLORER_API_URL, ABI_PATH, FETCH_RETRIES, FETCH_BACKOFF_MS
"""

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from abifetch.abi_store import save_abi
from abifetch.config import Settings, load_settings
from abifetch.contract import connect
from abifetch.errors import AbiFetchError
from abifetch.explorer import get_contract_abi
from abifetch.retry import RetryingFetcher


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="abifetch", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--address", help="contract address (overrides CONTRACT_ADDRESS)")
    parser.add_argument("--out", type=Path, help="ABI output file (overrides ABI_PATH)")
    parser.add_argument("--campaigns", action="store_true", help="list campaigns after connecting")
    parser.add_argument("--skip-connect", action="store_true", help="only fetch and save the ABI")
    return parser.parse_args(argv)


def run(settings: Settings, args: argparse.Namespace,
        fetcher: Optional[RetryingFetcher] = None, connect_fn=connect) -> int:
    address  = args.address or settings.require("contract_address")
    abi_path = args.out or settings.abi_path

    abi = get_contract_abi(
        address, settings.require("api_key"), settings.explorer_url,
        fetcher=fetcher, retries=settings.retries, backoff_ms=settings.backoff_ms,
    )
    save_abi(abi, abi_path)

    if args.skip_connect:
        return 0

    client = connect_fn(settings.rpc_url, address, abi, settings.require("private_key"))
    logging.info(f"Connected to contract: {client.contract_address}")
    logging.info(f"Using wallet address: {client.address}")

    if args.campaigns:
        for c in client.get_campaigns():
            logging.info(
                f"#{c.campaign_id} {c.title!r} owner={c.owner} "
                f"collected={c.amount_collected}/{c.target} wei ({c.progress():.0%}) "
                f"deadline={_format_deadline(c.deadline)}"
            )
    return 0


def _format_deadline(deadline: int) -> str:
    # uint256 on-chain; anything past the platform's time_t is shown raw
    try:
        return datetime.fromtimestamp(deadline, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return str(deadline)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    args = parse_args(argv)
    try:
        return run(load_settings(), args)
    except AbiFetchError as e:
        logging.error(f"abifetch failed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
