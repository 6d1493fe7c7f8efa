# abifetch/explorer.py
import json
import logging
from typing import Optional

import requests

from abifetch.errors import ExplorerError
from abifetch.models import DEFAULT_BACKOFF_MS, DEFAULT_RETRIES, RequestSpec
from abifetch.retry import RetryingFetcher


def abi_request(explorer_url: str, contract_address: str, api_key: str,
                retries: int = DEFAULT_RETRIES,
                backoff_ms: int = DEFAULT_BACKOFF_MS) -> RequestSpec:
    return RequestSpec(
        url=explorer_url,
        options={
            "method": "GET",
            "params": {
                "module": "contract",
                "action": "getabi",
                "address": contract_address,
                "apikey": api_key,
            },
        },
        retries=retries,
        backoff_ms=backoff_ms,
    )


def parse_abi_response(raw: str) -> list:
    """
    Decode an explorer getabi response into the ABI list.

    The envelope looks like {"status": "1", "message": "OK", "result": "<abi json>"};
    some explorers already return the ABI as a JSON array in "result".
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ExplorerError(f"Explorer response is not JSON: {e}") from e

    if not isinstance(data, dict) or "result" not in data:
        raise ExplorerError("Explorer response has no result field")

    if str(data.get("status")) != "1":
        raise ExplorerError(f"Explorer error: {data.get('message')}", data.get("result"))

    result = data["result"]
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError as e:
            raise ExplorerError(f"ABI in explorer result is not JSON: {e}") from e

    if not isinstance(result, list):
        raise ExplorerError(f"ABI must be a JSON array, got {type(result).__name__}")
    return result


def get_contract_abi(contract_address: str, api_key: str, explorer_url: str,
                     fetcher: Optional[RetryingFetcher] = None,
                     retries: int = DEFAULT_RETRIES,
                     backoff_ms: int = DEFAULT_BACKOFF_MS) -> list:
    """
    Fetch the ABI of a smart contract from an Etherscan-compatible explorer.

    :param contract_address: The address of the smart contract.
    :param api_key: Your explorer API key.
    :param explorer_url: Base API URL, e.g. https://api-sepolia.etherscan.io/api
    :return: The ABI as a list of entries.
    """
    spec = abi_request(explorer_url, contract_address, api_key, retries, backoff_ms)

    if fetcher is None:
        with requests.Session() as session:
            raw = RetryingFetcher(session=session).fetch_spec(spec)
    else:
        raw = fetcher.fetch_spec(spec)
    logging.debug(f"Raw response data: {raw}")

    abi = parse_abi_response(raw)
    logging.info(f"ABI for contract {contract_address} fetched successfully ({len(abi)} entries).")
    return abi
