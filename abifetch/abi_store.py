# abifetch/abi_store.py
import json
import logging
from pathlib import Path

from abifetch.errors import AbiFormatError


def save_abi(abi: list, path) -> Path:
    """
    Save the ABI to a pretty-printed JSON file, creating parent directories.

    :return: The path written.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(abi, indent=2), encoding="utf-8")
    logging.info(f"ABI has been written to {out}")
    return out


def load_abi(path) -> list:
    text = Path(path).read_text(encoding="utf-8-sig")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AbiFormatError(f"{path} is not valid JSON: {e}") from e

    # full Hardhat/Truffle artifact: grab the "abi" field
    if isinstance(data, dict) and isinstance(data.get("abi"), list):
        return data["abi"]
    # already just an ABI list (explorer download)
    if isinstance(data, list):
        return data
    raise AbiFormatError(f"Unrecognized ABI format in {path}")
