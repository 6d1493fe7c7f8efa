# abifetch/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from abifetch.errors import ConfigError
from abifetch.models import DEFAULT_BACKOFF_MS, DEFAULT_RETRIES

ENV_FILE             = "env/.env"
DEFAULT_RPC_URL      = "https://sepolia-rollup.arbitrum.io/rpc"
DEFAULT_EXPLORER_URL = "https://api-sepolia.etherscan.io/api"
DEFAULT_ABI_PATH     = "contractABI.json"


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    contract_address: Optional[str]
    private_key: Optional[str]
    rpc_url: str = DEFAULT_RPC_URL
    explorer_url: str = DEFAULT_EXPLORER_URL
    abi_path: Path = Path(DEFAULT_ABI_PATH)
    retries: int = DEFAULT_RETRIES
    backoff_ms: int = DEFAULT_BACKOFF_MS

    # field name -> environment variable, for error messages
    _ENV_NAMES = {
        "api_key": "ETHERSCAN_API_KEY",
        "contract_address": "CONTRACT_ADDRESS",
        "private_key": "PRIVATE_KEY or PRIV_KEY_PATH",
    }

    def require(self, name: str) -> str:
        value = getattr(self, name)
        if not value:
            raise ConfigError(f"No {self._ENV_NAMES.get(name, name)} env var set")
        return value


def _int_var(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def read_secret(path) -> str:
    """Return the first line of a key file, stripped."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.readline().strip()
    except OSError as e:
        raise ConfigError(f"Cannot read secret from {path}: {e}") from e


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        load_dotenv(ENV_FILE)
        env = os.environ

    private_key = env.get("PRIVATE_KEY")
    if not private_key and env.get("PRIV_KEY_PATH"):
        private_key = read_secret(env["PRIV_KEY_PATH"])

    return Settings(
        api_key=env.get("ETHERSCAN_API_KEY"),
        contract_address=env.get("CONTRACT_ADDRESS"),
        private_key=private_key or None,
        rpc_url=env.get("RPC_URL") or DEFAULT_RPC_URL,
        explorer_url=env.get("EXPLORER_API_URL") or DEFAULT_EXPLORER_URL,
        abi_path=Path(env.get("ABI_PATH") or DEFAULT_ABI_PATH),
        retries=_int_var(env, "FETCH_RETRIES", DEFAULT_RETRIES),
        backoff_ms=_int_var(env, "FETCH_BACKOFF_MS", DEFAULT_BACKOFF_MS),
    )
