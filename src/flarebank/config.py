"""
Settings loaded from ~/.flarebank/.env and the process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .core.errors import ConfigError
from .chain.tx import DEFAULT_GAS_LIMIT
from .chain.watcher import DEFAULT_POLL_INTERVAL
from .sigil.eth import FLAREBANK_ENV
from .utils import DEFAULT_DECIMALS

# Default RPC endpoint (Flare Coston2 testnet)
DEFAULT_RPC_URL = "https://coston2-api.flare.network/ext/C/rpc"
DEFAULT_CHAIN_ID = 114


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = DEFAULT_CHAIN_ID
    contract_address: Optional[str] = None
    abi_path: Optional[str] = None
    decimals: int = DEFAULT_DECIMALS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    receipt_timeout: Optional[float] = None
    gas_limit: int = DEFAULT_GAS_LIMIT

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        """
        Build settings from the environment.

        Values already present in the environment win over the .env file.
        """
        env_path = env_path or FLAREBANK_ENV
        if env_path.exists():
            load_dotenv(env_path, override=False)

        return cls(
            rpc_url=os.environ.get("FLAREBANK_RPC", DEFAULT_RPC_URL),
            chain_id=_env_int("CHAIN_ID", DEFAULT_CHAIN_ID),
            contract_address=os.environ.get("BANK_CONTRACT_ADDRESS") or None,
            abi_path=os.environ.get("BANK_ABI_PATH") or None,
            decimals=_env_int("BANK_DECIMALS", DEFAULT_DECIMALS),
            poll_interval=_env_float("RECEIPT_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            receipt_timeout=_env_float("RECEIPT_TIMEOUT", None),
            gas_limit=_env_int("GAS_LIMIT", DEFAULT_GAS_LIMIT),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def require_contract(self) -> str:
        if not self.contract_address:
            raise ConfigError(
                "BANK_CONTRACT_ADDRESS not set. Pass --contract or set "
                f"BANK_CONTRACT_ADDRESS in {FLAREBANK_ENV}."
            )
        return self.contract_address
