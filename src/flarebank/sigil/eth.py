"""
ECDSA / secp256k1 Key Management and identity providers.

The signing key is read from ~/.flarebank/.env (PRIVATE_KEY, hex) or the
process environment. Identity providers expose the currently bound
address to the ledger reader; "no identity" is a normal state, not an
error.

Dependencies: eth-account (lightweight, no full web3.py needed)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount


# Default config directory
FLAREBANK_DIR = Path.home() / ".flarebank"
FLAREBANK_ENV = FLAREBANK_DIR / ".env"


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Args:
        env_path: Path to .env file (default: ~/.flarebank/.env)

    Returns:
        0x-prefixed hex private key

    Raises:
        ValueError: If PRIVATE_KEY is not configured
    """
    env_path = env_path or FLAREBANK_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValueError(
            f"PRIVATE_KEY not found. Set PRIVATE_KEY in {env_path} "
            "or the environment."
        )

    # Ensure 0x prefix
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: 0x-prefixed hex private key.
                     If None, loads from .env.
    """
    if private_key is None:
        private_key = load_private_key()
    return Account.from_key(private_key)


def get_address(private_key: Optional[str] = None) -> str:
    """0x-prefixed checksummed address for a private key."""
    return get_account(private_key).address


class StaticIdentity:
    """Identity bound by the caller; may be rebound or cleared at any time."""

    def __init__(self, address: Optional[str] = None) -> None:
        self._address = address

    def current(self) -> Optional[str]:
        return self._address

    def bind(self, address: str) -> None:
        self._address = address

    def unbind(self) -> None:
        self._address = None


class AccountIdentity:
    """Identity of a local signing account, or none when no key is loaded."""

    def __init__(self, account: Optional[LocalAccount] = None) -> None:
        self.account = account

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "AccountIdentity":
        try:
            return cls(get_account(load_private_key(env_path)))
        except ValueError:
            return cls(None)

    def current(self) -> Optional[str]:
        return self.account.address if self.account is not None else None
