"""
ABI Loader - Bank contract ABI and call encoding.

The bank ABI is embedded so the client works without build artifacts.
A JSON file (bare ABI list or a Foundry/Hardhat artifact with an "abi"
key) can override it via BANK_ABI_PATH.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from eth_abi import decode, encode
from eth_hash.auto import keccak

BANK_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "deposit",
        "inputs": [],
        "outputs": [],
        "stateMutability": "payable",
    },
    {
        "type": "function",
        "name": "withdraw",
        "inputs": [{"name": "amount", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "getBankBalance",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "getMyBalance",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
]


@lru_cache(maxsize=16)
def _load_abi_file(path: str) -> tuple[dict[str, Any], ...]:
    abi_path = Path(path).expanduser()
    if not abi_path.exists():
        raise FileNotFoundError(f"ABI not found: {abi_path}")

    with abi_path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    if isinstance(artifact, dict):
        artifact = artifact.get("abi")
    if not isinstance(artifact, list):
        raise ValueError(f"No ABI list in {abi_path}")
    return tuple(artifact)


def load_abi(path: str | Path | None = None) -> list[dict[str, Any]]:
    """
    Load the bank ABI.

    Args:
        path: Optional JSON file holding an ABI list or an artifact with
              an "abi" key. The embedded ABI is returned when omitted.

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the file holds no ABI list
    """
    if path is None:
        return list(BANK_ABI)
    return list(_load_abi_file(str(path)))


def _find_function(abi: list, function_name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == function_name:
            return entry
    raise ValueError(f"Function {function_name} not found in ABI")


def function_selector(function_name: str, input_types: list[str]) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    sig = f"{function_name}({','.join(input_types)})"
    return keccak(sig.encode("utf-8"))[:4]


def encode_function_call(abi: list, function_name: str, args: list | tuple) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = _find_function(abi, function_name)
    input_types = [inp["type"] for inp in func.get("inputs", [])]
    if len(args) != len(input_types):
        raise ValueError(
            f"{function_name} expects {len(input_types)} argument(s), got {len(args)}"
        )

    selector = function_selector(function_name, input_types)
    encoded_args = encode(input_types, list(args)) if args else b""
    return "0x" + selector.hex() + encoded_args.hex()


def decode_function_result(abi: list, function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        Decoded result (single value or tuple), None for empty data
    """
    func = _find_function(abi, function_name)
    output_types = [out["type"] for out in func.get("outputs", [])]
    if not output_types or data in ("", "0x"):
        return None

    raw = bytes.fromhex(data[2:]) if data.startswith("0x") else bytes.fromhex(data)
    decoded = decode(output_types, raw)

    if len(decoded) == 1:
        return decoded[0]
    return decoded
