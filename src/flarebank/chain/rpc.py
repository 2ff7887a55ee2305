"""
JSON-RPC Client for EVM-compatible nodes.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for encoding.
Supports read-only contract calls, nonce/gas queries, raw transaction
submission and receipt lookup.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional

import httpx
from eth_abi.exceptions import DecodingError

from ..core.errors import NetworkError, RpcError
from ..core.models import ViewSpec
from .abi import decode_function_result, encode_function_call

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class JsonRpcClient:
    """
    Async JSON-RPC 2.0 client.

    Use as an async context manager, or call ``aclose()`` when done.

    Args:
        rpc_url: RPC endpoint URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            NetworkError: If the node could not be reached or answered garbage
            RpcError: If the response carries an ``error`` object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        logger.debug("RPC %s -> %s", method, self.rpc_url)

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{method} returned invalid JSON") from exc

        if "error" in data:
            error = data["error"] or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise RpcError(
                method,
                error.get("code"),
                error.get("message", "unknown error"),
                error.get("data"),
            )

        return data.get("result")

    async def eth_call(self, tx: dict[str, Any], block: str = "latest") -> str:
        return await self.request("eth_call", [tx, block])

    async def get_nonce(self, address: str) -> int:
        result = await self.request("eth_getTransactionCount", [address, "pending"])
        return int(result, 16)

    async def get_gas_price(self) -> int:
        result = await self.request("eth_gasPrice", [])
        return int(result, 16)

    async def get_chain_id(self) -> int:
        result = await self.request("eth_chainId", [])
        return int(result, 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return await self.request("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        """Receipt dict, or None while the transaction is not yet included."""
        return await self.request("eth_getTransactionReceipt", [tx_hash])


class RpcQueryService:
    """Read-only contract calls over ``eth_call``."""

    def __init__(self, rpc: JsonRpcClient) -> None:
        self._rpc = rpc

    async def call(self, view: ViewSpec, identity: Optional[str] = None) -> Optional[int]:
        calldata = encode_function_call(view.abi, view.function_name, view.args)
        tx: dict[str, Any] = {"to": view.contract_address, "data": calldata}
        if identity:
            # view functions keyed on msg.sender need the caller set
            tx["from"] = identity

        result = await self._rpc.eth_call(tx)
        if result is None or result == "0x":
            return None

        try:
            decoded = decode_function_result(view.abi, view.function_name, result)
        except DecodingError as exc:
            raise ValueError(f"Undecodable {view.function_name} result: {result}") from exc
        if decoded is None:
            return None
        return int(decoded)
