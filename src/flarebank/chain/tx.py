"""
Transaction Builder - Build, sign, and send bank contract transactions.

Uses eth-account for signing and the httpx-based JSON-RPC client for
sending. Gas is paid by the signing account.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..core.errors import RejectionError
from ..core.models import CallSpec, TransactionHandle
from .abi import encode_function_call
from .rpc import JsonRpcClient

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 300_000


async def build_contract_tx(
    rpc: JsonRpcClient,
    account: LocalAccount,
    call: CallSpec,
    chain_id: int,
    gas_limit: Optional[int] = None,
) -> dict[str, Any]:
    """
    Build a contract call transaction (unsigned).

    Args:
        rpc: JSON-RPC client for nonce and gas price lookup
        account: Sending account
        call: Target contract, function, arguments and attached value
        chain_id: Chain id for replay protection
        gas_limit: Gas limit (default: DEFAULT_GAS_LIMIT)

    Returns:
        Unsigned transaction dict
    """
    calldata = encode_function_call(call.abi, call.function_name, call.args)
    nonce = await rpc.get_nonce(account.address)
    gas_price = await rpc.get_gas_price()

    return {
        "to": to_checksum_address(call.contract_address),
        "data": calldata,
        "value": call.value,
        "nonce": nonce,
        "gas": gas_limit or DEFAULT_GAS_LIMIT,
        "gasPrice": gas_price,
        "chainId": chain_id,
    }


class LocalSigner:
    """
    Broadcaster backed by a local private key.

    Args:
        rpc: JSON-RPC client used for nonce, gas price and submission
        account: Signing account, or None when no key is configured
        chain_id: Chain id baked into signed transactions
        gas_limit: Gas limit for every submission
    """

    def __init__(
        self,
        rpc: JsonRpcClient,
        account: Optional[LocalAccount],
        chain_id: int,
        gas_limit: int = DEFAULT_GAS_LIMIT,
    ) -> None:
        self._rpc = rpc
        self._account = account
        self._chain_id = chain_id
        self._gas_limit = gas_limit

    async def broadcast(self, call: CallSpec) -> TransactionHandle:
        if self._account is None:
            raise RejectionError("No signing key configured")

        tx = await build_contract_tx(
            self._rpc, self._account, call, self._chain_id, self._gas_limit
        )
        try:
            signed = self._account.sign_transaction(tx)
        except (TypeError, ValueError) as exc:
            raise RejectionError(f"Signing failed: {exc}") from exc

        raw_tx = "0x" + signed.raw_transaction.hex().removeprefix("0x")
        tx_hash = await self._rpc.send_raw_transaction(raw_tx)
        logger.debug("Broadcast %s -> %s", call.function_name, tx_hash)
        return TransactionHandle(tx_hash)
