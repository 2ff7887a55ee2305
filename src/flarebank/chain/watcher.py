"""
Receipt Watcher - Confirmation signals for a submitted transaction.

Polls ``eth_getTransactionReceipt`` and yields Pending until a receipt
appears, then exactly one terminal signal (Included or ExecutionFailed).
With no timeout configured the watcher waits indefinitely.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Optional

from ..core.errors import ConfirmationTimeout
from ..core.models import ConfirmationSignal, TransactionHandle
from .rpc import JsonRpcClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


def receipt_succeeded(receipt: dict) -> bool:
    status = receipt.get("status", "0x0")
    if isinstance(status, str):
        return int(status, 16) == 1
    return int(status) == 1


class ReceiptWatcher:
    """
    Args:
        rpc: JSON-RPC client
        poll_interval: Seconds between receipt polls
        timeout: Give up after this many seconds (None: never)
    """

    def __init__(
        self,
        rpc: JsonRpcClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
    ) -> None:
        self._rpc = rpc
        self._poll_interval = poll_interval
        self._timeout = timeout

    async def signals(self, handle: TransactionHandle) -> AsyncIterator[ConfirmationSignal]:
        deadline = None
        if self._timeout is not None:
            deadline = time.monotonic() + self._timeout

        while True:
            receipt = await self._rpc.get_transaction_receipt(handle.tx_hash)
            if receipt is not None:
                logger.debug(
                    "Receipt for %s in block %s", handle, receipt.get("blockNumber")
                )
                if receipt_succeeded(receipt):
                    yield ConfirmationSignal.included(receipt)
                else:
                    yield ConfirmationSignal.execution_failed(receipt)
                return

            if deadline is not None and time.monotonic() >= deadline:
                raise ConfirmationTimeout(
                    f"Transaction {handle} not confirmed within {self._timeout}s"
                )

            yield ConfirmationSignal.pending()
            await asyncio.sleep(self._poll_interval)
