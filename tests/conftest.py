"""Shared fixtures: an in-memory bank chain standing in for the node."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Optional

import pytest

from flarebank.chain.abi import load_abi
from flarebank.core.lifecycle import TransactionLifecycleManager
from flarebank.core.models import (
    BankContract,
    CallSpec,
    ConfirmationSignal,
    SignalKind,
    TransactionHandle,
    ViewSpec,
)
from flarebank.core.reader import LedgerReader
from flarebank.sigil.eth import StaticIdentity

ETHER = 10**18
ALICE = "0x000000000000000000000000000000000000a11c"
BOB = "0x0000000000000000000000000000000000000b0b"
BANK = "0x00000000000000000000000000000000000ba4c0"


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


class FakeChain:
    """
    In-memory bank contract acting as query service, broadcaster and watcher.

    Broadcast calls are held until the test emits a terminal signal for the
    handle; an Included signal applies the call to the balances.
    """

    def __init__(self, identity: StaticIdentity, balances: Optional[dict[str, int]] = None):
        self.identity = identity
        self.balances: dict[str, int] = dict(balances or {})
        self.events: list[str] = []
        self.reads: list[tuple[str, Optional[str]]] = []
        self.broadcasts: list[CallSpec] = []
        self.broadcast_error: Optional[BaseException] = None
        self.read_error: Optional[BaseException] = None
        self._sent: dict[str, tuple[Optional[str], CallSpec]] = {}
        self._queues: dict[str, asyncio.Queue] = {}

    # -- query service --

    async def call(self, view: ViewSpec, identity: Optional[str] = None) -> Optional[int]:
        self.reads.append((view.function_name, identity))
        if self.read_error is not None:
            raise self.read_error
        if view.function_name == "getBankBalance":
            return sum(self.balances.values())
        if view.function_name == "getMyBalance":
            return self.balances.get(identity, 0)
        raise ValueError(view.function_name)

    # -- broadcaster --

    async def broadcast(self, call: CallSpec) -> TransactionHandle:
        self.broadcasts.append(call)
        self.events.append("broadcast")
        if self.broadcast_error is not None:
            raise self.broadcast_error
        handle = TransactionHandle(f"0x{len(self.broadcasts):064x}")
        self._sent[handle.tx_hash] = (self.identity.current(), call)
        return handle

    # -- watcher --

    def _queue(self, handle: TransactionHandle) -> asyncio.Queue:
        return self._queues.setdefault(handle.tx_hash, asyncio.Queue())

    def emit(self, handle: TransactionHandle, signal) -> None:
        """Queue a ConfirmationSignal, an exception, or None (end of stream)."""
        self._queue(handle).put_nowait(signal)

    def include(self, handle: TransactionHandle) -> None:
        self.emit(handle, ConfirmationSignal.included({"status": "0x1"}))

    def revert(self, handle: TransactionHandle) -> None:
        self.emit(handle, ConfirmationSignal.execution_failed({"status": "0x0"}))

    async def signals(self, handle: TransactionHandle) -> AsyncIterator[ConfirmationSignal]:
        queue = self._queue(handle)
        while True:
            item = await queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            if item.kind is SignalKind.INCLUDED:
                self._apply(*self._sent[handle.tx_hash])
                self.events.append("included")
            yield item
            if item.kind.is_terminal:
                return

    def _apply(self, sender: Optional[str], call: CallSpec) -> None:
        if call.function_name == "deposit":
            self.balances[sender] = self.balances.get(sender, 0) + call.value
        elif call.function_name == "withdraw":
            self.balances[sender] = self.balances.get(sender, 0) - call.args[0]


class RecordingReader(LedgerReader):
    def __init__(self, *args, events: list[str], **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.events = events
        self.refresh_count = 0

    async def refresh(self):
        self.refresh_count += 1
        self.events.append("refresh")
        return await super().refresh()


@pytest.fixture()
def contract() -> BankContract:
    return BankContract(BANK, load_abi())


@pytest.fixture()
def identity() -> StaticIdentity:
    return StaticIdentity(ALICE)


@pytest.fixture()
def chain(identity: StaticIdentity) -> FakeChain:
    return FakeChain(identity, {ALICE: 40 * ETHER, BOB: 60 * ETHER})


@pytest.fixture()
def reader(chain: FakeChain, contract: BankContract, identity: StaticIdentity) -> RecordingReader:
    return RecordingReader(chain, contract, identity, events=chain.events)


@pytest.fixture()
def manager(
    chain: FakeChain, reader: RecordingReader, contract: BankContract
) -> TransactionLifecycleManager:
    return TransactionLifecycleManager(chain, chain, reader, contract)
