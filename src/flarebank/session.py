"""
Bank Session - Reader and lifecycle manager wired to one identity.

A session pairs a LedgerReader with a TransactionLifecycleManager and
exposes both through a single combined snapshot, plus the caller-side
checks a front end applies before submitting.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
from eth_account.signers.local import LocalAccount

from .chain.abi import load_abi
from .chain.rpc import JsonRpcClient, RpcQueryService
from .chain.tx import LocalSigner
from .chain.watcher import ReceiptWatcher
from .config import Settings
from .core.errors import ValidationError
from .core.interfaces import IdentityProvider
from .core.lifecycle import SubmissionOutcome, TransactionLifecycleManager, TransactionStatus
from .core.models import BankContract, SubmissionRequest
from .core.reader import BalanceSnapshot, LedgerReader
from .sigil.eth import AccountIdentity
from .utils import AmountLike, to_decimal


@dataclass(frozen=True)
class SessionSnapshot:
    data: BalanceSnapshot
    status: TransactionStatus


class BankSession:
    def __init__(
        self,
        reader: LedgerReader,
        manager: TransactionLifecycleManager,
        identity: IdentityProvider,
    ) -> None:
        self.reader = reader
        self.manager = manager
        self._identity = identity

    @property
    def identity(self) -> Optional[str]:
        return self._identity.current()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self.reader.snapshot, self.manager.status)

    async def refresh(self) -> SessionSnapshot:
        await self.reader.refresh()
        return self.snapshot()

    async def deposit(self, amount: AmountLike) -> SubmissionOutcome:
        return await self.manager.submit(SubmissionRequest.deposit(amount))

    async def withdraw(self, amount: AmountLike) -> SubmissionOutcome:
        return await self.manager.submit(SubmissionRequest.withdraw(amount))

    def can_deposit(self, amount: AmountLike) -> bool:
        if self.manager.status.is_busy:
            return False
        return self.identity is not None and _positive(amount)

    def can_withdraw(self, amount: AmountLike) -> bool:
        """
        Withdrawal is allowed only against a known identity balance.

        An unloaded balance (no identity, or the read failed) disallows
        withdrawal rather than being treated as zero.
        """
        if self.manager.status.is_busy:
            return False
        if self.identity is None or not _positive(amount):
            return False
        mine = self.reader.snapshot.identity
        if not mine.is_known:
            return False
        return to_decimal(amount) <= mine.amount


def _positive(amount: AmountLike) -> bool:
    try:
        return to_decimal(amount) > 0
    except ValidationError:
        return False


@asynccontextmanager
async def open_session(
    settings: Settings,
    account: Optional[LocalAccount] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[BankSession]:
    """
    Open a session against the configured node and bank contract.

    Args:
        settings: Connection and contract settings
        account: Signing account; without one the session is read-only
            and every submission fails with RejectionError
        transport: Optional httpx transport, used by tests

    Raises:
        ConfigError: If no contract address is configured
    """
    contract = BankContract(settings.require_contract(), load_abi(settings.abi_path))
    identity = AccountIdentity(account)

    async with JsonRpcClient(settings.rpc_url, transport=transport) as rpc:
        reader = LedgerReader(
            RpcQueryService(rpc), contract, identity, settings.decimals
        )
        manager = TransactionLifecycleManager(
            LocalSigner(rpc, account, settings.chain_id, settings.gas_limit),
            ReceiptWatcher(rpc, settings.poll_interval, settings.receipt_timeout),
            reader,
            contract,
            settings.decimals,
        )
        yield BankSession(reader, manager, identity)
