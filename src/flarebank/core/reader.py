"""
Ledger Reader - Point-in-time reads of the bank contract.

Two quantities are read: the aggregate balance held by the contract and
the balance credited to the current identity. Raw results arrive in base
units and are converted to Decimal display quantities here.

Each read is tri-state (Unknown / Zero / Value). The published
BalanceSnapshot compresses Unknown to zero for display but keeps the
underlying readings so callers can still tell "not loaded" from "empty".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..utils import DEFAULT_DECIMALS, format_units, scale
from .errors import NetworkError, RejectionError
from .interfaces import IdentityProvider, QueryService
from .models import BankContract, ViewSpec

logger = logging.getLogger(__name__)


class ReadingStatus(str, Enum):
    UNKNOWN = "unknown"
    ZERO = "zero"
    VALUE = "value"


@dataclass(frozen=True)
class Reading:
    raw: Optional[int] = None
    decimals: int = DEFAULT_DECIMALS

    @classmethod
    def unknown(cls, decimals: int = DEFAULT_DECIMALS) -> "Reading":
        return cls(None, decimals)

    @property
    def status(self) -> ReadingStatus:
        if self.raw is None:
            return ReadingStatus.UNKNOWN
        if self.raw == 0:
            return ReadingStatus.ZERO
        return ReadingStatus.VALUE

    @property
    def is_known(self) -> bool:
        return self.raw is not None

    @property
    def amount(self) -> Decimal:
        """Decimal quantity; Unknown reads as zero."""
        if self.raw is None:
            return Decimal(0)
        return scale(Decimal(self.raw), -self.decimals)

    def display(self) -> str:
        return format_units(self.raw or 0, self.decimals)


@dataclass(frozen=True)
class BalanceSnapshot:
    aggregate: Reading = field(default_factory=Reading)
    identity: Reading = field(default_factory=Reading)

    @property
    def aggregate_balance(self) -> Decimal:
        return self.aggregate.amount

    @property
    def identity_balance(self) -> Decimal:
        return self.identity.amount

    def as_display(self) -> dict[str, str]:
        return {
            "bankBalance": self.aggregate.display(),
            "myBalance": self.identity.display(),
        }


class LedgerReader:
    """
    Reads the bank contract against the current identity context.

    Args:
        query_service: Performs the read-only contract calls
        contract: Bank contract address and ABI
        identity_provider: Supplies the bound identity, or None
        decimals: Base-unit decimals of the ledger's native quantity
    """

    def __init__(
        self,
        query_service: QueryService,
        contract: BankContract,
        identity_provider: IdentityProvider,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        self._query = query_service
        self._contract = contract
        self._identity = identity_provider
        self._decimals = decimals
        self._snapshot = BalanceSnapshot(
            Reading.unknown(decimals), Reading.unknown(decimals)
        )
        self._generation = 0

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self._snapshot

    @property
    def decimals(self) -> int:
        return self._decimals

    async def read_aggregate_balance(self) -> Reading:
        return await self._read(self._contract.aggregate_view(), None)

    async def read_identity_balance(self, identity: Optional[str] = None) -> Reading:
        identity = identity or self._identity.current()
        if not identity:
            return Reading.unknown(self._decimals)
        return await self._read(self._contract.identity_view(), identity)

    async def refresh(self) -> BalanceSnapshot:
        """
        Re-issue both reads and publish them as one new snapshot.

        Overlapping refreshes publish in start order: a refresh that
        finishes after a later one has started is discarded, and the
        current snapshot is returned instead.
        """
        self._generation += 1
        generation = self._generation
        identity = self._identity.current()
        aggregate, mine = await asyncio.gather(
            self.read_aggregate_balance(),
            self.read_identity_balance(identity),
        )
        if generation != self._generation:
            logger.debug("Discarding superseded refresh #%d", generation)
            return self._snapshot
        self._snapshot = BalanceSnapshot(aggregate, mine)
        logger.debug(
            "Snapshot refreshed: aggregate=%s identity=%s (%s)",
            aggregate.status.value,
            mine.status.value,
            identity or "no identity",
        )
        return self._snapshot

    async def _read(self, view: ViewSpec, identity: Optional[str]) -> Reading:
        try:
            raw = await self._query.call(view, identity)
        except (NetworkError, RejectionError, ValueError) as exc:
            logger.debug("Read %s unavailable: %s", view.function_name, exc)
            return Reading.unknown(self._decimals)
        if raw is None:
            return Reading.unknown(self._decimals)
        return Reading(int(raw), self._decimals)
