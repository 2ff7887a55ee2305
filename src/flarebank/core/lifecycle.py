"""
Transaction Lifecycle - One in-flight deposit/withdraw at a time.

State machine:

    Idle -> Submitting -> AwaitingConfirmation -> Confirmed
                 |                 |
                 +-> Failed <------+

Confirmed and Failed are terminal; reset() (or the next submit) returns
the manager to Idle. Entering Confirmed triggers exactly one
LedgerReader.refresh(), issued after the watcher's Included signal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..utils import DEFAULT_DECIMALS, parse_units
from .errors import (
    BusyError,
    ExecutionFailure,
    FlareBankError,
    InvalidTransitionError,
    NetworkError,
    ValidationError,
)
from .interfaces import Broadcaster, ConfirmationWatcher
from .models import (
    BankContract,
    CallSpec,
    ConfirmationSignal,
    SignalKind,
    SubmissionKind,
    SubmissionRequest,
    TransactionHandle,
)
from .reader import LedgerReader

logger = logging.getLogger(__name__)


class LifecycleStage(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        return self in (LifecycleStage.SUBMITTING, LifecycleStage.AWAITING_CONFIRMATION)

    @property
    def is_terminal(self) -> bool:
        return self in (LifecycleStage.CONFIRMED, LifecycleStage.FAILED)


_TRANSITIONS: dict[LifecycleStage, frozenset[LifecycleStage]] = {
    LifecycleStage.IDLE: frozenset({LifecycleStage.SUBMITTING}),
    LifecycleStage.SUBMITTING: frozenset(
        {LifecycleStage.AWAITING_CONFIRMATION, LifecycleStage.FAILED}
    ),
    LifecycleStage.AWAITING_CONFIRMATION: frozenset(
        {LifecycleStage.CONFIRMED, LifecycleStage.FAILED}
    ),
    LifecycleStage.CONFIRMED: frozenset({LifecycleStage.IDLE}),
    LifecycleStage.FAILED: frozenset({LifecycleStage.IDLE}),
}


@dataclass(frozen=True)
class LifecycleState:
    stage: LifecycleStage = LifecycleStage.IDLE
    request: Optional[SubmissionRequest] = None
    handle: Optional[TransactionHandle] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class TransactionStatus:
    """Read-only projection of a LifecycleState."""

    stage: LifecycleStage
    is_busy: bool
    is_submitting: bool
    is_confirming: bool
    is_confirmed: bool
    is_failed: bool
    handle: Optional[TransactionHandle]
    error: Optional[BaseException]

    @classmethod
    def from_state(cls, state: LifecycleState) -> "TransactionStatus":
        stage = state.stage
        return cls(
            stage=stage,
            is_busy=stage.is_busy,
            is_submitting=stage is LifecycleStage.SUBMITTING,
            is_confirming=stage is LifecycleStage.AWAITING_CONFIRMATION,
            is_confirmed=stage is LifecycleStage.CONFIRMED,
            is_failed=stage is LifecycleStage.FAILED,
            handle=state.handle,
            error=state.error,
        )


@dataclass(frozen=True)
class SubmissionOutcome:
    """
    Result of submit().

    ``dispatched`` is False when the request was turned away before
    reaching the broadcaster (invalid amount, transaction already in
    flight); the lifecycle state is then untouched.
    """

    dispatched: bool
    state: LifecycleState
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


StateListener = Callable[[LifecycleState], None]


class TransactionLifecycleManager:
    """
    Drives deposit/withdraw submissions through their confirmation lifecycle.

    Args:
        broadcaster: Signs and sends contract calls
        watcher: Streams confirmation signals for a transaction handle
        reader: Ledger reader refreshed once a transaction is confirmed
        contract: Bank contract the calls are addressed to
        decimals: Base-unit decimals used to convert request amounts
    """

    def __init__(
        self,
        broadcaster: Broadcaster,
        watcher: ConfirmationWatcher,
        reader: LedgerReader,
        contract: BankContract,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        self._broadcaster = broadcaster
        self._watcher = watcher
        self._reader = reader
        self._contract = contract
        self._decimals = decimals
        self._state = LifecycleState()
        self._watch_task: Optional[asyncio.Task] = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def status(self) -> TransactionStatus:
        return TransactionStatus.from_state(self._state)

    def add_listener(self, listener: StateListener) -> None:
        """Call ``listener`` with the new state after every transition."""
        self._listeners.append(listener)

    async def submit(self, request: SubmissionRequest) -> SubmissionOutcome:
        if self._state.stage.is_busy:
            return SubmissionOutcome(
                False,
                self._state,
                BusyError(f"Transaction already {self._state.stage.value}"),
            )

        try:
            amount = parse_units(request.amount, self._decimals)
            if amount <= 0:
                raise ValidationError(f"Amount must be positive: {request.amount!r}")
            call = self._build_call(request.kind, amount)
        except ValidationError as exc:
            return SubmissionOutcome(False, self._state, exc)

        if self._state.stage.is_terminal:
            self.reset()

        self._transition(LifecycleState(LifecycleStage.SUBMITTING, request=request))

        try:
            handle = await self._broadcaster.broadcast(call)
        except FlareBankError as exc:
            self._fail(exc)
            return SubmissionOutcome(True, self._state, exc)
        except Exception as exc:
            self._fail(exc)
            raise

        self._transition(
            LifecycleState(
                LifecycleStage.AWAITING_CONFIRMATION, request=request, handle=handle
            )
        )
        self._watch_task = asyncio.create_task(self._watch(handle))
        return SubmissionOutcome(True, self._state)

    async def wait_until_settled(self) -> LifecycleState:
        """Wait for the confirmation watch (and its refresh) to finish."""
        if self._watch_task is not None:
            await self._watch_task
        return self._state

    def reset(self) -> None:
        stage = self._state.stage
        if stage.is_busy:
            raise BusyError(f"Cannot reset while {stage.value}")
        if stage is LifecycleStage.IDLE:
            return
        self._watch_task = None
        self._transition(LifecycleState(LifecycleStage.IDLE))

    def _build_call(self, kind: SubmissionKind, amount: int) -> CallSpec:
        if kind is SubmissionKind.DEPOSIT:
            return self._contract.deposit_call(amount)
        if kind is SubmissionKind.WITHDRAW:
            return self._contract.withdraw_call(amount)
        raise ValidationError(f"Unknown submission kind: {kind!r}")

    async def _watch(self, handle: TransactionHandle) -> None:
        try:
            signal = await self._terminal_signal(handle)
        except FlareBankError as exc:
            self._fail(exc)
            return
        except Exception as exc:
            self._fail(exc)
            raise

        if signal is None:
            self._fail(NetworkError(f"Watcher closed before {handle} settled"))
        elif signal.kind is SignalKind.INCLUDED:
            self._transition(
                LifecycleState(
                    LifecycleStage.CONFIRMED,
                    request=self._state.request,
                    handle=handle,
                )
            )
            await self._reader.refresh()
        else:
            self._fail(ExecutionFailure(handle.tx_hash, signal.receipt))

    async def _terminal_signal(
        self, handle: TransactionHandle
    ) -> Optional[ConfirmationSignal]:
        stream = self._watcher.signals(handle)
        try:
            async for signal in stream:
                if signal.kind.is_terminal:
                    return signal
                logger.debug("Transaction %s pending", handle)
            return None
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def _fail(self, error: BaseException) -> None:
        self._transition(
            LifecycleState(
                LifecycleStage.FAILED,
                request=self._state.request,
                handle=self._state.handle,
                error=error,
            )
        )

    def _transition(self, new_state: LifecycleState) -> None:
        current = self._state.stage
        if new_state.stage not in _TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Illegal transition {current.value} -> {new_state.stage.value}"
            )
        self._state = new_state
        logger.debug("Lifecycle %s -> %s", current.value, new_state.stage.value)
        for listener in self._listeners:
            listener(new_state)
