from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..utils import AmountLike


class SubmissionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


@dataclass(frozen=True)
class SubmissionRequest:
    kind: SubmissionKind
    amount: AmountLike

    @classmethod
    def deposit(cls, amount: AmountLike) -> "SubmissionRequest":
        return cls(SubmissionKind.DEPOSIT, amount)

    @classmethod
    def withdraw(cls, amount: AmountLike) -> "SubmissionRequest":
        return cls(SubmissionKind.WITHDRAW, amount)


@dataclass(frozen=True)
class CallSpec:
    """A state-changing contract call handed to the broadcaster."""

    contract_address: str
    function_name: str
    args: tuple[Any, ...] = ()
    value: int = 0
    abi: list[dict[str, Any]] = field(default_factory=list, compare=False, repr=False)


@dataclass(frozen=True)
class ViewSpec:
    """A read-only contract call handed to the query service."""

    contract_address: str
    function_name: str
    args: tuple[Any, ...] = ()
    abi: list[dict[str, Any]] = field(default_factory=list, compare=False, repr=False)


@dataclass(frozen=True)
class TransactionHandle:
    tx_hash: str

    def __str__(self) -> str:
        return self.tx_hash


class SignalKind(str, Enum):
    PENDING = "pending"
    INCLUDED = "included"
    EXECUTION_FAILED = "execution_failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SignalKind.PENDING


@dataclass(frozen=True)
class ConfirmationSignal:
    kind: SignalKind
    receipt: Optional[dict[str, Any]] = None

    @classmethod
    def pending(cls) -> "ConfirmationSignal":
        return cls(SignalKind.PENDING)

    @classmethod
    def included(cls, receipt: Optional[dict[str, Any]] = None) -> "ConfirmationSignal":
        return cls(SignalKind.INCLUDED, receipt)

    @classmethod
    def execution_failed(cls, receipt: Optional[dict[str, Any]] = None) -> "ConfirmationSignal":
        return cls(SignalKind.EXECUTION_FAILED, receipt)


@dataclass(frozen=True)
class BankContract:
    """Address and ABI of the bank contract plus its function names."""

    address: str
    abi: list[dict[str, Any]] = field(default_factory=list, compare=False, repr=False)
    aggregate_function: str = "getBankBalance"
    identity_function: str = "getMyBalance"
    deposit_function: str = "deposit"
    withdraw_function: str = "withdraw"

    def aggregate_view(self) -> ViewSpec:
        return ViewSpec(self.address, self.aggregate_function, (), self.abi)

    def identity_view(self) -> ViewSpec:
        return ViewSpec(self.address, self.identity_function, (), self.abi)

    def deposit_call(self, amount: int) -> CallSpec:
        # payable: the amount travels as transferred value
        return CallSpec(self.address, self.deposit_function, (), amount, self.abi)

    def withdraw_call(self, amount: int) -> CallSpec:
        return CallSpec(self.address, self.withdraw_function, (amount,), 0, self.abi)
