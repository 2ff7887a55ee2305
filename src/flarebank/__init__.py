__all__ = [
    # Core
    "BalanceSnapshot",
    "LedgerReader",
    "Reading",
    "ReadingStatus",
    "LifecycleStage",
    "LifecycleState",
    "SubmissionOutcome",
    "TransactionLifecycleManager",
    "TransactionStatus",
    # Models
    "BankContract",
    "CallSpec",
    "ConfirmationSignal",
    "SignalKind",
    "SubmissionKind",
    "SubmissionRequest",
    "TransactionHandle",
    "ViewSpec",
    # Errors
    "BusyError",
    "ConfigError",
    "ConfirmationTimeout",
    "ExecutionFailure",
    "FlareBankError",
    "InvalidTransitionError",
    "NetworkError",
    "RejectionError",
    "RpcError",
    "ValidationError",
    # Chain
    "JsonRpcClient",
    "LocalSigner",
    "ReceiptWatcher",
    "RpcQueryService",
    "load_abi",
    # Session
    "BankSession",
    "SessionSnapshot",
    "Settings",
    "open_session",
    # Identity
    "AccountIdentity",
    "StaticIdentity",
    # Units
    "format_units",
    "parse_units",
]

from .core.errors import (
    BusyError,
    ConfigError,
    ConfirmationTimeout,
    ExecutionFailure,
    FlareBankError,
    InvalidTransitionError,
    NetworkError,
    RejectionError,
    RpcError,
    ValidationError,
)
from .core.models import (
    BankContract,
    CallSpec,
    ConfirmationSignal,
    SignalKind,
    SubmissionKind,
    SubmissionRequest,
    TransactionHandle,
    ViewSpec,
)
from .core.reader import BalanceSnapshot, LedgerReader, Reading, ReadingStatus
from .core.lifecycle import (
    LifecycleStage,
    LifecycleState,
    SubmissionOutcome,
    TransactionLifecycleManager,
    TransactionStatus,
)
from .chain.abi import load_abi
from .chain.rpc import JsonRpcClient, RpcQueryService
from .chain.tx import LocalSigner
from .chain.watcher import ReceiptWatcher
from .config import Settings
from .session import BankSession, SessionSnapshot, open_session
from .sigil.eth import AccountIdentity, StaticIdentity
from .utils import format_units, parse_units
