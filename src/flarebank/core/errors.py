"""
Error taxonomy for ledger reads and transaction submissions.

Every error carries an ``exit_code`` so the CLI can map failures onto
distinct process exit statuses.
"""

from __future__ import annotations


class FlareBankError(RuntimeError):
    exit_code: int = 1


class ConfigError(FlareBankError):
    exit_code = 1


class ValidationError(FlareBankError):
    """Malformed or non-positive amount; rejected before any state change."""

    exit_code = 2


class BusyError(FlareBankError):
    """A transaction is already in flight for this manager."""

    exit_code = 3


class RejectionError(FlareBankError):
    """The signer declined or the node refused the transaction."""

    exit_code = 4


class RpcError(RejectionError):
    """JSON-RPC response carried an ``error`` object."""

    def __init__(self, method: str, code: int | None, message: str, data=None):
        self.method = method
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC[{method}] code={code} msg={message!r}")


class NetworkError(FlareBankError):
    """Transport failure talking to the node."""

    exit_code = 5


class ConfirmationTimeout(NetworkError):
    pass


class ExecutionFailure(FlareBankError):
    """Transaction was included but reverted."""

    exit_code = 6

    def __init__(self, tx_hash: str, receipt: dict | None = None):
        self.tx_hash = tx_hash
        self.receipt = receipt or {}
        super().__init__(f"Transaction {tx_hash} reverted")


class InvalidTransitionError(FlareBankError):
    pass
