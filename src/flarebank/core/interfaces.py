"""
Collaborator interfaces consumed by the core.

The core never talks to a node directly; it is handed objects satisfying
these protocols so it can be driven without a live wallet or network.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional, Protocol

from .models import CallSpec, ConfirmationSignal, TransactionHandle, ViewSpec


class QueryService(Protocol):
    async def call(self, view: ViewSpec, identity: Optional[str] = None) -> Optional[int]:
        """Return the raw integer result, or None when nothing came back."""
        ...


class Broadcaster(Protocol):
    async def broadcast(self, call: CallSpec) -> TransactionHandle:
        """Sign and send; raises RejectionError or NetworkError."""
        ...


class ConfirmationWatcher(Protocol):
    def signals(self, handle: TransactionHandle) -> AsyncIterator[ConfirmationSignal]:
        ...


class IdentityProvider(Protocol):
    def current(self) -> Optional[str]:
        ...
