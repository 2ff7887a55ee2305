"""BankSession: combined snapshot and caller-side submission checks."""

from __future__ import annotations

from decimal import Decimal

import pytest

from flarebank.core.errors import RejectionError
from flarebank.core.lifecycle import LifecycleStage
from flarebank.core.reader import ReadingStatus
from flarebank.session import BankSession
from flarebank.sigil.eth import StaticIdentity

from .conftest import FakeChain

pytestmark = pytest.mark.anyio


@pytest.fixture()
def session(reader, manager, identity: StaticIdentity) -> BankSession:
    return BankSession(reader, manager, identity)


class TestSnapshot:
    async def test_combined_snapshot_before_refresh(self, session: BankSession) -> None:
        snap = session.snapshot()
        assert snap.data.aggregate.status is ReadingStatus.UNKNOWN
        assert snap.status.stage is LifecycleStage.IDLE

    async def test_refresh_returns_combined_snapshot(self, session: BankSession) -> None:
        snap = await session.refresh()
        assert snap.data.as_display() == {"bankBalance": "100", "myBalance": "40"}
        assert not snap.status.is_busy

    async def test_deposit_flow(self, session: BankSession, chain: FakeChain) -> None:
        await session.refresh()
        outcome = await session.deposit("10")
        assert outcome.dispatched
        assert session.snapshot().status.is_confirming

        chain.include(outcome.state.handle)
        await session.manager.wait_until_settled()

        snap = session.snapshot()
        assert snap.status.is_confirmed
        assert snap.data.aggregate_balance == Decimal(110)
        assert snap.data.identity_balance == Decimal(50)

    async def test_declined_deposit_leaves_balances(self, session: BankSession, chain: FakeChain) -> None:
        await session.refresh()
        chain.broadcast_error = RejectionError("User declined")
        outcome = await session.deposit("10")

        snap = session.snapshot()
        assert snap.status.is_failed
        assert snap.status.error is outcome.error
        assert snap.data.as_display() == {"bankBalance": "100", "myBalance": "40"}


class TestCallerChecks:
    async def test_can_deposit(self, session: BankSession) -> None:
        assert session.can_deposit("1")
        assert not session.can_deposit("0")
        assert not session.can_deposit("")
        assert not session.can_deposit("abc")

    async def test_can_withdraw_requires_loaded_balance(self, session: BankSession) -> None:
        assert not session.can_withdraw("1")
        await session.refresh()
        assert session.can_withdraw("40")
        assert not session.can_withdraw("40.000001")
        assert not session.can_withdraw("0")

    async def test_no_identity_disallows_withdrawal(
        self, session: BankSession, identity: StaticIdentity
    ) -> None:
        identity.unbind()
        snap = await session.refresh()
        assert snap.data.identity.status is ReadingStatus.UNKNOWN
        assert snap.data.identity_balance == Decimal(0)
        assert not session.can_withdraw("0.1")
        assert not session.can_deposit("1")

    async def test_identity_change_between_calls(
        self, session: BankSession, identity: StaticIdentity
    ) -> None:
        await session.refresh()
        identity.bind("0x0000000000000000000000000000000000000b0b")
        snap = await session.refresh()
        assert snap.data.identity_balance == Decimal(60)

    async def test_in_flight_transaction_disables_both_actions(
        self, session: BankSession, chain: FakeChain
    ) -> None:
        await session.refresh()
        outcome = await session.deposit("1")
        assert session.snapshot().status.is_busy
        assert not session.can_deposit("1")
        assert not session.can_withdraw("1")

        chain.include(outcome.state.handle)
        await session.manager.wait_until_settled()
        assert session.can_deposit("1")
        assert session.can_withdraw("1")
