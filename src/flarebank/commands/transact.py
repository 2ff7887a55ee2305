"""
Deposit / Withdraw - Submit a bank transaction and follow it to settlement.

Flow:
1. Load the local signing key and refresh balances
2. Check the amount (positive; for withdrawals, covered by the known balance)
3. Submit and print each lifecycle transition
4. On confirmation, print the refreshed balances
"""

from __future__ import annotations

import asyncio
import sys

import click

from ..config import Settings
from ..core.errors import ConfigError, FlareBankError
from ..core.lifecycle import LifecycleStage, LifecycleState
from ..core.models import SubmissionKind, SubmissionRequest
from ..logging_config import get_logger
from ..session import SessionSnapshot, open_session
from .common import SYMBOL, echo_balances, require_account

logger = get_logger("commands.transact")


def _echo_state(state: LifecycleState) -> None:
    if state.stage is LifecycleStage.SUBMITTING:
        click.echo("  Waiting for signature and broadcast...")
    elif state.stage is LifecycleStage.AWAITING_CONFIRMATION:
        click.echo(click.style("  TX: ", dim=True) + str(state.handle))
        click.echo("  Waiting for confirmation...")


async def _submit(
    settings: Settings, kind: SubmissionKind, amount: str
) -> tuple[LifecycleState, SessionSnapshot, str | None]:
    async with open_session(settings, require_account()) as session:
        await session.refresh()

        if kind is SubmissionKind.DEPOSIT:
            allowed = session.can_deposit(amount)
            reason = "Amount must be a positive number."
        else:
            allowed = session.can_withdraw(amount)
            reason = (
                "Amount must be positive and not exceed your known balance "
                f"({session.reader.snapshot.identity.display()} {SYMBOL})."
            )
        if not allowed:
            raise click.ClickException(reason)

        session.manager.add_listener(_echo_state)
        outcome = await session.manager.submit(SubmissionRequest(kind, amount))
        if not outcome.dispatched:
            raise click.ClickException(str(outcome.error))

        state = await session.manager.wait_until_settled()
        return state, session.snapshot(), session.identity


def _run_transaction(settings: Settings, kind: SubmissionKind, amount: str) -> None:
    title = "Deposit" if kind is SubmissionKind.DEPOSIT else "Withdraw"
    click.echo(f"=== {title} {amount} {SYMBOL} ===")
    click.echo()

    try:
        state, snapshot, identity = asyncio.run(_submit(settings, kind, amount))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo()
    if state.stage is LifecycleStage.CONFIRMED:
        click.secho(f"  {title} confirmed!", fg="green", bold=True)
        click.echo()
        echo_balances(snapshot.data, identity)
        click.echo()
        return

    error = state.error
    logger.debug("%s ended in %s: %r", title, state.stage.value, error)
    click.secho(f"  {title} failed: {error}", fg="red")
    if state.handle is not None:
        click.echo(click.style("  TX: ", dim=True) + str(state.handle))
    sys.exit(error.exit_code if isinstance(error, FlareBankError) else 1)


@click.command()
@click.argument("amount")
@click.pass_obj
def deposit(settings: Settings, amount: str) -> None:
    """Deposit AMOUNT into the bank."""
    _run_transaction(settings, SubmissionKind.DEPOSIT, amount)


@click.command()
@click.argument("amount")
@click.pass_obj
def withdraw(settings: Settings, amount: str) -> None:
    """Withdraw AMOUNT from the bank."""
    _run_transaction(settings, SubmissionKind.WITHDRAW, amount)
