"""
Balance - Show the bank's total liquidity and the personal balance.
"""

from __future__ import annotations

import asyncio

import click

from ..config import Settings
from ..core.errors import ConfigError
from ..session import SessionSnapshot, open_session
from .common import echo_balances, optional_account


@click.command()
@click.pass_obj
def balance(settings: Settings) -> None:
    """Show bank liquidity and your balance."""
    account = optional_account()

    async def _run() -> tuple[SessionSnapshot, str | None]:
        async with open_session(settings, account) as session:
            return await session.refresh(), session.identity

    try:
        snapshot, identity = asyncio.run(_run())
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo("=== Simple Bank ===")
    click.echo()
    echo_balances(snapshot.data, identity)
    if identity is None:
        click.echo()
        click.secho("  No wallet configured; personal balance unavailable.", fg="yellow")
    click.echo()
