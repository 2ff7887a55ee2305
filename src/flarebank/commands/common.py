from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from ..core.reader import BalanceSnapshot, Reading
from ..sigil.eth import FLAREBANK_ENV, get_account, load_private_key

SYMBOL = "FLR"


def optional_account() -> Optional[LocalAccount]:
    """Signing account if a key is configured, else None."""
    try:
        return get_account(load_private_key())
    except ValueError:
        return None


def require_account() -> LocalAccount:
    account = optional_account()
    if account is None:
        raise click.ClickException(
            f"PRIVATE_KEY not found. Set PRIVATE_KEY in {FLAREBANK_ENV} or the environment."
        )
    return account


def format_reading(reading: Reading) -> str:
    if not reading.is_known:
        return click.style("unavailable", fg="yellow")
    return click.style(f"{reading.display()} {SYMBOL}", fg="bright_white", bold=True)


def echo_balances(snapshot: BalanceSnapshot, identity: Optional[str]) -> None:
    click.echo(
        click.style("  Total Bank Liquidity: ", dim=True)
        + format_reading(snapshot.aggregate)
    )
    who = f" ({identity[:10]}...)" if identity else ""
    click.echo(
        click.style(f"  Your Balance{who}: ", dim=True)
        + format_reading(snapshot.identity)
    )
