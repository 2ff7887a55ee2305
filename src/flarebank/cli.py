"""
FlareBank CLI

Command-line client for a simple bank contract on Flare.

Commands:
  balance   - Show bank liquidity and your balance
  deposit   - Deposit native tokens
  withdraw  - Withdraw native tokens
  whoami    - Show current wallet address
  info      - Show configuration
"""

from __future__ import annotations

import sys
from typing import Optional

import click

from .config import Settings
from .core.errors import ConfigError
from .logging_config import setup_logging
from .sigil.eth import FLAREBANK_DIR, get_address, load_private_key


# ============ Constants ============

VERSION = "0.1.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo(
        click.style("        F L A R E B A N K", fg="bright_white", bold=True)
        + click.style(f"   v{VERSION}", dim=True)
    )
    click.secho("      ─── Savings & Withdrawals ───", fg="cyan")
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="flarebank")
@click.option("--rpc-url", envvar="FLAREBANK_RPC", default=None, help="JSON-RPC endpoint URL")
@click.option(
    "--contract",
    envvar="BANK_CONTRACT_ADDRESS",
    default=None,
    help="Bank contract address",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--log-json", is_flag=True, help="Emit log records as JSON")
@click.pass_context
def cli(
    ctx: click.Context,
    rpc_url: Optional[str],
    contract: Optional[str],
    verbose: bool,
    log_json: bool,
) -> None:
    """FlareBank: deposit to and withdraw from a bank contract."""
    setup_logging("DEBUG" if verbose else "WARNING", json_output=log_json)
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = settings.with_overrides(rpc_url=rpc_url, contract_address=contract)

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.balance import balance
from .commands.transact import deposit, withdraw

cli.add_command(balance)
cli.add_command(deposit)
cli.add_command(withdraw)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        pk = load_private_key()
        address = get_address(pk)
        click.echo(f"Address: {address}")
    except ValueError:
        click.echo("No wallet found.")
        click.echo(f"Set PRIVATE_KEY in {FLAREBANK_DIR / '.env'}.")
        sys.exit(1)


# ============ Info ============


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Show configuration."""
    _print_banner()

    click.secho("  Configuration ──────────────────────────", fg="cyan")
    click.echo()

    rows = [
        ("RPC URL:    ", settings.rpc_url),
        ("Chain ID:   ", str(settings.chain_id)),
        ("Contract:   ", settings.contract_address),
        ("ABI:        ", settings.abi_path or "embedded"),
        ("Decimals:   ", str(settings.decimals)),
        ("Poll every: ", f"{settings.poll_interval}s"),
        (
            "Timeout:    ",
            f"{settings.receipt_timeout}s" if settings.receipt_timeout else "none",
        ),
    ]
    for label, value in rows:
        if value:
            styled = click.style(value, fg="bright_white")
        else:
            styled = click.style("not set", fg="yellow")
        click.echo(click.style(f"  {label}", dim=True) + styled)

    try:
        address = get_address(load_private_key())
        wallet = click.style(address, fg="bright_white")
    except ValueError:
        wallet = click.style("not configured", fg="yellow")
    click.echo(click.style("  Wallet:     ", dim=True) + wallet)
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """FlareBank CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
