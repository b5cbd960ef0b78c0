"""Account CLI commands."""

from __future__ import annotations

import click

from moneysync.cli.common import run_session


@click.group()
def account() -> None:
    """Account commands."""


@account.command("list")
@click.pass_context
def list_accounts(ctx: click.Context) -> None:
    """List all accounts with balances computed from local transactions."""

    async def action(orchestrator):
        return orchestrator.accounts_with_balance(), await orchestrator.store.get_currency()

    (accounts, symbol), _ = run_session(ctx, action)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    click.echo(f"{'Id':<20} {'Name':<25} {'Type':<12} {'Balance':>10}")
    click.echo("-" * 70)
    for item in accounts:
        click.echo(
            f"{item.id:<20} {item.name:<25} {item.account.type:<12} "
            f"{symbol}{item.balance:>9.2f}"
        )
    click.echo("-" * 70)
