"""Currency preference CLI commands."""

from __future__ import annotations

import click

from moneysync.cli.common import run_session


@click.group()
def currency() -> None:
    """Currency symbol commands."""


@currency.command("get")
@click.pass_context
def get_currency(ctx: click.Context) -> None:
    """Show the currency symbol."""

    async def action(orchestrator):
        return await orchestrator.store.get_currency()

    symbol, _ = run_session(ctx, action)
    click.echo(symbol)


@currency.command("set")
@click.argument("symbol")
@click.pass_context
def set_currency(ctx: click.Context, symbol: str) -> None:
    """Set the currency symbol."""
    if not symbol.strip():
        raise click.BadParameter("Symbol must not be empty.", param_hint="SYMBOL")

    async def action(orchestrator):
        await orchestrator.store.save_currency(symbol.strip())

    run_session(ctx, action)
    click.echo(f"Currency set to {symbol.strip()}")
