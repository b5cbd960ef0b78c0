"""Sync CLI commands."""

from __future__ import annotations

import click

from moneysync.cli.common import format_sync_result, get_identity, run_session


@click.group()
def sync() -> None:
    """Sync commands."""


@sync.command("run")
@click.pass_context
def run_sync(ctx: click.Context) -> None:
    """Sign in and run a full sync pass.

    Requires the global --user-id option. Example:
        moneysync --user-id user_123 sync run
    """
    if get_identity(ctx) is None:
        raise click.UsageError("sync run requires --user-id")

    async def action(orchestrator):
        return orchestrator.owner_id

    owner_id, first_sync = run_session(ctx, action)
    if owner_id is None:
        click.echo("Remote backend unavailable; data stays local.")
        return
    click.echo(format_sync_result(first_sync))


@sync.command("pending")
@click.pass_context
def list_pending(ctx: click.Context) -> None:
    """List transaction ids waiting for remote deletion."""

    async def action(orchestrator):
        return await orchestrator.store.get_pending_deletes()

    pending, _ = run_session(ctx, action)
    if not pending:
        click.echo("No pending deletes.")
        return
    for transaction_id in pending:
        click.echo(transaction_id)
