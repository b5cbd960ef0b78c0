"""Transaction CLI commands."""

from __future__ import annotations

from dataclasses import replace

import click

from moneysync.cli.common import parse_date, parse_decimal, run_session
from moneysync.exceptions import NotFoundError
from moneysync.models import TRANSACTION_TYPES, Transaction, TransactionDTO, utc_now


@click.group()
def transaction() -> None:
    """Transaction commands."""


def _format(tx: Transaction) -> str:
    note = tx.note or ""
    to_account = tx.to_account_id or ""
    return (
        f"{tx.id}\t{tx.date.isoformat()}\t{tx.type}\t{tx.amount}"
        f"\t{tx.account_id}\t{to_account}\t{tx.category_id}\t{note}"
    )


@transaction.command("add")
@click.option("--type", "tx_type", required=True, type=click.Choice(TRANSACTION_TYPES), help="Transaction type.")
@click.option("--amount", "amount_value", required=True, help="Transaction amount.")
@click.option("--category", "category_id", required=True, help="Category id.")
@click.option("--account", "account_id", required=True, help="Source account id.")
@click.option("--to-account", "to_account_id", default=None, help="Destination account id for transfers.")
@click.option("--date", "date_value", default=None, help="Transaction date in YYYY-MM-DD (defaults to today).")
@click.option("--note", default=None, help="Free-text note.")
@click.option("--id", "transaction_id", default=None, help="Explicit transaction id.")
@click.pass_context
def add_transaction(
    ctx: click.Context,
    tx_type: str,
    amount_value: str,
    category_id: str,
    account_id: str,
    to_account_id: str | None,
    date_value: str | None,
    note: str | None,
    transaction_id: str | None,
) -> None:
    """Add a transaction."""
    amount = parse_decimal(amount_value, "--amount")
    date = parse_date(date_value, "--date") or utc_now().date()
    try:
        dto = TransactionDTO(
            type=tx_type,
            amount=amount,
            category_id=category_id,
            account_id=account_id,
            date=date,
            to_account_id=to_account_id,
            note=note,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    async def action(orchestrator):
        return await orchestrator.add_transaction(dto.to_transaction(transaction_id))

    record, _ = run_session(ctx, action)
    click.echo(f"Added transaction {record.id}")


@transaction.command("update")
@click.argument("transaction_id")
@click.option("--amount", "amount_value", default=None, help="Updated amount.")
@click.option("--category", "category_id", default=None, help="Updated category id.")
@click.option("--date", "date_value", default=None, help="Updated date in YYYY-MM-DD.")
@click.option("--note", default=None, help="Updated note.")
@click.pass_context
def update_transaction(
    ctx: click.Context,
    transaction_id: str,
    amount_value: str | None,
    category_id: str | None,
    date_value: str | None,
    note: str | None,
) -> None:
    """Update fields of an existing transaction."""
    amount = parse_decimal(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    if amount is not None and amount < 0:
        raise click.BadParameter("Amount must not be negative.", param_hint="--amount")

    async def action(orchestrator):
        existing = next(
            (tx for tx in orchestrator.state.transactions if tx.id == transaction_id),
            None,
        )
        if existing is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        changes = {}
        if amount is not None:
            changes["amount"] = amount
        if category_id is not None:
            changes["category_id"] = category_id
        if date is not None:
            changes["date"] = date
        if note is not None:
            changes["note"] = note or None
        return await orchestrator.update_transaction(replace(existing, **changes))

    try:
        record, _ = run_session(ctx, action)
    except NotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Updated transaction {record.id}")


@transaction.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete_transaction(ctx: click.Context, transaction_id: str, yes: bool) -> None:
    """Delete a transaction."""
    if not yes:
        if not click.confirm(f"Delete transaction {transaction_id}?", default=False):
            click.echo("Cancelled")
            return

    async def action(orchestrator):
        await orchestrator.remove_transaction(transaction_id)

    run_session(ctx, action)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction.command("list")
@click.option("--account", "account_id", default=None, help="Filter by account id.")
@click.option("--limit", type=int, default=None, help="Limit results.")
@click.pass_context
def list_transactions(ctx: click.Context, account_id: str | None, limit: int | None) -> None:
    """List transactions, newest first."""

    async def action(orchestrator):
        return list(orchestrator.state.transactions)

    records, _ = run_session(ctx, action)
    if account_id:
        records = [
            tx for tx in records if account_id in (tx.account_id, tx.to_account_id)
        ]
    records.sort(key=lambda tx: (tx.date, tx.created_at or ""), reverse=True)
    if limit is not None:
        records = records[:limit]
    for record in records:
        click.echo(_format(record))
