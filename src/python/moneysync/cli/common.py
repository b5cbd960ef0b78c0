"""Shared CLI helpers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from decimal import Decimal, InvalidOperation
from typing import TypeVar
import asyncio
import datetime as dt

import click

from moneysync.client import MoneySyncClient
from moneysync.exceptions import LocalStoreError
from moneysync.models import ExternalIdentity
from moneysync.sync import SyncOrchestrator, SyncResult

T = TypeVar("T")


def parse_date(value: str | None, field_name: str) -> dt.date | None:
    """Parse an ISO date string into a date."""
    if value is None:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM-DD format.", param_hint=field_name) from exc


def parse_decimal(value: str | None, field_name: str) -> Decimal | None:
    """Parse a decimal string into a Decimal."""
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise click.BadParameter("Use a valid decimal value.", param_hint=field_name) from exc


def get_identity(ctx: click.Context) -> ExternalIdentity | None:
    """Build the external identity from global options, if one was given."""
    payload = ctx.obj or {}
    if not payload.get("user_id"):
        return None
    return ExternalIdentity(
        id=payload["user_id"],
        full_name=payload.get("full_name"),
        email=payload.get("email"),
        avatar_url=payload.get("avatar_url"),
    )


def get_client(ctx: click.Context) -> MoneySyncClient:
    """Build a MoneySync client from Click context."""
    payload = ctx.obj or {}
    return MoneySyncClient(
        db_path=payload.get("db_path"),
        config_path=payload.get("config_path"),
    )


def run_session(
    ctx: click.Context,
    action: Callable[[SyncOrchestrator], Awaitable[T]],
) -> tuple[T, SyncResult | None]:
    """Open a session, sign in or go guest, run ``action`` and close.

    Background propagation started by ``action`` is awaited before the
    session closes. Local store failures become click errors.
    """

    async def _run() -> tuple[T, SyncResult | None]:
        client = get_client(ctx)
        try:
            await client.open()
            first_sync = await client.start_session(get_identity(ctx))
            result = await action(client.orchestrator)
        finally:
            await client.close()
        return result, first_sync

    try:
        return asyncio.run(_run())
    except LocalStoreError as exc:
        raise click.ClickException(f"Local store failure: {exc}") from exc


def format_sync_result(result: SyncResult) -> str:
    if result.completed:
        return (
            f"Sync completed: pushed {result.pushed}, deleted {result.deleted}, "
            f"pulled {result.pulled}, merged {result.merged}"
        )
    return f"Sync {result.status}: {result.reason}"
