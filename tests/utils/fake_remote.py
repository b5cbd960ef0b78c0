from __future__ import annotations

from collections.abc import Iterable, Sequence
import asyncio

from moneysync.merge import is_newer_or_equal
from moneysync.models import Account, Category, Transaction


class FakeRemote:
    """In-memory stand-in for RemoteTransport with failure switches.

    Rows are kept per id with last-writer-wins on upsert, like the remote
    table trigger. Every call is recorded in ``calls``.
    """

    def __init__(self, owner_id: str | None = "owner-1", configured: bool = True) -> None:
        self.configured = configured
        self.owner_id = owner_id
        self.rows: dict[str, Transaction] = {}
        self.owners: dict[str, str] = {}
        self.pushed_rows: list[dict] = []
        self.calls: list[str] = []
        self.fail_push = False
        self.fail_delete = False
        self.fail_fetch = False
        self.fail_profile = False
        self.push_gate: asyncio.Event | None = None
        self.stale_fetch: list[Transaction] | None = None
        self.closed = False

    def seed(self, *transactions: Transaction) -> None:
        for tx in transactions:
            self.rows[tx.id] = tx

    def _upsert(self, tx: Transaction) -> None:
        existing = self.rows.get(tx.id)
        if existing is None or is_newer_or_equal(tx, existing):
            self.rows[tx.id] = tx

    async def fetch_remote_transactions(self, owner_id: str) -> list[Transaction]:
        self.calls.append("fetch")
        await asyncio.sleep(0)
        if self.fail_fetch:
            return []
        if self.stale_fetch is not None:
            return list(self.stale_fetch)
        return list(self.rows.values())

    async def push_transaction(
        self,
        tx: Transaction,
        owner_id: str,
        categories: Iterable[Category],
        accounts: Iterable[Account],
    ) -> bool:
        self.calls.append("push")
        await asyncio.sleep(0)
        if self.fail_push:
            return False
        self._upsert(tx)
        return True

    async def push_transactions_batch(
        self,
        transactions: Sequence[Transaction],
        owner_id: str,
        categories: Iterable[Category],
        accounts: Iterable[Account],
    ) -> bool:
        self.calls.append("push_batch")
        if self.push_gate is not None:
            await self.push_gate.wait()
        await asyncio.sleep(0)
        if self.fail_push:
            return False
        for tx in transactions:
            self._upsert(tx)
        return True

    async def delete_remote_transaction(self, transaction_id: str) -> bool:
        self.calls.append("delete")
        await asyncio.sleep(0)
        if self.fail_delete:
            return False
        self.rows.pop(transaction_id, None)
        return True

    async def delete_remote_transactions_batch(self, transaction_ids: Sequence[str]) -> bool:
        self.calls.append("delete_batch")
        await asyncio.sleep(0)
        if self.fail_delete:
            return False
        for transaction_id in transaction_ids:
            self.rows.pop(transaction_id, None)
        return True

    async def upsert_owner_profile(
        self,
        external_id: str,
        full_name: str | None,
        email: str | None,
        avatar_url: str | None,
    ) -> str | None:
        self.calls.append("profile")
        await asyncio.sleep(0)
        if self.fail_profile or not self.configured:
            return None
        return self.owners.setdefault(external_id, self.owner_id or f"owner-{external_id}")

    def close(self) -> None:
        self.closed = True
