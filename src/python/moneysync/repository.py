"""SQLite key-value repository implementation for MoneySync."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar
import json
import logging
import sqlite3

from moneysync.defaults import default_accounts, default_categories
from moneysync.exceptions import LocalStoreError
from moneysync.models import Account, Category, Transaction, format_timestamp, utc_now
from moneysync.persistence import LocalStore
from moneysync.schema import (
    DEFAULT_CURRENCY_SYMBOL,
    KEY_ACCOUNTS,
    KEY_CATEGORIES,
    KEY_CURRENCY,
    KEY_INITIALIZED,
    KEY_PENDING_DELETES,
    KEY_TRANSACTIONS,
    KV_TABLE,
    KV_TABLE_DDL,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class Repository(LocalStore):
    """SQLite-backed persistence of whole-document JSON values.

    Each key holds one JSON document that is always read and written as a
    whole. Every write commits before returning.

    The sqlite calls run on the event loop thread and never suspend; the
    connection is not shared across threads. Keep the database on local disk.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Create a repository for the given database path."""
        self.db_path = db_path if db_path == MEMORY_PATH else Path(db_path)
        self.connection: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open the database connection and create the key-value table."""
        if self.connection is not None:
            return
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.connection = sqlite3.connect(self.db_path)
            self.connection.execute("PRAGMA synchronous = FULL")
            self.connection.execute(KV_TABLE_DDL)
            self.connection.commit()
        except (OSError, sqlite3.Error) as exc:
            self.connection = None
            raise LocalStoreError(f"Failed to open local store: {exc}") from exc

    def close(self) -> None:
        """Close the database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    # -- initialization -------------------------------------------------

    async def initialize(self) -> None:
        """Seed a fresh store, or add default categories missing by id."""
        if self._read(KEY_INITIALIZED) is not None:
            await self._merge_default_categories()
            return
        self._write_many(
            {
                KEY_TRANSACTIONS: [],
                KEY_ACCOUNTS: [account.to_dict() for account in default_accounts()],
                KEY_CATEGORIES: [category.to_dict() for category in default_categories()],
                KEY_INITIALIZED: True,
            }
        )
        logger.debug("Initialized local store at %s", self.db_path)

    async def _merge_default_categories(self) -> None:
        existing = await self.get_categories()
        existing_ids = {category.id for category in existing}
        missing = [
            category for category in default_categories() if category.id not in existing_ids
        ]
        if not missing:
            return
        self._write(KEY_CATEGORIES, [category.to_dict() for category in existing + missing])
        logger.debug("Added %d new default categories", len(missing))

    # -- transactions ---------------------------------------------------

    async def get_transactions(self) -> list[Transaction]:
        """Return every stored transaction."""
        return self._decode_list(KEY_TRANSACTIONS, Transaction.from_dict, default=[])

    async def save_transaction(self, transaction: Transaction) -> None:
        """Insert or replace a transaction by id."""
        transactions = await self.get_transactions()
        self._write(KEY_TRANSACTIONS, _upsert(transactions, transaction))

    async def delete_transaction(self, transaction_id: str) -> None:
        """Remove a transaction by id."""
        transactions = await self.get_transactions()
        remaining = [tx.to_dict() for tx in transactions if tx.id != transaction_id]
        self._write(KEY_TRANSACTIONS, remaining)

    async def set_transactions(self, transactions: list[Transaction]) -> None:
        """Bulk-replace the transaction collection."""
        self._write(KEY_TRANSACTIONS, [tx.to_dict() for tx in transactions])

    # -- accounts -------------------------------------------------------

    async def get_accounts(self) -> list[Account]:
        """Return stored accounts, falling back to defaults."""
        accounts = self._decode_list(KEY_ACCOUNTS, Account.from_dict, default=None)
        if accounts is None:
            return default_accounts()
        return accounts

    async def save_account(self, account: Account) -> None:
        """Insert or replace an account by id."""
        accounts = await self.get_accounts()
        self._write(KEY_ACCOUNTS, _upsert(accounts, account))

    async def delete_account(self, account_id: str) -> None:
        """Remove an account and cascade to its transactions.

        The cascade is local only; it may remove a transaction whose id is
        also waiting in the pending-delete queue.
        """
        accounts = await self.get_accounts()
        transactions = await self.get_transactions()
        self._write_many(
            {
                KEY_ACCOUNTS: [a.to_dict() for a in accounts if a.id != account_id],
                KEY_TRANSACTIONS: [
                    tx.to_dict()
                    for tx in transactions
                    if tx.account_id != account_id and tx.to_account_id != account_id
                ],
            }
        )

    # -- categories -----------------------------------------------------

    async def get_categories(self) -> list[Category]:
        """Return stored categories, falling back to defaults."""
        categories = self._decode_list(KEY_CATEGORIES, Category.from_dict, default=None)
        if categories is None:
            return default_categories()
        return categories

    async def save_category(self, category: Category) -> None:
        """Insert or replace a category by id."""
        categories = await self.get_categories()
        self._write(KEY_CATEGORIES, _upsert(categories, category))

    async def delete_category(self, category_id: str) -> None:
        """Remove a category by id."""
        categories = await self.get_categories()
        self._write(
            KEY_CATEGORIES, [c.to_dict() for c in categories if c.id != category_id]
        )

    # -- pending deletes ------------------------------------------------

    async def get_pending_deletes(self) -> list[str]:
        """Return ids queued for remote deletion in insertion order."""
        payload = self._read(KEY_PENDING_DELETES)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise LocalStoreError("Pending deletes must be a JSON array", KEY_PENDING_DELETES)
        return [str(item) for item in payload]

    async def add_pending_delete(self, transaction_id: str) -> None:
        """Append an id unless it is already queued."""
        ids = await self.get_pending_deletes()
        if transaction_id in ids:
            return
        self._write(KEY_PENDING_DELETES, ids + [transaction_id])

    async def remove_pending_deletes(self, transaction_ids: Iterable[str]) -> None:
        """Remove only the given ids from the queue."""
        confirmed = set(transaction_ids)
        if not confirmed:
            return
        ids = await self.get_pending_deletes()
        remaining = [item for item in ids if item not in confirmed]
        if len(remaining) == len(ids):
            return
        if remaining:
            self._write(KEY_PENDING_DELETES, remaining)
        else:
            self._remove(KEY_PENDING_DELETES)

    async def clear_pending_deletes(self) -> None:
        """Empty the queue."""
        self._remove(KEY_PENDING_DELETES)

    # -- currency -------------------------------------------------------

    async def get_currency(self) -> str:
        """Return the currency symbol, defaulting to dollars."""
        payload = self._read(KEY_CURRENCY)
        return str(payload) if payload else DEFAULT_CURRENCY_SYMBOL

    async def save_currency(self, symbol: str) -> None:
        """Store the currency symbol."""
        self._write(KEY_CURRENCY, symbol)

    # -- low level ------------------------------------------------------

    def _ensure_connection(self) -> sqlite3.Connection:
        """Ensure the connection is initialized before use."""
        if self.connection is None:
            raise LocalStoreError("Repository connection is not initialized")
        return self.connection

    def _read(self, key: str) -> Any:
        connection = self._ensure_connection()
        try:
            row = connection.execute(
                f"SELECT value FROM {KV_TABLE} WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise LocalStoreError(f"Failed to read {key}: {exc}", key) from exc
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise LocalStoreError(f"Corrupt JSON stored under {key}", key) from exc

    def _decode_list(
        self,
        key: str,
        decoder: Callable[[dict[str, Any]], T],
        default: list[T] | None,
    ) -> list[T] | None:
        payload = self._read(key)
        if payload is None:
            return default
        if not isinstance(payload, list):
            raise LocalStoreError(f"{key} must be a JSON array", key)
        try:
            return [decoder(item) for item in payload]
        except (KeyError, TypeError, ValueError) as exc:
            raise LocalStoreError(f"Corrupt record stored under {key}: {exc}", key) from exc

    def _write(self, key: str, value: Any) -> None:
        self._write_many({key: value})

    def _write_many(self, values: dict[str, Any]) -> None:
        """Write several documents in one committed transaction."""
        connection = self._ensure_connection()
        stamp = format_timestamp(utc_now())
        try:
            with connection:
                connection.executemany(
                    f"INSERT INTO {KV_TABLE} (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                    "updated_at = excluded.updated_at",
                    [
                        (key, json.dumps(value, separators=(",", ":")), stamp)
                        for key, value in values.items()
                    ],
                )
        except sqlite3.Error as exc:
            raise LocalStoreError(
                f"Failed to write {', '.join(values)}: {exc}", next(iter(values), None)
            ) from exc

    def _remove(self, key: str) -> None:
        connection = self._ensure_connection()
        try:
            with connection:
                connection.execute(f"DELETE FROM {KV_TABLE} WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise LocalStoreError(f"Failed to remove {key}: {exc}", key) from exc


def _upsert(records: list[Any], record: Any) -> list[dict[str, Any]]:
    """Replace the record sharing ``record.id`` in place, or append it."""
    payload = []
    replaced = False
    for existing in records:
        if existing.id == record.id:
            payload.append(record.to_dict())
            replaced = True
        else:
            payload.append(existing.to_dict())
    if not replaced:
        payload.append(record.to_dict())
    return payload
