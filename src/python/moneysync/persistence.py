"""Persistence interfaces for MoneySync local storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from moneysync.models import Account, Category, Transaction


class LocalStore(ABC):
    """Abstract interface for the durable local key-value store.

    Every write must be durable before the coroutine returns; callers treat
    completion as safe. Failures raise ``LocalStoreError``.

    Any call may suspend. Callers that read and then write must hold their
    own lock across the sequence.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the underlying storage."""

    @abstractmethod
    def close(self) -> None:
        """Close the underlying storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Seed defaults on first start, merge new default categories later."""

    @abstractmethod
    async def get_transactions(self) -> list[Transaction]:
        """Return every stored transaction."""

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> None:
        """Insert or replace a transaction by id."""

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        """Remove a transaction; a missing id is not an error."""

    @abstractmethod
    async def set_transactions(self, transactions: list[Transaction]) -> None:
        """Replace the whole transaction collection."""

    @abstractmethod
    async def get_accounts(self) -> list[Account]:
        """Return stored accounts, or the defaults when never written."""

    @abstractmethod
    async def save_account(self, account: Account) -> None:
        """Insert or replace an account by id."""

    @abstractmethod
    async def delete_account(self, account_id: str) -> None:
        """Remove an account and every transaction that references it."""

    @abstractmethod
    async def get_categories(self) -> list[Category]:
        """Return stored categories, or the defaults when never written."""

    @abstractmethod
    async def save_category(self, category: Category) -> None:
        """Insert or replace a category by id."""

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Remove a category."""

    @abstractmethod
    async def get_pending_deletes(self) -> list[str]:
        """Return transaction ids awaiting remote deletion."""

    @abstractmethod
    async def add_pending_delete(self, transaction_id: str) -> None:
        """Queue an id for remote deletion; duplicates are ignored."""

    @abstractmethod
    async def remove_pending_deletes(self, transaction_ids: Iterable[str]) -> None:
        """Drop the given ids from the queue, keeping any others."""

    @abstractmethod
    async def clear_pending_deletes(self) -> None:
        """Empty the pending-delete queue."""

    @abstractmethod
    async def get_currency(self) -> str:
        """Return the currency symbol preference."""

    @abstractmethod
    async def save_currency(self, symbol: str) -> None:
        """Store the currency symbol preference."""
