"""Integration tests for the SQLite local store."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from pathlib import Path
import sqlite3

import pytest

from moneysync.defaults import DEFAULT_EXPENSE_CATEGORIES, DEFAULT_INCOME_CATEGORIES
from moneysync.exceptions import LocalStoreError
from moneysync.models import Category
from moneysync.repository import Repository
from moneysync.schema import KEY_CATEGORIES, KEY_PENDING_DELETES, KV_TABLE
from tests.utils.builders import make_account, make_transaction

pytestmark = pytest.mark.sit


def test_initialize_seeds_defaults(repository: Repository) -> None:
    asyncio.run(repository.initialize())

    accounts = asyncio.run(repository.get_accounts())
    categories = asyncio.run(repository.get_categories())

    assert [account.id for account in accounts] == ["acc-cash", "acc-bank", "acc-card"]
    assert accounts[0].initial_balance == Decimal("500")
    assert len(categories) == len(DEFAULT_EXPENSE_CATEGORIES) + len(DEFAULT_INCOME_CATEGORIES)
    assert asyncio.run(repository.get_transactions()) == []


def test_initialize_adds_missing_default_categories(repository: Repository) -> None:
    asyncio.run(repository.initialize())
    custom = Category(id="cat-custom", name="Custom", type="expense")
    asyncio.run(repository.save_category(custom))
    asyncio.run(repository.delete_category("cat-pets"))

    asyncio.run(repository.initialize())

    ids = [category.id for category in asyncio.run(repository.get_categories())]
    assert "cat-custom" in ids
    assert "cat-pets" in ids
    assert len(ids) == len(set(ids))


def test_get_collections_fall_back_to_defaults(repository: Repository) -> None:
    assert len(asyncio.run(repository.get_accounts())) == 3
    assert len(asyncio.run(repository.get_categories())) > 0
    assert asyncio.run(repository.get_transactions()) == []
    assert asyncio.run(repository.get_currency()) == "$"


def test_empty_saved_accounts_are_not_replaced_by_defaults(repository: Repository) -> None:
    asyncio.run(repository.initialize())
    for account_id in ("acc-cash", "acc-bank", "acc-card"):
        asyncio.run(repository.delete_account(account_id))

    assert asyncio.run(repository.get_accounts()) == []


def test_save_transaction_upserts_by_id(repository: Repository) -> None:
    asyncio.run(repository.save_transaction(make_transaction("t1", amount="50")))
    asyncio.run(repository.save_transaction(make_transaction("t2")))
    asyncio.run(repository.save_transaction(make_transaction("t1", amount="75")))

    stored = asyncio.run(repository.get_transactions())

    assert [tx.id for tx in stored] == ["t1", "t2"]
    assert stored[0].amount == Decimal("75")


def test_delete_and_set_transactions(repository: Repository) -> None:
    asyncio.run(repository.set_transactions([make_transaction("a"), make_transaction("b")]))
    asyncio.run(repository.delete_transaction("a"))
    asyncio.run(repository.delete_transaction("missing"))

    assert [tx.id for tx in asyncio.run(repository.get_transactions())] == ["b"]


def test_writes_survive_reopen(store_path: Path) -> None:
    repo = Repository(store_path)
    repo.connect()
    asyncio.run(repo.save_transaction(make_transaction("t1", note="lunch")))
    asyncio.run(repo.add_pending_delete("t0"))
    asyncio.run(repo.save_currency("€"))
    repo.close()

    reopened = Repository(store_path)
    reopened.connect()
    try:
        assert asyncio.run(reopened.get_transactions())[0].note == "lunch"
        assert asyncio.run(reopened.get_pending_deletes()) == ["t0"]
        assert asyncio.run(reopened.get_currency()) == "€"
    finally:
        reopened.close()


def test_delete_account_cascades(repository: Repository) -> None:
    asyncio.run(repository.initialize())
    asyncio.run(
        repository.set_transactions(
            [
                make_transaction("t1", account_id="acc-cash"),
                make_transaction("t2", tx_type="transfer", account_id="acc-bank", to_account_id="acc-cash"),
                make_transaction("t3", account_id="acc-bank"),
            ]
        )
    )

    asyncio.run(repository.delete_account("acc-cash"))

    assert [tx.id for tx in asyncio.run(repository.get_transactions())] == ["t3"]
    assert "acc-cash" not in [a.id for a in asyncio.run(repository.get_accounts())]


def test_save_account_upserts(repository: Repository) -> None:
    asyncio.run(repository.initialize())
    asyncio.run(repository.save_account(make_account("acc-cash", initial_balance="750")))

    accounts = asyncio.run(repository.get_accounts())

    assert len(accounts) == 3
    assert accounts[0].initial_balance == Decimal("750")


def test_pending_delete_queue(repository: Repository) -> None:
    asyncio.run(repository.add_pending_delete("t1"))
    asyncio.run(repository.add_pending_delete("t2"))
    asyncio.run(repository.add_pending_delete("t1"))

    assert asyncio.run(repository.get_pending_deletes()) == ["t1", "t2"]

    asyncio.run(repository.remove_pending_deletes(["t1", "unknown"]))
    assert asyncio.run(repository.get_pending_deletes()) == ["t2"]

    asyncio.run(repository.add_pending_delete("t3"))
    asyncio.run(repository.clear_pending_deletes())
    assert asyncio.run(repository.get_pending_deletes()) == []


def test_removing_last_pending_delete_drops_key(repository: Repository) -> None:
    asyncio.run(repository.add_pending_delete("t1"))
    asyncio.run(repository.remove_pending_deletes(["t1"]))

    row = repository.connection.execute(
        f"SELECT value FROM {KV_TABLE} WHERE key = ?", (KEY_PENDING_DELETES,)
    ).fetchone()
    assert row is None


def test_corrupt_document_raises(repository: Repository) -> None:
    with repository.connection:
        repository.connection.execute(
            f"INSERT INTO {KV_TABLE} (key, value, updated_at) VALUES (?, ?, ?)",
            (KEY_CATEGORIES, "{not json", "2026-03-05T10:00:00.000Z"),
        )

    with pytest.raises(LocalStoreError) as excinfo:
        asyncio.run(repository.get_categories())
    assert excinfo.value.key == KEY_CATEGORIES


def test_requires_connection(store_path: Path) -> None:
    repo = Repository(store_path)

    with pytest.raises(LocalStoreError):
        asyncio.run(repo.get_transactions())


def test_connect_failure_is_local_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    repo = Repository(blocker / "nested" / "moneysync.db")

    with pytest.raises(LocalStoreError):
        repo.connect()


def test_in_memory_store() -> None:
    repo = Repository(":memory:")
    repo.connect()
    try:
        asyncio.run(repo.save_transaction(make_transaction("t1")))
        assert len(asyncio.run(repo.get_transactions())) == 1
    finally:
        repo.close()


def test_store_uses_one_table(store_path: Path, repository: Repository) -> None:
    asyncio.run(repository.initialize())

    with sqlite3.connect(store_path) as conn:
        tables = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]
    assert tables == [KV_TABLE]
