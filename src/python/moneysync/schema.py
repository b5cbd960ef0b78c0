"""Storage keys and remote schema constants."""

from __future__ import annotations

STORAGE_PREFIX = "mymoney_"

KEY_TRANSACTIONS = f"{STORAGE_PREFIX}transactions"
KEY_ACCOUNTS = f"{STORAGE_PREFIX}accounts"
KEY_CATEGORIES = f"{STORAGE_PREFIX}categories"
KEY_INITIALIZED = f"{STORAGE_PREFIX}initialized"
KEY_PENDING_DELETES = f"{STORAGE_PREFIX}pending_deletes"
KEY_CURRENCY = f"{STORAGE_PREFIX}currency"

STORAGE_KEYS = {
    "transactions": KEY_TRANSACTIONS,
    "accounts": KEY_ACCOUNTS,
    "categories": KEY_CATEGORIES,
    "initialized": KEY_INITIALIZED,
    "pending_deletes": KEY_PENDING_DELETES,
    "currency": KEY_CURRENCY,
}

DEFAULT_CURRENCY_SYMBOL = "$"

KV_TABLE = "kv_store"
KV_TABLE_DDL = (
    f"CREATE TABLE IF NOT EXISTS {KV_TABLE} ("
    "key TEXT PRIMARY KEY NOT NULL, "
    "value TEXT NOT NULL, "
    "updated_at TEXT NOT NULL)"
)

REMOTE_TRANSACTIONS_TABLE = "transactions"
REMOTE_USERS_TABLE = "users"
REMOTE_USERS_CONFLICT_COLUMN = "clerk_id"
REMOTE_TRANSACTIONS_CONFLICT_COLUMN = "id"

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "category_id",
    "category_name",
    "account_id",
    "account_name",
    "to_account_id",
    "note",
    "date",
    "created_at",
    "updated_at",
]

USER_COLUMNS = [
    "clerk_id",
    "full_name",
    "email",
    "avatar_url",
    "last_sign_in",
]
