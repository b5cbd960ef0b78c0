"""REST transport to the hosted relational backend."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import datetime as dt
from decimal import Decimal
from typing import Any
import asyncio
import logging

import requests

from moneysync.config import DEFAULT_REQUEST_TIMEOUT_SECONDS, SyncConfig
from moneysync.exceptions import TransportError
from moneysync.models import (
    Account,
    Category,
    Transaction,
    format_timestamp,
    utc_now,
)
from moneysync.schema import (
    REMOTE_TRANSACTIONS_CONFLICT_COLUMN,
    REMOTE_TRANSACTIONS_TABLE,
    REMOTE_USERS_CONFLICT_COLUMN,
    REMOTE_USERS_TABLE,
)

logger = logging.getLogger(__name__)

REST_PATH = "rest/v1"
DELETE_CHUNK_SIZE = 100
PREFER_UPSERT = "resolution=merge-duplicates,return=minimal"
PREFER_UPSERT_RETURN = "resolution=merge-duplicates,return=representation"


def to_row(
    tx: Transaction,
    owner_id: str,
    categories: Iterable[Category],
    accounts: Iterable[Account],
) -> dict[str, Any]:
    """Encode a transaction as a remote row with denormalized names."""
    category_names = {category.id: category.name for category in categories}
    account_names = {account.id: account.name for account in accounts}
    return {
        "id": tx.id,
        "user_id": owner_id,
        "type": tx.type,
        "amount": float(tx.amount),
        "category_id": tx.category_id,
        "category_name": category_names.get(tx.category_id),
        "account_id": tx.account_id,
        "account_name": account_names.get(tx.account_id),
        "to_account_id": tx.to_account_id,
        "note": tx.note,
        "date": tx.date.isoformat(),
        "created_at": tx.created_at,
        "updated_at": tx.updated_at,
    }


def from_row(row: dict[str, Any]) -> Transaction:
    """Decode a remote row into a transaction."""
    amount = row.get("amount")
    return Transaction(
        id=str(row["id"]),
        type=str(row.get("type") or ""),
        amount=Decimal(str(amount)) if amount is not None else Decimal("0"),
        category_id=row.get("category_id") or "",
        account_id=row.get("account_id") or "",
        date=dt.date.fromisoformat(str(row["date"])[:10]),
        created_at=row.get("created_at") or None,
        updated_at=row.get("updated_at") or None,
        to_account_id=row.get("to_account_id") or None,
        note=row.get("note") or None,
    )


def _quote_in(values: Sequence[str]) -> str:
    """Build a PostgREST ``in`` filter value."""
    quoted = ",".join('"' + value.replace('"', '\\"') + '"' for value in values)
    return f"in.({quoted})"


class RemoteTransport:
    """Thin async client for the remote transactions and users tables.

    Every public call catches transport failures, logs them and returns a
    benign result: an empty list for fetches, False for writes and None for
    the profile upsert. Nothing raises out to the caller.
    """

    def __init__(
        self,
        remote_url: str | None,
        remote_key: str | None,
        timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.remote_url = remote_url.rstrip("/") if remote_url else None
        self._remote_key = remote_key
        self.timeout_seconds = timeout_seconds
        self.configured = bool(self.remote_url and self._remote_key)
        self._session = session
        if not self.configured:
            logger.info("Remote backend not configured; running local-only")

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        session: requests.Session | None = None,
    ) -> "RemoteTransport":
        return cls(
            remote_url=config.remote_url,
            remote_key=config.remote_key,
            timeout_seconds=config.request_timeout_seconds,
            session=session,
        )

    def close(self) -> None:
        """Close the HTTP session if one was opened."""
        if self._session is not None:
            self._session.close()
            self._session = None

    # -- transactions ---------------------------------------------------

    async def fetch_remote_transactions(self, owner_id: str) -> list[Transaction]:
        """Return every remote row owned by ``owner_id``, or [] on failure."""
        if not self.configured:
            return []
        try:
            rows = await self._call(
                "fetchTransactions",
                "GET",
                REMOTE_TRANSACTIONS_TABLE,
                params={"select": "*", "user_id": f"eq.{owner_id}"},
            )
        except TransportError as exc:
            self._warn(exc)
            return []
        if not isinstance(rows, list):
            logger.warning("[remote] fetchTransactions: unexpected payload %r", type(rows))
            return []
        transactions = []
        for row in rows:
            try:
                transactions.append(from_row(row))
            except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
                logger.warning("[remote] fetchTransactions: skipping malformed row: %s", exc)
        return transactions

    async def push_transaction(
        self,
        tx: Transaction,
        owner_id: str,
        categories: Iterable[Category],
        accounts: Iterable[Account],
    ) -> bool:
        """Upsert one transaction row keyed by id."""
        if not self.configured:
            return False
        try:
            await self._call(
                "pushTransaction",
                "POST",
                REMOTE_TRANSACTIONS_TABLE,
                params={"on_conflict": REMOTE_TRANSACTIONS_CONFLICT_COLUMN},
                body=to_row(tx, owner_id, categories, accounts),
                prefer=PREFER_UPSERT,
            )
        except TransportError as exc:
            self._warn(exc)
            return False
        return True

    async def push_transactions_batch(
        self,
        transactions: Sequence[Transaction],
        owner_id: str,
        categories: Iterable[Category],
        accounts: Iterable[Account],
    ) -> bool:
        """Upsert many transaction rows in one request; no-op when empty."""
        if not self.configured:
            return False
        if not transactions:
            return True
        categories = list(categories)
        accounts = list(accounts)
        rows = [to_row(tx, owner_id, categories, accounts) for tx in transactions]
        try:
            await self._call(
                "pushTransactionsBatch",
                "POST",
                REMOTE_TRANSACTIONS_TABLE,
                params={"on_conflict": REMOTE_TRANSACTIONS_CONFLICT_COLUMN},
                body=rows,
                prefer=PREFER_UPSERT,
            )
        except TransportError as exc:
            self._warn(exc)
            return False
        return True

    async def delete_remote_transaction(self, transaction_id: str) -> bool:
        """Delete one row by id; deleting a missing id succeeds."""
        if not self.configured:
            return False
        try:
            await self._call(
                "deleteTransaction",
                "DELETE",
                REMOTE_TRANSACTIONS_TABLE,
                params={"id": f"eq.{transaction_id}"},
            )
        except TransportError as exc:
            self._warn(exc)
            return False
        return True

    async def delete_remote_transactions_batch(self, transaction_ids: Sequence[str]) -> bool:
        """Delete rows by id; True only when every chunk succeeded."""
        if not self.configured:
            return False
        ids = list(dict.fromkeys(transaction_ids))
        if not ids:
            return True
        try:
            for start in range(0, len(ids), DELETE_CHUNK_SIZE):
                await self._call(
                    "deleteTransactionsBatch",
                    "DELETE",
                    REMOTE_TRANSACTIONS_TABLE,
                    params={"id": _quote_in(ids[start:start + DELETE_CHUNK_SIZE])},
                )
        except TransportError as exc:
            self._warn(exc)
            return False
        return True

    # -- users ----------------------------------------------------------

    async def upsert_owner_profile(
        self,
        external_id: str,
        full_name: str | None,
        email: str | None,
        avatar_url: str | None,
    ) -> str | None:
        """Upsert the profile keyed by external identity and return its owner id."""
        if not self.configured:
            return None
        body = {
            "clerk_id": external_id,
            "full_name": full_name,
            "email": email,
            "avatar_url": avatar_url,
            "last_sign_in": format_timestamp(utc_now()),
        }
        try:
            rows = await self._call(
                "upsertUser",
                "POST",
                REMOTE_USERS_TABLE,
                params={"on_conflict": REMOTE_USERS_CONFLICT_COLUMN, "select": "id"},
                body=body,
                prefer=PREFER_UPSERT_RETURN,
            )
        except TransportError as exc:
            self._warn(exc)
            return None
        row = rows[0] if isinstance(rows, list) and rows else rows
        if not isinstance(row, dict) or not row.get("id"):
            logger.warning("[remote] upsertUser: response did not include an id")
            return None
        return str(row["id"])

    # -- HTTP -----------------------------------------------------------

    async def _call(
        self,
        operation: str,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Run a blocking request off the event loop."""
        return await asyncio.to_thread(
            self._request, operation, method, table, params, body, prefer
        )

    def _request(
        self,
        operation: str,
        method: str,
        table: str,
        params: dict[str, str] | None,
        body: Any,
        prefer: str | None,
    ) -> Any:
        headers = {
            "apikey": self._remote_key or "",
            "Authorization": f"Bearer {self._remote_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        url = f"{self.remote_url}/{REST_PATH}/{table}"
        try:
            response = self._get_session().request(
                method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(str(exc), operation) from exc
        if response.status_code >= 400:
            raise TransportError(
                _error_message(response),
                operation,
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Malformed JSON response", operation) from exc

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @staticmethod
    def _warn(exc: TransportError) -> None:
        logger.warning("[remote] %s: %s", exc.operation, exc)


def _error_message(response: requests.Response) -> str:
    """Extract the backend error message, falling back to the status line."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {response.status_code}"
