"""Offline-first sync orchestration between the local store and the remote backend."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union
import asyncio
import datetime as dt
import logging

from moneysync.balance import accounts_with_balance
from moneysync.config import DEFAULT_SYNC_COOLDOWN_SECONDS
from moneysync.exceptions import InvalidStateError, LocalStoreError, NotFoundError
from moneysync.identity import IdentityBridge
from moneysync.merge import merge_transactions
from moneysync.models import (
    Account,
    AccountWithBalance,
    AppState,
    Category,
    ExternalIdentity,
    Transaction,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from moneysync.persistence import LocalStore
from moneysync.transport import RemoteTransport

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle of one app session."""

    UNINITIALIZED = "uninitialized"
    LOCAL_LOADED = "local_loaded"
    GUEST = "guest"
    SYNCING_FIRST_TIME = "syncing_first_time"
    SYNCED = "synced"
    SYNCING = "syncing"


SYNC_COMPLETED = "completed"
SYNC_SKIPPED = "skipped"
SYNC_FAILED = "failed"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync pass."""

    status: str
    pushed: int = 0
    deleted: int = 0
    pulled: int = 0
    merged: int = 0
    reason: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == SYNC_COMPLETED


# Commands applied to the in-memory state. Each one is a plain record and
# reduce_state is the only place that interprets them.


@dataclass(frozen=True)
class SetAll:
    transactions: list[Transaction]
    accounts: list[Account]
    categories: list[Category]


@dataclass(frozen=True)
class SetTransactions:
    transactions: list[Transaction]


@dataclass(frozen=True)
class UpsertTransaction:
    transaction: Transaction


@dataclass(frozen=True)
class DeleteTransaction:
    id: str


@dataclass(frozen=True)
class UpsertAccount:
    account: Account


@dataclass(frozen=True)
class DeleteAccount:
    id: str


@dataclass(frozen=True)
class UpsertCategory:
    category: Category


@dataclass(frozen=True)
class DeleteCategory:
    id: str


Command = Union[
    SetAll,
    SetTransactions,
    UpsertTransaction,
    DeleteTransaction,
    UpsertAccount,
    DeleteAccount,
    UpsertCategory,
    DeleteCategory,
]


def _upsert_by_id(records: list[Any], record: Any) -> list[Any]:
    for index, existing in enumerate(records):
        if existing.id == record.id:
            updated = list(records)
            updated[index] = record
            return updated
    return records + [record]


def reduce_state(state: AppState, command: Command) -> AppState:
    """Return the state that results from applying ``command``."""
    if isinstance(command, SetAll):
        return AppState(
            transactions=list(command.transactions),
            accounts=list(command.accounts),
            categories=list(command.categories),
            loading=False,
        )
    if isinstance(command, SetTransactions):
        return replace(state, transactions=list(command.transactions))
    if isinstance(command, UpsertTransaction):
        return replace(
            state, transactions=_upsert_by_id(state.transactions, command.transaction)
        )
    if isinstance(command, DeleteTransaction):
        return replace(
            state, transactions=[tx for tx in state.transactions if tx.id != command.id]
        )
    if isinstance(command, UpsertAccount):
        return replace(state, accounts=_upsert_by_id(state.accounts, command.account))
    if isinstance(command, DeleteAccount):
        return replace(
            state,
            accounts=[account for account in state.accounts if account.id != command.id],
            transactions=[
                tx
                for tx in state.transactions
                if tx.account_id != command.id and tx.to_account_id != command.id
            ],
        )
    if isinstance(command, UpsertCategory):
        return replace(
            state, categories=_upsert_by_id(state.categories, command.category)
        )
    if isinstance(command, DeleteCategory):
        return replace(
            state,
            categories=[c for c in state.categories if c.id != command.id],
        )
    raise TypeError(f"Unknown command: {command!r}")


class SyncOrchestrator:
    """Own the session's state and drive local mutations and sync passes.

    Mutation entry points await only local durability. Remote propagation
    runs as background tasks whose outcome is observed through logging and
    the pending-delete queue. One instance lives for one app session.

    A sync pass runs push, flush deletes, pull, merge and persist in that
    order. The delete flush must finish (succeed, or leave the queue intact
    and abort the pass) before the pull, otherwise the merge would bring back
    rows deleted locally.
    """

    def __init__(
        self,
        store: LocalStore,
        transport: RemoteTransport,
        bridge: IdentityBridge | None = None,
        cooldown_seconds: int = DEFAULT_SYNC_COOLDOWN_SECONDS,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.store = store
        self.transport = transport
        self.bridge = bridge or IdentityBridge(transport)
        self.cooldown = dt.timedelta(seconds=cooldown_seconds)
        self._clock = clock
        self._state = AppState()
        self._session_state = SessionState.UNINITIALIZED
        self._owner_id: str | None = None
        self._identity_id: str | None = None
        self._attempted_identities: set[str] = set()
        self._last_sync_at: dt.datetime | None = None
        self._sync_in_flight = False
        self._local_lock = asyncio.Lock()
        self._background: set[asyncio.Task] = set()

    # -- read-only view -------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def session_state(self) -> SessionState:
        return self._session_state

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def last_sync_at(self) -> dt.datetime | None:
        return self._last_sync_at

    @property
    def is_syncing(self) -> bool:
        return self._sync_in_flight

    def accounts_with_balance(self) -> list[AccountWithBalance]:
        """Return every account with its balance derived from memory."""
        return accounts_with_balance(self._state.accounts, self._state.transactions)

    # -- session lifecycle ----------------------------------------------

    async def load(self) -> None:
        """Load the local collections; required before anything else."""
        await self.refresh()
        if self._session_state is SessionState.UNINITIALIZED:
            self._set_session_state(SessionState.LOCAL_LOADED)

    async def refresh(self) -> None:
        """Reload every local collection into memory."""
        await self.store.initialize()
        async with self._local_lock:
            transactions = await self.store.get_transactions()
            accounts = await self.store.get_accounts()
            categories = await self.store.get_categories()
            self._dispatch(SetAll(transactions, accounts, categories))

    def enter_guest_mode(self) -> None:
        """Run local-only because no authenticated identity is available."""
        self._require_loaded()
        if self._owner_id is None:
            self._set_session_state(SessionState.GUEST)

    async def sign_in(self, identity: ExternalIdentity) -> SyncResult:
        """Establish the sync cursor for ``identity`` and run the first pass.

        Fires once per external identity per session: repeated calls for an
        identity that is signed in, being resolved, or failed to resolve
        are no-ops.
        """
        self._require_loaded()
        if identity.id in self._attempted_identities:
            return SyncResult(SYNC_SKIPPED, reason="identity already handled this session")
        self._attempted_identities.add(identity.id)

        owner_id = await self.bridge.resolve(identity)
        if owner_id is None:
            if self._owner_id is None:
                self._set_session_state(SessionState.GUEST)
            return SyncResult(SYNC_SKIPPED, reason="no owner id")

        self._owner_id = owner_id
        self._identity_id = identity.id
        self._last_sync_at = None
        logger.info("Signed in; first sync for owner %s", owner_id)
        return await self._run_pass(first_time=True)

    def sign_out(self) -> None:
        """Drop the sync cursor and continue local-only."""
        self._require_loaded()
        if self._identity_id is not None:
            self.bridge.forget(self._identity_id)
        self._owner_id = None
        self._identity_id = None
        self._attempted_identities.clear()
        self._last_sync_at = None
        self._set_session_state(SessionState.GUEST)
        logger.info("Signed out; running local-only")

    def on_foreground(self) -> asyncio.Task | None:
        """Trigger a background pass when the cooldown has elapsed.

        Must be called from a running event loop. Returns the spawned task,
        or None when no pass was started.
        """
        if self._owner_id is None or self._sync_in_flight:
            return None
        if self._last_sync_at is not None:
            elapsed = self._clock() - self._last_sync_at
            if elapsed < self.cooldown:
                logger.debug("Foreground sync skipped; last sync %s ago", elapsed)
                return None
        return self._spawn(self._run_pass(), "foreground-sync")

    async def sync(self) -> SyncResult:
        """Run one full pass now; skipped in guest mode or while one runs."""
        if self._owner_id is None:
            return SyncResult(SYNC_SKIPPED, reason="guest mode")
        return await self._run_pass()

    async def wait_for_background(self) -> None:
        """Wait until every spawned propagation task has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -- transaction mutations ------------------------------------------

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """Store a new transaction locally, then push it in the background."""
        self._require_loaded()
        async with self._local_lock:
            stamped = self._stamp(transaction, self._find_transaction(transaction.id))
            await self.store.save_transaction(stamped)
            self._dispatch(UpsertTransaction(stamped))
        self._propagate_push(stamped)
        return stamped

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """Replace an existing transaction locally, then push it in the background."""
        self._require_loaded()
        async with self._local_lock:
            previous = self._find_transaction(transaction.id)
            if previous is None:
                raise NotFoundError(f"Transaction {transaction.id} not found")
            stamped = self._stamp(transaction, previous)
            await self.store.save_transaction(stamped)
            self._dispatch(UpsertTransaction(stamped))
        self._propagate_push(stamped)
        return stamped

    async def remove_transaction(self, transaction_id: str) -> None:
        """Delete locally; when signed in, queue and attempt the remote delete.

        The id is durably queued before this returns, so a failed live call
        is retried by the next sync pass. The id is queued under the same
        lock as the local delete.
        """
        self._require_loaded()
        async with self._local_lock:
            owner_id = self._owner_id
            if owner_id is not None:
                await self.store.add_pending_delete(transaction_id)
            await self.store.delete_transaction(transaction_id)
            self._dispatch(DeleteTransaction(transaction_id))
        if owner_id is None:
            return
        self._spawn(self._propagate_delete(transaction_id), f"delete-{transaction_id}")

    # -- reference data (local only) ------------------------------------

    async def add_account(self, account: Account) -> None:
        self._require_loaded()
        await self.store.save_account(account)
        self._dispatch(UpsertAccount(account))

    async def update_account(self, account: Account) -> None:
        await self.add_account(account)

    async def remove_account(self, account_id: str) -> None:
        """Remove an account and, locally only, its transactions."""
        self._require_loaded()
        async with self._local_lock:
            await self.store.delete_account(account_id)
            self._dispatch(DeleteAccount(account_id))

    async def add_category(self, category: Category) -> None:
        self._require_loaded()
        await self.store.save_category(category)
        self._dispatch(UpsertCategory(category))

    async def update_category(self, category: Category) -> None:
        await self.add_category(category)

    async def remove_category(self, category_id: str) -> None:
        self._require_loaded()
        await self.store.delete_category(category_id)
        self._dispatch(DeleteCategory(category_id))

    # -- sync pass ------------------------------------------------------

    async def _run_pass(self, first_time: bool = False) -> SyncResult:
        if self._sync_in_flight:
            logger.debug("Sync trigger dropped; a pass is already running")
            return SyncResult(SYNC_SKIPPED, reason="sync already in progress")
        owner_id = self._owner_id
        if owner_id is None:
            return SyncResult(SYNC_SKIPPED, reason="guest mode")

        self._sync_in_flight = True
        self._set_session_state(
            SessionState.SYNCING_FIRST_TIME if first_time else SessionState.SYNCING
        )
        try:
            result = await self._sync_pipeline(owner_id)
        except LocalStoreError as exc:
            logger.error("Sync pass aborted by local store failure: %s", exc)
            result = SyncResult(SYNC_FAILED, reason=str(exc))
        finally:
            self._sync_in_flight = False
            if self._owner_id == owner_id:
                self._set_session_state(SessionState.SYNCED)

        if result.completed:
            self._last_sync_at = self._clock()
            logger.info(
                "Sync completed: pushed=%d deleted=%d pulled=%d merged=%d",
                result.pushed,
                result.deleted,
                result.pulled,
                result.merged,
            )
        else:
            logger.info("Sync did not complete: %s", result.reason)
        return result

    async def _sync_pipeline(self, owner_id: str) -> SyncResult:
        # 1. push every local record, covering edits made while offline
        local = await self.store.get_transactions()
        pushed = await self.transport.push_transactions_batch(
            local, owner_id, self._state.categories, self._state.accounts
        )
        if not pushed:
            return SyncResult(SYNC_FAILED, reason="push failed")

        # 2. flush queued deletes; the queue keeps every id unless the call succeeded
        pending = await self.store.get_pending_deletes()
        if pending:
            flushed = await self.transport.delete_remote_transactions_batch(pending)
            if not flushed:
                return SyncResult(
                    SYNC_FAILED, pushed=len(local), reason="delete flush failed"
                )
            await self.store.remove_pending_deletes(pending)
            logger.debug("Flushed %d pending deletes", len(pending))

        # 3. pull
        remote = await self.transport.fetch_remote_transactions(owner_id)
        if self._owner_id != owner_id:
            return SyncResult(
                SYNC_FAILED,
                pushed=len(local),
                deleted=len(pending),
                pulled=len(remote),
                reason="session changed during sync",
            )

        # 4-5. merge into the current local copy and persist it
        async with self._local_lock:
            current = await self.store.get_transactions()
            queued = set(await self.store.get_pending_deletes())
            incoming = [tx for tx in remote if tx.id not in queued]
            merged = merge_transactions(current, incoming)
            await self.store.set_transactions(merged)
            self._dispatch(SetTransactions(merged))

        return SyncResult(
            SYNC_COMPLETED,
            pushed=len(local),
            deleted=len(pending),
            pulled=len(remote),
            merged=len(merged),
        )

    # -- background propagation -----------------------------------------

    def _propagate_push(self, transaction: Transaction) -> None:
        owner_id = self._owner_id
        if owner_id is None:
            return
        self._spawn(
            self._push_one(transaction, owner_id), f"push-{transaction.id}"
        )

    async def _push_one(self, transaction: Transaction, owner_id: str) -> None:
        ok = await self.transport.push_transaction(
            transaction, owner_id, self._state.categories, self._state.accounts
        )
        if not ok:
            logger.info("Push of %s deferred to the next sync pass", transaction.id)

    async def _propagate_delete(self, transaction_id: str) -> None:
        ok = await self.transport.delete_remote_transaction(transaction_id)
        if not ok:
            logger.info("Remote delete of %s stays queued", transaction_id)
            return
        if self._sync_in_flight:
            # a running pass may already have pushed this id again
            return
        try:
            await self.store.remove_pending_deletes([transaction_id])
        except LocalStoreError as exc:
            logger.warning("Could not dequeue %s after remote delete: %s", transaction_id, exc)

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc)

    # -- helpers --------------------------------------------------------

    def _dispatch(self, command: Command) -> None:
        self._state = reduce_state(self._state, command)

    def _set_session_state(self, state: SessionState) -> None:
        if state is not self._session_state:
            logger.debug("Session state %s -> %s", self._session_state.value, state.value)
            self._session_state = state

    def _require_loaded(self) -> None:
        if self._session_state is SessionState.UNINITIALIZED:
            raise InvalidStateError("Local data has not been loaded; call load() first")

    def _find_transaction(self, transaction_id: str) -> Transaction | None:
        for tx in self._state.transactions:
            if tx.id == transaction_id:
                return tx
        return None

    def _stamp(self, transaction: Transaction, previous: Transaction | None) -> Transaction:
        """Advance the update timestamp to now, strictly past ``previous``.

        When the clock reads at or before the previous stamp, the new stamp
        is the previous one plus a millisecond.
        """
        stamped = transaction.touched(self._clock())
        if previous is None:
            return stamped
        previous_time = parse_timestamp(previous.updated_at)
        if previous_time is not None:
            stamped_time = parse_timestamp(stamped.updated_at)
            if stamped_time is None or stamped_time <= previous_time:
                bumped = previous_time + dt.timedelta(milliseconds=1)
                stamped = replace(stamped, updated_at=format_timestamp(bumped))
        return replace(stamped, created_at=previous.created_at or stamped.created_at)
