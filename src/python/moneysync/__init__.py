"""Public MoneySync package exports."""

from __future__ import annotations

from moneysync.__version__ import __version__
from moneysync.balance import accounts_with_balance, compute_account_balance
from moneysync.client import MoneySyncClient
from moneysync.config import SyncConfig, load_config
from moneysync.exceptions import (
    InvalidStateError,
    LocalStoreError,
    MoneySyncError,
    NotFoundError,
    TransportError,
)
from moneysync.identity import IdentityBridge
from moneysync.merge import merge_transactions
from moneysync.models import (
    Account,
    AccountDTO,
    AccountWithBalance,
    Category,
    ExternalIdentity,
    Transaction,
    TransactionDTO,
)
from moneysync.persistence import LocalStore
from moneysync.repository import Repository
from moneysync.sync import SessionState, SyncOrchestrator, SyncResult
from moneysync.transport import RemoteTransport

__all__ = [
    "__version__",
    "Account",
    "AccountDTO",
    "AccountWithBalance",
    "Category",
    "ExternalIdentity",
    "IdentityBridge",
    "InvalidStateError",
    "LocalStore",
    "LocalStoreError",
    "MoneySyncClient",
    "MoneySyncError",
    "NotFoundError",
    "RemoteTransport",
    "Repository",
    "SessionState",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncResult",
    "Transaction",
    "TransactionDTO",
    "TransportError",
    "accounts_with_balance",
    "compute_account_balance",
    "load_config",
    "merge_transactions",
]
