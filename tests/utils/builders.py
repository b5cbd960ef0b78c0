from __future__ import annotations

import datetime as dt
from decimal import Decimal

from moneysync.models import Account, Transaction


def make_transaction(
    transaction_id: str = "t1",
    tx_type: str = "expense",
    amount: str | int = "50",
    account_id: str = "acc-cash",
    category_id: str = "cat-food",
    to_account_id: str | None = None,
    date: str = "2026-03-05",
    updated_at: str | None = "2026-03-05T10:00:00.000Z",
    created_at: str | None = "2026-03-05T10:00:00.000Z",
    note: str | None = None,
) -> Transaction:
    return Transaction(
        id=transaction_id,
        type=tx_type,
        amount=Decimal(str(amount)),
        category_id=category_id,
        account_id=account_id,
        date=dt.date.fromisoformat(date),
        created_at=created_at,
        updated_at=updated_at,
        to_account_id=to_account_id,
        note=note,
    )


def make_account(
    account_id: str = "acc-cash",
    name: str = "Cash",
    initial_balance: str | int = "500",
) -> Account:
    return Account(
        id=account_id,
        name=name,
        type="cash",
        initial_balance=Decimal(str(initial_balance)),
    )


class FakeClock:
    """Settable clock for the orchestrator."""

    def __init__(self, start: dt.datetime | None = None) -> None:
        self.now = start or dt.datetime(2026, 3, 5, 12, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + dt.timedelta(seconds=seconds)
