"""Derived account balances."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from moneysync.models import Account, AccountWithBalance, Transaction


def compute_account_balance(account: Account, transactions: Iterable[Transaction]) -> Decimal:
    """Compute an account balance from its initial balance.

    Income and incoming transfers add; expenses and outgoing transfers
    subtract. The result does not depend on transaction order.
    """
    balance = Decimal(account.initial_balance)
    for tx in transactions:
        if tx.type == "expense" and tx.account_id == account.id:
            balance -= tx.amount
        elif tx.type == "income" and tx.account_id == account.id:
            balance += tx.amount
        elif tx.type == "transfer":
            if tx.account_id == account.id:
                balance -= tx.amount
            if tx.to_account_id == account.id:
                balance += tx.amount
    return balance


def accounts_with_balance(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> list[AccountWithBalance]:
    """Pair every account with its computed balance."""
    transactions = list(transactions)
    return [
        AccountWithBalance(account=account, balance=compute_account_balance(account, transactions))
        for account in accounts
    ]
