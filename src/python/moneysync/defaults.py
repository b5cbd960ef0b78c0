"""Reference data seeded into a fresh local store."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from moneysync.models import Account, Category, format_timestamp, utc_now

# (id, name, icon, color)
DEFAULT_EXPENSE_CATEGORIES = [
    ("cat-food", "Food", "🛒", "#FF7043"),
    ("cat-transport", "Transport", "🚗", "#42A5F5"),
    ("cat-shopping", "Shopping", "🛍️", "#EC407A"),
    ("cat-health", "Health", "🏥", "#EF5350"),
    ("cat-entertainment", "Entertainment", "🎬", "#AB47BC"),
    ("cat-housing", "Housing", "🏠", "#26A69A"),
    ("cat-education", "Education", "📚", "#5C6BC0"),
    ("cat-travel", "Travel", "✈️", "#29B6F6"),
    ("cat-utilities", "Utilities", "💡", "#FFCA28"),
    ("cat-pets", "Pets", "🐾", "#8D6E63"),
    ("cat-personal", "Personal Care", "💆", "#F06292"),
    ("cat-gifts", "Gifts", "🎁", "#FF7043"),
    ("cat-money", "Money", "img:money", "#66BB6A"),
    ("cat-surprise", "Surprise", "img:surprised", "#FF9800"),
    ("cat-unexpected", "Unexpected", "img:un-expected", "#EF5350"),
]

DEFAULT_INCOME_CATEGORIES = [
    ("cat-salary", "Salary", "💼", "#66BB6A"),
    ("cat-business", "Business", "🏢", "#42A5F5"),
    ("cat-investment", "Investment", "📈", "#26A69A"),
    ("cat-freelance", "Freelance", "💻", "#AB47BC"),
    ("cat-rental", "Rental Income", "🏘️", "#FF7043"),
    ("cat-other-income", "Other Income", "💰", "#FFCA28"),
]

# (id, name, type, initial balance, icon, color)
DEFAULT_ACCOUNT_ROWS = [
    ("acc-cash", "Cash", "cash", "500", "💵", "#4CAF50"),
    ("acc-bank", "Bank Account", "bank", "2000", "🏦", "#2196F3"),
    ("acc-card", "Credit Card", "credit_card", "0", "💳", "#9C27B0"),
]


def default_categories(now: dt.datetime | None = None) -> list[Category]:
    """Return the default expense and income categories."""
    created_at = format_timestamp(now or utc_now())
    categories = []
    for category_type, rows in (
        ("expense", DEFAULT_EXPENSE_CATEGORIES),
        ("income", DEFAULT_INCOME_CATEGORIES),
    ):
        for sort_order, (category_id, name, icon, color) in enumerate(rows, start=1):
            categories.append(
                Category(
                    id=category_id,
                    name=name,
                    type=category_type,
                    icon=icon,
                    color=color,
                    is_default=True,
                    sort_order=sort_order,
                    created_at=created_at,
                )
            )
    return categories


def default_accounts(now: dt.datetime | None = None) -> list[Account]:
    """Return the default accounts."""
    created_at = format_timestamp(now or utc_now())
    return [
        Account(
            id=account_id,
            name=name,
            type=account_type,
            initial_balance=Decimal(balance),
            icon=icon,
            color=color,
            created_at=created_at,
        )
        for account_id, name, account_type, balance, icon, color in DEFAULT_ACCOUNT_ROWS
    ]
