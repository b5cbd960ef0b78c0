"""Domain models, validated inputs and JSON codecs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any
import uuid

TRANSACTION_TYPES = ("expense", "income", "transfer")
ACCOUNT_TYPES = ("cash", "bank", "credit_card", "savings", "investment", "other")
CATEGORY_TYPES = ("expense", "income")


def utc_now() -> dt.datetime:
    """Return the current UTC time truncated to milliseconds."""
    now = dt.datetime.now(dt.timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: dt.datetime) -> str:
    """Format a datetime as an ISO 8601 UTC string with a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    value = value.astimezone(dt.timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> dt.datetime | None:
    """Parse an ISO 8601 timestamp, returning None when it is not comparable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def new_id() -> str:
    """Generate a client-side transaction id."""
    return str(uuid.uuid4())


def _ensure_date(value: dt.date | dt.datetime | str) -> dt.date:
    """Normalize a date, datetime or ISO date string to a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise ValueError(f"Invalid date: {value!r}") from exc
    raise ValueError("Date must be a datetime.date")


def _ensure_non_empty(value: str | None, field_name: str) -> str:
    """Validate required text fields."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()


def _ensure_choice(value: str, choices: tuple[str, ...], field_name: str) -> str:
    if value not in choices:
        raise ValueError(f"{field_name} must be one of {', '.join(choices)}")
    return value


def _to_decimal(value: Decimal | str | int | float | None) -> Decimal:
    """Parse a stored numeric value without range checks."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def _ensure_amount(value: Decimal | str | int | float, field_name: str) -> Decimal:
    """Parse and validate a non-negative decimal magnitude."""
    try:
        amount = _to_decimal(value)
    except ValueError as exc:
        raise ValueError(f"{field_name} must be a decimal") from exc
    if not amount.is_finite() or amount < Decimal("0"):
        raise ValueError(f"{field_name} must not be negative")
    return amount


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Transaction:
    """A synchronized transaction record.

    Records are treated opaquely by storage and merge: decoding never
    re-validates business rules, so a record that arrived from another
    device is stored as-is.
    """

    id: str
    type: str
    amount: Decimal
    category_id: str
    account_id: str
    date: dt.date
    created_at: str | None
    updated_at: str | None
    to_account_id: str | None = None
    note: str | None = None

    def touched(self, when: dt.datetime) -> "Transaction":
        """Return a copy whose update timestamp is advanced to ``when``.

        The timestamp never moves backwards, so a clock that stepped back
        keeps the previous value.
        """
        stamp = format_timestamp(when)
        previous = parse_timestamp(self.updated_at)
        if previous is not None and previous > parse_timestamp(stamp):
            stamp = self.updated_at
        created = self.created_at or stamp
        return replace(self, updated_at=stamp, created_at=created)

    def to_dict(self) -> dict[str, Any]:
        """Encode to the local JSON document shape."""
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "amount": str(self.amount),
            "categoryId": self.category_id,
            "accountId": self.account_id,
            "date": self.date.isoformat(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.to_account_id is not None:
            payload["toAccountId"] = self.to_account_id
        if self.note is not None:
            payload["note"] = self.note
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Transaction":
        """Decode from the local JSON document shape."""
        return cls(
            id=str(payload["id"]),
            type=str(payload.get("type") or ""),
            amount=_to_decimal(payload.get("amount")),
            category_id=str(payload.get("categoryId") or ""),
            account_id=str(payload.get("accountId") or ""),
            date=_ensure_date(payload["date"]),
            created_at=_optional_text(payload.get("createdAt")),
            updated_at=_optional_text(payload.get("updatedAt")),
            to_account_id=_optional_text(payload.get("toAccountId")),
            note=_optional_text(payload.get("note")),
        )


@dataclass(frozen=True)
class TransactionDTO:
    """Validated transaction input from a form or command line."""

    type: str
    amount: Decimal
    category_id: str
    account_id: str
    date: dt.date
    to_account_id: str | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "type", _ensure_choice(self.type, TRANSACTION_TYPES, "Type")
        )
        object.__setattr__(self, "amount", _ensure_amount(self.amount, "Amount"))
        object.__setattr__(
            self, "category_id", _ensure_non_empty(self.category_id, "Category")
        )
        object.__setattr__(
            self, "account_id", _ensure_non_empty(self.account_id, "Account")
        )
        object.__setattr__(self, "date", _ensure_date(self.date))
        if self.type == "transfer":
            to_account = _ensure_non_empty(self.to_account_id, "Destination account")
            if to_account == self.account_id:
                raise ValueError("Source account and destination account must differ")
            object.__setattr__(self, "to_account_id", to_account)
        elif self.to_account_id:
            raise ValueError("Destination account is only allowed for transfers")
        else:
            object.__setattr__(self, "to_account_id", None)
        object.__setattr__(self, "note", _optional_text(self.note))

    def to_transaction(
        self,
        transaction_id: str | None = None,
        now: dt.datetime | None = None,
    ) -> Transaction:
        """Build a new record stamped with creation and update times."""
        stamp = format_timestamp(now or utc_now())
        return Transaction(
            id=transaction_id or new_id(),
            type=self.type,
            amount=self.amount,
            category_id=self.category_id,
            account_id=self.account_id,
            date=self.date,
            created_at=stamp,
            updated_at=stamp,
            to_account_id=self.to_account_id,
            note=self.note,
        )


@dataclass(frozen=True)
class Account:
    """Local reference record for an account."""

    id: str
    name: str
    type: str
    initial_balance: Decimal
    icon: str = ""
    color: str = ""
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "initialBalance": str(self.initial_balance),
            "icon": self.icon,
            "color": self.color,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Account":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            type=str(payload.get("type") or "other"),
            initial_balance=_to_decimal(payload.get("initialBalance")),
            icon=str(payload.get("icon") or ""),
            color=str(payload.get("color") or ""),
            created_at=_optional_text(payload.get("createdAt")),
        )


@dataclass(frozen=True)
class Category:
    """Local reference record for a category."""

    id: str
    name: str
    type: str
    icon: str = ""
    color: str = ""
    is_default: bool = False
    sort_order: int = 0
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "icon": self.icon,
            "color": self.color,
            "isDefault": self.is_default,
            "sortOrder": self.sort_order,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Category":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            type=str(payload.get("type") or "expense"),
            icon=str(payload.get("icon") or ""),
            color=str(payload.get("color") or ""),
            is_default=bool(payload.get("isDefault", False)),
            sort_order=int(payload.get("sortOrder") or 0),
            created_at=_optional_text(payload.get("createdAt")),
        )


@dataclass(frozen=True)
class AccountDTO:
    """Validated account input."""

    name: str
    type: str
    initial_balance: Decimal = Decimal("0")
    icon: str = ""
    color: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "Name"))
        object.__setattr__(
            self, "type", _ensure_choice(self.type, ACCOUNT_TYPES, "Account type")
        )
        try:
            balance = _to_decimal(self.initial_balance)
        except ValueError as exc:
            raise ValueError("Initial balance must be a decimal") from exc
        object.__setattr__(self, "initial_balance", balance)

    def to_account(
        self,
        account_id: str | None = None,
        now: dt.datetime | None = None,
    ) -> Account:
        return Account(
            id=account_id or f"acc-{new_id()}",
            name=self.name,
            type=self.type,
            initial_balance=self.initial_balance,
            icon=self.icon,
            color=self.color,
            created_at=format_timestamp(now or utc_now()),
        )


@dataclass(frozen=True)
class AccountWithBalance:
    """An account paired with its derived balance."""

    account: Account
    balance: Decimal

    @property
    def id(self) -> str:
        return self.account.id

    @property
    def name(self) -> str:
        return self.account.name


@dataclass(frozen=True)
class ExternalIdentity:
    """Identity supplied by the external authentication provider."""

    id: str
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _ensure_non_empty(self.id, "Identity id"))


@dataclass
class AppState:
    """Authoritative in-memory copy of the local collections."""

    transactions: list[Transaction] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    loading: bool = True
