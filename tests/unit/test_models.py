from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from moneysync.models import (
    AccountDTO,
    ExternalIdentity,
    Transaction,
    TransactionDTO,
    format_timestamp,
    parse_timestamp,
)
from tests.utils.builders import make_transaction


def test_transaction_dto_required_fields() -> None:
    dto = TransactionDTO(
        type="expense",
        amount=Decimal("50"),
        category_id="cat-food",
        account_id="acc-cash",
        date=dt.date(2026, 3, 5),
    )

    assert dto.to_account_id is None
    assert dto.note is None
    assert dto.amount == Decimal("50")


@pytest.mark.parametrize(
    "overrides",
    [
        {"type": "refund"},
        {"amount": Decimal("-1")},
        {"amount": "abc"},
        {"category_id": " "},
        {"account_id": ""},
        {"to_account_id": "acc-bank"},
    ],
)
def test_transaction_dto_validation(overrides: dict) -> None:
    payload = {
        "type": "expense",
        "amount": Decimal("50"),
        "category_id": "cat-food",
        "account_id": "acc-cash",
        "date": dt.date(2026, 3, 5),
    }
    payload.update(overrides)
    with pytest.raises(ValueError):
        TransactionDTO(**payload)


def test_transfer_requires_distinct_destination() -> None:
    with pytest.raises(ValueError):
        TransactionDTO(
            type="transfer",
            amount=Decimal("10"),
            category_id="cat-money",
            account_id="acc-cash",
            date=dt.date(2026, 3, 5),
        )
    with pytest.raises(ValueError, match="must differ"):
        TransactionDTO(
            type="transfer",
            amount=Decimal("10"),
            category_id="cat-money",
            account_id="acc-cash",
            date=dt.date(2026, 3, 5),
            to_account_id="acc-cash",
        )


def test_to_transaction_stamps_both_timestamps() -> None:
    dto = TransactionDTO(
        type="income",
        amount="200",
        category_id="cat-salary",
        account_id="acc-bank",
        date="2026-03-05",
    )
    now = dt.datetime(2026, 3, 5, 9, 30, tzinfo=dt.timezone.utc)

    tx = dto.to_transaction("t1", now=now)

    assert tx.id == "t1"
    assert tx.date == dt.date(2026, 3, 5)
    assert tx.created_at == "2026-03-05T09:30:00.000Z"
    assert tx.updated_at == tx.created_at


def test_to_transaction_generates_id() -> None:
    dto = TransactionDTO(
        type="expense",
        amount="1",
        category_id="cat-food",
        account_id="acc-cash",
        date=dt.date(2026, 3, 5),
    )

    assert dto.to_transaction().id != dto.to_transaction().id


def test_transaction_dict_codec(sample_transaction_payload: dict) -> None:
    tx = Transaction.from_dict(sample_transaction_payload)

    assert tx.amount == Decimal("50")
    assert tx.to_account_id is None
    payload = tx.to_dict()
    assert payload["categoryId"] == "cat-food"
    assert payload["amount"] == "50"
    assert "toAccountId" not in payload


def test_transaction_from_dict_is_lenient() -> None:
    tx = Transaction.from_dict({"id": "t9", "date": "2026-03-05T00:00:00Z", "amount": 12.5})

    assert tx.type == ""
    assert tx.amount == Decimal("12.5")
    assert tx.updated_at is None


def test_touched_never_moves_backwards() -> None:
    tx = make_transaction(updated_at="2026-03-05T10:00:00.000Z", created_at=None)

    earlier = tx.touched(dt.datetime(2026, 3, 5, 9, 0, tzinfo=dt.timezone.utc))
    later = tx.touched(dt.datetime(2026, 3, 5, 11, 0, tzinfo=dt.timezone.utc))

    assert earlier.updated_at == "2026-03-05T10:00:00.000Z"
    assert later.updated_at == "2026-03-05T11:00:00.000Z"
    assert later.created_at == "2026-03-05T11:00:00.000Z"


def test_timestamp_helpers() -> None:
    naive = dt.datetime(2026, 3, 5, 10, 0, 0, 123456)

    assert format_timestamp(naive) == "2026-03-05T10:00:00.123Z"
    assert parse_timestamp("2026-03-05T10:00:00.123Z") == dt.datetime(
        2026, 3, 5, 10, 0, 0, 123000, tzinfo=dt.timezone.utc
    )
    assert parse_timestamp("not a time") is None
    assert parse_timestamp(None) is None


def test_account_dto_validation() -> None:
    account = AccountDTO(name=" Wallet ", type="cash", initial_balance="25").to_account("acc-wallet")

    assert account.name == "Wallet"
    assert account.initial_balance == Decimal("25")
    with pytest.raises(ValueError):
        AccountDTO(name="Wallet", type="piggy_bank")


def test_external_identity_requires_id() -> None:
    with pytest.raises(ValueError):
        ExternalIdentity(id="  ")
