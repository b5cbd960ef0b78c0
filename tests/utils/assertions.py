from __future__ import annotations

from collections.abc import Iterable

from moneysync.models import Transaction


def by_id(transactions: Iterable[Transaction]) -> dict[str, Transaction]:
    return {tx.id: tx for tx in transactions}


def assert_same_records(actual: Iterable[Transaction], expected: Iterable[Transaction]) -> None:
    """Compare two collections by id and field values, ignoring order."""
    actual_list = list(actual)
    expected_list = list(expected)
    if len(actual_list) != len({tx.id for tx in actual_list}):
        raise AssertionError("Duplicate ids in result")
    actual_map = by_id(actual_list)
    expected_map = by_id(expected_list)
    if actual_map.keys() != expected_map.keys():
        raise AssertionError(
            f"Id mismatch: {sorted(actual_map)} != {sorted(expected_map)}"
        )
    for transaction_id, tx in expected_map.items():
        if actual_map[transaction_id] != tx:
            raise AssertionError(
                f"Record {transaction_id} differs: {actual_map[transaction_id]!r} != {tx!r}"
            )
