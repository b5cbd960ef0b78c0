"""Last-writer-wins merge of transaction collections."""

from __future__ import annotations

from collections.abc import Iterable

from moneysync.models import Transaction, parse_timestamp


def is_newer_or_equal(candidate: Transaction, existing: Transaction) -> bool:
    """Return True when ``candidate`` should replace ``existing``.

    A record without a comparable update timestamp is older than any record
    that has one. Two records that both lack one tie, and ties go to the
    candidate. Timestamps that do not parse as ISO 8601 fall back to plain
    string comparison only when neither side parses; a parseable
    timestamp beats one that does not parse.
    """
    if not candidate.updated_at:
        return not existing.updated_at
    if not existing.updated_at:
        return True
    candidate_time = parse_timestamp(candidate.updated_at)
    existing_time = parse_timestamp(existing.updated_at)
    if candidate_time is not None and existing_time is not None:
        return candidate_time >= existing_time
    if candidate_time is not None or existing_time is not None:
        return existing_time is None
    return candidate.updated_at >= existing.updated_at


def merge_transactions(
    local: Iterable[Transaction],
    remote: Iterable[Transaction],
) -> list[Transaction]:
    """Merge local and remote transactions keyed by id.

    For a shared id the record with the greater-or-equal update timestamp
    wins and ties favour ``remote``. Duplicate ids inside one input are
    resolved with the same rule. The result order is unspecified.
    """
    merged: dict[str, Transaction] = {}
    for tx in local:
        existing = merged.get(tx.id)
        if existing is None or is_newer_or_equal(tx, existing):
            merged[tx.id] = tx
    for tx in remote:
        existing = merged.get(tx.id)
        if existing is None or is_newer_or_equal(tx, existing):
            merged[tx.id] = tx
    return list(merged.values())
