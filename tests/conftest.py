"""Pytest configuration and fixtures.

Integration tests run against a throwaway SQLite store per test; the remote
backend is replaced by an in-memory fake.
"""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src" / "python"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from moneysync.repository import Repository  # noqa: E402
from tests.utils.builders import FakeClock  # noqa: E402
from tests.utils.fake_remote import FakeRemote  # noqa: E402


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    """Path of a fresh local store file."""
    return tmp_path / "moneysync.db"


@pytest.fixture()
def repository(store_path: Path) -> Repository:
    """Connected repository, closed after the test."""
    repo = Repository(store_path)
    repo.connect()
    yield repo
    repo.close()


@pytest.fixture()
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sample_transaction_payload() -> dict:
    return {
        "id": "t1",
        "type": "expense",
        "amount": "50",
        "categoryId": "cat-food",
        "accountId": "acc-cash",
        "date": "2026-03-05",
        "createdAt": "2026-03-05T10:00:00.000Z",
        "updatedAt": "2026-03-05T10:00:00.000Z",
    }
