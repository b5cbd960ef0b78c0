"""Custom exception types for MoneySync."""

from __future__ import annotations

from typing import Any


class MoneySyncError(Exception):
    """Base class for MoneySync errors."""


class LocalStoreError(MoneySyncError):
    """Raised when the local store cannot read or durably write a record.

    This is the one error class surfaced to callers of the mutation entry
    points: a mutation that raised it must be treated as not applied.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class TransportError(MoneySyncError):
    """Raised by the HTTP layer when a remote call fails.

    Only used inside ``RemoteTransport``; the public transport methods catch
    it and return a benign result.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(MoneySyncError):
    """Raised when a requested record does not exist."""


class InvalidStateError(MoneySyncError):
    """Raised when a session operation is used in the wrong lifecycle state."""
