"""
Ledger error hierarchy.
"""

from __future__ import annotations

from dataclasses import dataclass


class LedgerError(Exception):
    """Base class for all errors raised by dccledger."""


class DecodingError(LedgerError, ValueError):
    """Malformed input or device response."""


class OutOfRangeError(LedgerError, ValueError):
    """Numeric argument outside its allowed range."""


class LedgerConnectionError(LedgerError, ConnectionError):
    """Transport could not be opened."""


@dataclass(frozen=True)
class StatusWord:
    """A non-OK status word and its description."""

    error: str
    status: int


class StatusError(LedgerError):
    """Exception raised when the device answers with a non-OK status word"""

    def __init__(self, status: StatusWord):
        self.status = status.status
        self.message = status.error
        self.status_word = status
        super().__init__(status.error)
