from dccledger.core.base.errors import (
    DecodingError,
    LedgerConnectionError,
    LedgerError,
    OutOfRangeError,
    StatusError,
    StatusWord,
)

__all__ = [
    "DecodingError",
    "LedgerConnectionError",
    "LedgerError",
    "OutOfRangeError",
    "StatusError",
    "StatusWord",
]
