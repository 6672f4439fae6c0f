"""dccledger - DecentralChain Ledger hardware wallet client."""

from dccledger.core.base.encoding import base58_encode
from dccledger.core.base.errors import (
    DecodingError,
    LedgerConnectionError,
    LedgerError,
    OutOfRangeError,
    StatusError,
)
from dccledger.core.dcc import (
    DCC,
    DCCLedger,
    SignData,
    SignOrderData,
    SignTxData,
    User,
    UserData,
)

Ledger = DCCLedger

__all__ = [
    "DCC",
    "DCCLedger",
    "DecodingError",
    "Ledger",
    "LedgerConnectionError",
    "LedgerError",
    "OutOfRangeError",
    "SignData",
    "SignOrderData",
    "SignTxData",
    "StatusError",
    "User",
    "UserData",
    "base58_encode",
]
