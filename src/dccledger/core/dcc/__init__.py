from dccledger.core.dcc.ledger import DCCLedger, State
from dccledger.core.dcc.messages import (
    DeviceVersion,
    SignData,
    SignOrderData,
    SignTxData,
    User,
    UserData,
)
from dccledger.core.dcc.path import DerivationPath, account_path, parse, split_path
from dccledger.core.dcc.protocol import DCC
from dccledger.core.dcc.session import Session
from dccledger.core.dcc.status import check_status

__all__ = [
    "DCC",
    "DCCLedger",
    "DerivationPath",
    "DeviceVersion",
    "Session",
    "SignData",
    "SignOrderData",
    "SignTxData",
    "State",
    "User",
    "UserData",
    "account_path",
    "check_status",
    "parse",
    "split_path",
]
