"""Status words returned by the DCC Ledger application."""

from __future__ import annotations

from collections.abc import Sequence

from dccledger.core.base.errors import StatusWord
from dccledger.core.dcc.constants import SW_OK

SW_USER_CANCELLED = 0x9100
SW_DEPRECATED_SIGN_PROTOCOL = 0x9102
SW_INCORRECT_PRECISION = 0x9103
SW_INCORRECT_TYPE_VERSION = 0x9104
SW_PROTOBUF_DECODING_FAILED = 0x9105
SW_BYTE_DECODING_FAILED = 0x9106
SW_SECURITY_STATUS = 0x6982
SW_CONDITIONS_NOT_SATISFIED = 0x6985
SW_DEVICE_LOCKED = 0x6986
SW_BUFFER_OVERFLOW = 0x6990
SW_INCORRECT_P1_P2 = 0x6A86
SW_INS_NOT_SUPPORTED = 0x6D00
SW_CLA_NOT_SUPPORTED = 0x6E00

STATUS_MESSAGES: dict[int, str] = {
    SW_OK: "OK",
    SW_USER_CANCELLED: "User cancelled",
    SW_DEPRECATED_SIGN_PROTOCOL: "Deprecated sign protocol",
    SW_INCORRECT_PRECISION: "Incorrect precision value",
    SW_INCORRECT_TYPE_VERSION: "Incorrect transaction type/version",
    SW_PROTOBUF_DECODING_FAILED: "Protobuf decoding failed",
    SW_BYTE_DECODING_FAILED: "Byte decoding failed",
    SW_SECURITY_STATUS: "Security status not satisfied",
    SW_CONDITIONS_NOT_SATISFIED: "Conditions not satisfied",
    SW_DEVICE_LOCKED: "Device is locked",
    SW_BUFFER_OVERFLOW: "Buffer overflow",
    SW_INCORRECT_P1_P2: "Incorrect P1/P2",
    SW_INS_NOT_SUPPORTED: "Instruction not supported",
    SW_CLA_NOT_SUPPORTED: "CLA not supported",
}


def describe(code: int) -> str:
    return STATUS_MESSAGES.get(code, f"Unknown error (0x{code:04x})")


def check_status(data: Sequence[int]) -> StatusWord | None:
    """Check a two-byte status word [high, low].

    Returns None for 9000, otherwise the mapped StatusWord. Missing
    bytes count as zero.
    """
    high = data[0] if len(data) > 0 else 0
    low = data[1] if len(data) > 1 else 0
    code = (high << 8) | low
    if code == SW_OK:
        return None
    return StatusWord(error=describe(code), status=code)
