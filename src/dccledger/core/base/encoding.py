"""Byte-level helpers shared by the path codec and the protocol engine."""

from __future__ import annotations

import base58

from dccledger.core.base.errors import OutOfRangeError

UINT32_MAX = 0xFFFFFFFF


def base58_encode(data: bytes) -> str:
    """Base58 encode (Bitcoin alphabet, no checksum). Empty input gives ''."""
    return base58.b58encode(bytes(data)).decode("ascii")


def _check_uint32(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT32_MAX:
        raise OutOfRangeError(
            f"value must be an integer in [0, {UINT32_MAX}], got {value!r}"
        )


def uint32_to_bytes_be(value: int) -> bytes:
    """Encode an unsigned 32-bit integer as 4 big-endian bytes."""
    _check_uint32(value)
    return value.to_bytes(4, "big")


def uint32_from_bytes_be(data: bytes) -> int:
    """Decode 4 big-endian bytes into an unsigned 32-bit integer."""
    if len(data) != 4:
        raise OutOfRangeError(f"expected 4 bytes, got {len(data)}")
    return int.from_bytes(data, "big")


def bytes_to_ascii(data: bytes) -> str:
    for i, b in enumerate(data):
        if b > 0x7F:
            raise OutOfRangeError(f"non-ASCII byte 0x{b:02x} at index {i}")
    return bytes(data).decode("ascii")


def bytes_to_hex(data: bytes) -> str:
    return bytes(data).hex()


def concat_bytes(*parts: bytes) -> bytes:
    return b"".join(bytes(p) for p in parts)
