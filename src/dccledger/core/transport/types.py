from __future__ import annotations

from dataclasses import dataclass, field

STATUS_LENGTH = 2


@dataclass
class APDU:
    """Ledger short command APDU (CLA INS P1 P2 Lc DATA)."""

    cla: int
    ins: int
    p1: int
    p2: int
    data: bytes = b""

    def to_bytes(self) -> bytes:
        if len(self.data) > 255:
            raise ValueError(f"APDU data too long: {len(self.data)} bytes")
        buf = bytearray([self.cla, self.ins, self.p1, self.p2, len(self.data)])
        buf.extend(self.data)
        return bytes(buf)

    def __repr__(self) -> str:
        return self.to_bytes().hex(" ").upper()


@dataclass
class Response:
    """Device response: payload followed by a two-byte status word."""

    data: bytes
    sw1: int
    sw2: int
    size: int | None = field(default=None, compare=False)

    @classmethod
    def from_bytes(cls, raw: bytes) -> Response:
        """Split a raw device response into payload and status word.

        Missing status bytes read as zero.
        """
        raw = bytes(raw)
        status = raw[-STATUS_LENGTH:].ljust(STATUS_LENGTH, b"\x00")
        return cls(
            data=raw[:-STATUS_LENGTH], sw1=status[0], sw2=status[1], size=len(raw),
        )

    @property
    def length(self) -> int:
        """Byte count as received, status word included."""
        if self.size is not None:
            return self.size
        return len(self.data) + STATUS_LENGTH

    @property
    def sw(self) -> int:
        return (self.sw1 << 8) | self.sw2

    @property
    def success(self) -> bool:
        return self.sw1 == 0x90 and self.sw2 == 0x00

    def to_bytes(self) -> bytes:
        return self.data + bytes([self.sw1, self.sw2])

    def __repr__(self) -> str:
        sw = f"SW={self.sw:04X}"
        if self.data:
            return f"{self.data.hex(' ').upper()} {sw}"
        return sw
