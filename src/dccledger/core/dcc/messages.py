"""DCC Ledger payloads and results.

Signing payloads carry the bytes to sign plus the metadata the device
uses to render them. Results are what the engine hands back. All are
plain dataclasses with no logic beyond small conveniences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


@dataclass
class SignData:
    """Raw bytes to be signed."""

    data_buffer: bytes


@dataclass
class SignOrderData(SignData):
    """Exchange order. The type code is stamped by the engine."""

    data_version: int = 0
    amount_precision: int | None = None
    amount2_precision: int | None = None
    fee_precision: int | None = None


@dataclass
class SignTxData(SignData):
    """Transaction, or any payload once stamped with its type code."""

    data_type: int = 0
    data_version: int = 0
    amount_precision: int | None = None
    amount2_precision: int | None = None
    fee_precision: int | None = None


class DeviceVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    @classmethod
    def from_bytes(cls, data: bytes) -> DeviceVersion:
        parts = list(data[:3]) + [0] * (3 - min(len(data), 3))
        return cls(*parts)

    @property
    def number(self) -> int:
        """Comparable firmware number, e.g. 1.2.0 -> 10200."""
        return self.major * 10000 + self.minor * 100 + self.patch

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class UserData:
    """Key derivation response from the device."""

    public_key: str
    address: str
    status_code: str


@dataclass(frozen=True)
class User(UserData):
    """UserData for an account index and its derivation path."""

    index: int
    path: str
