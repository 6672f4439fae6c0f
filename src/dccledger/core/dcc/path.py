"""BIP-44 style derivation paths.

A path string such as ``44'/5741564'/0'/0'/3'`` is parsed into a
DerivationPath and encoded for the device as 4 big-endian bytes per
component, hardened components carrying the 0x80000000 flag.
"""

from __future__ import annotations

from dataclasses import dataclass

from dccledger.core.base.encoding import concat_bytes, uint32_to_bytes_be
from dccledger.core.base.errors import DecodingError, OutOfRangeError
from dccledger.core.dcc.constants import ACCOUNT_PATH_PREFIX, HARDENED, MAX_INDEX

ROOT = "m"
HARDENED_MARKER = "'"


@dataclass(frozen=True)
class PathComponent:
    index: int
    hardened: bool = False

    @property
    def value(self) -> int:
        return self.index | HARDENED if self.hardened else self.index

    def __str__(self) -> str:
        return f"{self.index}{HARDENED_MARKER if self.hardened else ''}"


@dataclass(frozen=True)
class DerivationPath:
    """Ordered, non-empty sequence of path components."""

    components: tuple[PathComponent, ...]

    def encode(self) -> bytes:
        return concat_bytes(*(uint32_to_bytes_be(c.value) for c in self.components))

    def __str__(self) -> str:
        return "/".join(str(c) for c in self.components)


def _parse_component(element: str) -> PathComponent:
    hardened = element.endswith(HARDENED_MARKER)
    raw = element[:-1] if hardened else element
    if not (raw.isascii() and raw.isdigit()) or str(int(raw)) != raw:
        raise DecodingError(
            f'Invalid BIP-44 path component "{element}": each segment must be '
            "a non-negative integer optionally followed by '"
        )
    index = int(raw)
    if index > MAX_INDEX:
        raise OutOfRangeError(
            f"BIP-44 path index {index} exceeds maximum ({MAX_INDEX})"
        )
    return PathComponent(index=index, hardened=hardened)


def parse(path: str) -> DerivationPath:
    """Parse a slash-separated path, skipping a leading ``m`` root."""
    elements = path.split("/")
    if elements[0] == ROOT:
        elements = elements[1:]
    components = tuple(_parse_component(element) for element in elements)
    if not components:
        raise DecodingError("BIP-44 path must contain at least one component")
    return DerivationPath(components)


def split_path(path: str) -> bytes:
    """Parse and encode a path string in one step."""
    return parse(path).encode()


def check_account_index(index: int, name: str = "account index") -> None:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= MAX_INDEX:
        raise OutOfRangeError(
            f"{name} must be a non-negative integer <= {MAX_INDEX}, got {index!r}"
        )


def account_path(index: int) -> str:
    """Derivation path of a 0-based account index."""
    check_account_index(index)
    return f"{ACCOUNT_PATH_PREFIX}{index}{HARDENED_MARKER}"
