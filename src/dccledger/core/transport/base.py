"""Transport capability consumed by the protocol engine.

Concrete transports (HID, TCP emulators, test fakes) only need to match
these shapes; nothing here is inherited from.
"""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    """An opened connection to a single device."""

    async def send(
        self, cla: int, ins: int, p1: int, p2: int, data: bytes = b"",
    ) -> bytes:
        """Exchange one APDU; returns the response payload followed by the SW."""
        ...

    async def close(self) -> None: ...

    def set_exchange_timeout(self, timeout: int) -> None:
        """Set the per-exchange timeout in milliseconds."""
        ...

    def decorate_app_api_methods(
        self, owner: object, methods: list[str], app_id: str,
    ) -> None:
        """Bind the owner's named operations to the on-device application."""
        ...


class TransportFactory(Protocol):
    """Opens transports."""

    async def create(
        self, open_timeout: int | None = None, listen_timeout: int | None = None,
    ) -> Transport: ...
