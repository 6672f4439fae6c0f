"""USB HID transport backed by ledgerblue.

ledgerblue is blocking; every exchange runs in a worker thread so the
event loop stays responsive while the device waits for a button press.
"""

from __future__ import annotations

import asyncio
import logging

from ledgerblue.comm import getDongle
from ledgerblue.commException import CommException

from dccledger.core.transport.types import APDU, Response

lg = logging.getLogger(__name__)

DEFAULT_EXCHANGE_TIMEOUT = 20000


class HidTransport:
    """Transport wrapping an opened ledgerblue dongle."""

    def __init__(self, dongle) -> None:
        self._dongle = dongle
        self._timeout = DEFAULT_EXCHANGE_TIMEOUT
        self._lock = asyncio.Lock()
        self._app_id: str | None = None
        self._bound_methods: list[str] = []

    @property
    def app_id(self) -> str | None:
        return self._app_id

    @property
    def bound_methods(self) -> list[str]:
        return list(self._bound_methods)

    def set_exchange_timeout(self, timeout: int) -> None:
        self._timeout = timeout

    def decorate_app_api_methods(
        self, owner: object, methods: list[str], app_id: str,
    ) -> None:
        """Record the application the owner talks to.

        Exchanges are serialized by the transport lock, so the named
        methods never interleave on the device.
        """
        self._app_id = app_id
        self._bound_methods = list(methods)
        lg.debug("bound %s to app %s", type(owner).__name__, app_id)

    async def send(
        self, cla: int, ins: int, p1: int, p2: int, data: bytes = b"",
    ) -> bytes:
        if self._dongle is None:
            raise RuntimeError("transport is closed")
        apdu = APDU(cla=cla, ins=ins, p1=p1, p2=p2, data=bytes(data))
        async with self._lock:
            try:
                payload = await asyncio.to_thread(
                    self._dongle.exchange, apdu.to_bytes(), self._timeout,
                )
            except CommException as exc:
                # ledgerblue raises on any SW other than 9000; hand the SW
                # back so the caller decodes it like any other response.
                sw = exc.sw or 0
                if not sw:
                    raise
                data_back = bytes(exc.data) if exc.data else b""
                return Response(data=data_back, sw1=sw >> 8, sw2=sw & 0xFF).to_bytes()
        return bytes(payload) + b"\x90\x00"

    async def close(self) -> None:
        if self._dongle is not None:
            dongle, self._dongle = self._dongle, None
            await asyncio.to_thread(dongle.close)


class HidTransportFactory:
    """Opens the first Ledger device found on USB HID."""

    def __init__(self, debug: bool = False) -> None:
        self._debug = debug

    async def create(
        self, open_timeout: int | None = None, listen_timeout: int | None = None,
    ) -> HidTransport:
        if listen_timeout is not None:
            lg.debug("listen timeout %d ms not used by HID discovery", listen_timeout)
        timeout = open_timeout / 1000 if open_timeout else None
        # The worker thread cannot be interrupted; shield it so a dongle it
        # opens after we gave up can still be closed.
        opening = asyncio.ensure_future(asyncio.to_thread(getDongle, self._debug))
        try:
            dongle = await asyncio.wait_for(asyncio.shield(opening), timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError):
            opening.add_done_callback(_close_abandoned)
            raise
        lg.info("connected")
        return HidTransport(dongle)


def _close_abandoned(opening: asyncio.Future) -> None:
    if opening.cancelled() or opening.exception() is not None:
        return
    lg.debug("closing dongle opened after the open timeout")
    try:
        opening.result().close()
    except Exception as exc:
        lg.debug("dongle close failed: %s", exc)
