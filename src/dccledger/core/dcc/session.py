from __future__ import annotations

import logging

from dccledger.core.dcc.constants import APP_ID, MAIN_NET_CODE
from dccledger.core.dcc.protocol import DCC
from dccledger.core.transport.base import Transport, TransportFactory
from dccledger.core.transport.observer import LoggingExchangeObserver

lg = logging.getLogger(__name__)


class Session:
    """One opened transport and the DCC engine bound to it.

    A session is never repaired: on failure the owner drops it and opens
    a new one.
    """

    def __init__(
        self,
        transport: Transport,
        dcc: DCC,
        observer: LoggingExchangeObserver | None = None,
    ) -> None:
        self._transport = transport
        self._dcc = dcc
        self._observer = observer

    @classmethod
    async def open(
        cls,
        factory: TransportFactory,
        *,
        network_code: int = MAIN_NET_CODE,
        open_timeout: int | None = None,
        listen_timeout: int | None = None,
        exchange_timeout: int | None = None,
        debug: bool = False,
    ) -> Session:
        """Open a transport, apply settings and bind a fresh engine."""
        transport = await factory.create(open_timeout, listen_timeout)
        try:
            if exchange_timeout is not None:
                transport.set_exchange_timeout(exchange_timeout)
            observer = LoggingExchangeObserver() if debug else None
            dcc = DCC(transport, network_code, observer=observer)
        except Exception:
            await _close_quietly(transport)
            raise
        if observer is not None:
            observer.connected(APP_ID)
        return cls(transport, dcc, observer)

    @property
    def dcc(self) -> DCC:
        return self._dcc

    async def close(self) -> None:
        """Close the transport. Close failures are logged and dropped."""
        await _close_quietly(self._transport)
        if self._observer is not None:
            self._observer.disconnected()


async def _close_quietly(transport: Transport) -> None:
    try:
        await transport.close()
    except Exception as exc:
        lg.debug("transport close failed: %s", exc)
