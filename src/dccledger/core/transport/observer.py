from __future__ import annotations

import logging

from dccledger.core.transport.logging import TRACE, color_sw
from dccledger.core.transport.types import APDU, Response

lg = logging.getLogger(__name__)


LINE_BYTES = 16


class LoggingExchangeObserver:
    """Logs raw APDU traffic of a session via Python logging."""

    def _log_hex(self, prefix: str, data: bytes) -> None:
        """Log hex data, wrapping at LINE_BYTES bytes per line."""
        pad = " " * len(prefix)
        for i in range(0, len(data), LINE_BYTES):
            chunk = data[i : i + LINE_BYTES].hex(" ").upper()
            lg.log(TRACE, "%s%s", prefix if i == 0 else pad, chunk)

    def connected(self, app_id: str) -> None:
        lg.trace("session open (app %s)", app_id)

    def disconnected(self) -> None:
        lg.trace("session closed")

    def command(self, apdu: APDU) -> None:
        self._log_hex(">> ", apdu.to_bytes())

    def response(self, response: Response) -> None:
        if response.data:
            self._log_hex("<< ", response.data)
        lg.log(TRACE, "<< %s", color_sw(response.sw))
