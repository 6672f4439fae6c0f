from __future__ import annotations

import logging

TRACE = 15
PROTOCOL = 18
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PROTOCOL, "PROTOCOL")

_GREEN = "\033[32m"
_RED = "\033[31m"
_RESET = "\033[0m"


def color_sw(sw: int) -> str:
    """Render a status word green for success, red for error."""
    color = _GREEN if (sw >> 8) in (0x90, 0x61) else _RED
    return f"{color}{sw:04X}{_RESET}"


def _trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = _trace
