"""High-level DCC Ledger integration.

DCCLedger owns the connection to the device. It opens a Session on
demand, hands each call to the session's DCC engine and, when a call
fails, drops the session and reconnects in the background so the next
call finds a fresh one. Errors from the requested operation always reach
the caller unchanged.

Example:
    ledger = DCCLedger(HidTransportFactory())
    async with ledger:
        user = await ledger.derive_account(0)
        print(user.address, user.public_key)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from dccledger.core.base.errors import LedgerConnectionError, OutOfRangeError
from dccledger.core.dcc.constants import MAIN_NET_CODE, MAX_INDEX
from dccledger.core.dcc.messages import (
    DeviceVersion,
    SignData,
    SignOrderData,
    SignTxData,
    User,
)
from dccledger.core.dcc.path import account_path, check_account_index
from dccledger.core.dcc.protocol import DCC, check_uint8
from dccledger.core.dcc.session import Session
from dccledger.core.transport.base import TransportFactory

lg = logging.getLogger(__name__)

T = TypeVar("T")


class State(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


class DCCLedger:
    """Connection lifecycle and account-level API for one Ledger device."""

    def __init__(
        self,
        transport: TransportFactory,
        *,
        debug: bool = False,
        open_timeout: int | None = None,
        listen_timeout: int | None = None,
        exchange_timeout: int | None = None,
        network_code: int = MAIN_NET_CODE,
    ) -> None:
        if transport is None:
            raise TypeError(
                "DCCLedger requires a transport factory, "
                "e.g. DCCLedger(HidTransportFactory())"
            )
        check_uint8("networkCode", network_code)
        self._factory = transport
        self._debug = debug
        self._open_timeout = open_timeout
        self._listen_timeout = listen_timeout
        self._exchange_timeout = exchange_timeout
        self._network_code = network_code
        self._state = State.DISCONNECTED
        self._session: Session | None = None
        self._error: BaseException | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    async def __aenter__(self) -> DCCLedger:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def state(self) -> State:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is State.READY

    @property
    def network_code(self) -> int:
        return self._network_code

    # -- lifecycle --

    async def connect(self) -> None:
        """(Re)connect: drop any current session and open a new one."""
        await self.disconnect()
        self._state = State.CONNECTING
        try:
            session = await Session.open(
                self._factory,
                network_code=self._network_code,
                open_timeout=self._open_timeout,
                listen_timeout=self._listen_timeout,
                exchange_timeout=self._exchange_timeout,
                debug=self._debug,
            )
        except Exception as exc:
            self._state = State.DISCONNECTED
            raise LedgerConnectionError("Failed to connect to Ledger device") from exc

        previous, self._session = self._session, session
        self._state = State.READY
        if previous is not None:
            await previous.close()
        lg.info("connected (network %d)", self._network_code)

    async def disconnect(self) -> None:
        """Close the current session, if any."""
        session, self._session = self._session, None
        self._state = State.DISCONNECTED
        if session is not None:
            await session.close()
            lg.info("disconnected")

    async def close(self) -> None:
        """Disconnect and wait for pending background reconnects."""
        if self._background:
            await asyncio.wait(set(self._background))
        await self.disconnect()

    async def get_dcc(self) -> DCC:
        """Current DCC engine, connecting first if there is none."""
        if self._session is None:
            pending = self._reconnect_task
            if pending is not None and not pending.done():
                await asyncio.wait([pending])
        if self._session is None:
            await self.connect()
        return self._session.dcc

    def _schedule_reconnect(self) -> None:
        """Drop the current session and reconnect without blocking the caller."""
        stale, self._session = self._session, None
        self._state = State.CONNECTING
        task = asyncio.ensure_future(self._reconnect(stale))
        self._reconnect_task = task
        self._background.add(task)
        task.add_done_callback(self._reconnect_done)

    async def _reconnect(self, stale: Session | None) -> None:
        if stale is not None:
            await stale.close()
        await self.connect()

    def _reconnect_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            lg.warning("background reconnect failed: %s", exc)

    async def _run(self, label: str, op: Callable[[DCC], Awaitable[T]]) -> T:
        try:
            dcc = await self.get_dcc()
            return await op(dcc)
        except Exception as exc:
            lg.debug("%s failed: %s", label, exc)
            self._error = exc
            self._schedule_reconnect()
            raise

    # -- accounts --

    def path_for_account(self, index: int) -> str:
        """Derivation path of a 0-based account index."""
        return account_path(index)

    async def derive_account(self, index: int, verify: bool = False) -> User:
        """Public key and address of an account."""
        path = account_path(index)
        data = await self._run(
            "derive account", lambda dcc: dcc.get_wallet_public_key(path, verify)
        )
        return User(
            public_key=data.public_key,
            address=data.address,
            status_code=data.status_code,
            index=index,
            path=path,
        )

    async def paginate_accounts(self, start: int, count: int) -> list[User]:
        """Accounts ``start`` .. ``start + count - 1`` in order.

        Stops at the first failure; nothing is returned for a partial page.
        """
        check_account_index(start, "'from'")
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise OutOfRangeError(f"'limit' must be a non-negative integer, got {count!r}")
        if count and start + count - 1 > MAX_INDEX:
            raise OutOfRangeError(
                f"'limit' runs past the last account index ({MAX_INDEX})"
            )
        users = []
        for index in range(start, start + count):
            users.append(await self.derive_account(index))
        return users

    async def query_version(self) -> DeviceVersion:
        """Version of the application running on the device."""
        return await self._run("get version", lambda dcc: dcc.get_version())

    # -- signing --

    async def sign_transaction(self, index: int, data: SignTxData) -> str:
        path = account_path(index)
        return await self._run("sign transaction", lambda dcc: dcc.sign_transaction(path, data))

    async def sign_order(self, index: int, data: SignOrderData) -> str:
        path = account_path(index)
        return await self._run("sign order", lambda dcc: dcc.sign_order(path, data))

    async def sign_some_data(self, index: int, data: SignData) -> str:
        path = account_path(index)
        return await self._run("sign data", lambda dcc: dcc.sign_some_data(path, data))

    sign_raw_data = sign_some_data

    async def sign_request(self, index: int, data: SignData) -> str:
        path = account_path(index)
        return await self._run("sign request", lambda dcc: dcc.sign_request(path, data))

    async def sign_message(self, index: int, message: str) -> str:
        path = account_path(index)
        data = SignData(data_buffer=message.encode("utf-8"))
        return await self._run("sign message", lambda dcc: dcc.sign_message(path, data))

    # -- health --

    async def probe(self) -> bool:
        """True when the device answers a key derivation for account 1.

        Never raises; the failure is kept in last_error().
        """
        self._error = None
        try:
            if not self.ready:
                await self.get_dcc()
            await self.derive_account(1)
        except Exception as exc:
            self._error = exc
            return False
        return True

    def last_error(self) -> BaseException | None:
        return self._error
