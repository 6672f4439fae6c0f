"""DCC Ledger protocol operations.

Translates key derivation, version queries and signing into APDUs for the
on-device application. Each method that maps to a single APDU command
uses the ``send_`` prefix; the remaining methods decode responses and
drive multi-APDU sequences.

The engine is bound to one opened transport for its whole life. It never
reconnects; that is the session manager's job.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from dccledger.core.base.encoding import (
    base58_encode,
    bytes_to_ascii,
    bytes_to_hex,
    concat_bytes,
    uint32_to_bytes_be,
)
from dccledger.core.base.errors import DecodingError, OutOfRangeError, StatusError
from dccledger.core.dcc.constants import (
    ADDRESS_LENGTH,
    APP_ID,
    CLA,
    DCC_PRECISION,
    FW_1_1_0,
    FW_1_2_0,
    INS_GET_PUBLIC_KEY,
    INS_GET_VERSION,
    INS_SIGN,
    MAIN_NET_CODE,
    MAX_CHUNK_SIZE,
    MESSAGE,
    ORDER,
    P1_CONFIRM,
    P1_LAST,
    P1_MORE,
    P1_NO_CONFIRM,
    PUBLIC_KEY_LENGTH,
    REQUEST,
    SOME_DATA,
    STATUS_LENGTH,
)
from dccledger.core.dcc.messages import (
    DeviceVersion,
    SignData,
    SignOrderData,
    SignTxData,
    UserData,
)
from dccledger.core.dcc.path import split_path
from dccledger.core.dcc.status import check_status
from dccledger.core.transport.base import Transport
from dccledger.core.transport.logging import PROTOCOL, color_sw
from dccledger.core.transport.observer import LoggingExchangeObserver
from dccledger.core.transport.types import APDU, Response

lg = logging.getLogger(__name__)

API_METHODS = ["get_wallet_public_key", "sign_data", "get_version"]


def check_uint8(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise OutOfRangeError(f"{name} must be an integer in [0, 255], got {value!r}")


def raise_for_status(resp: Response) -> None:
    """Raise StatusError unless the response carries 9000."""
    status = check_status([resp.sw1, resp.sw2])
    if status is not None:
        raise StatusError(status)


# -- signable buffer layouts, one per firmware generation --


def layout_v1_2(path: bytes, data: SignTxData) -> bytes:
    """Firmware >= 1.2.0: secondary precision, length prefix, data x4."""
    header = bytes([
        data.amount_precision,
        data.amount2_precision,
        data.fee_precision,
        data.data_type,
        data.data_version,
    ])
    buf = data.data_buffer
    return concat_bytes(path, header, uint32_to_bytes_be(len(buf)), buf, buf, buf, buf)


def layout_v1_1(path: bytes, data: SignTxData) -> bytes:
    """Firmware 1.1.x: length prefix, data x2."""
    header = bytes([
        data.amount_precision,
        data.fee_precision,
        data.data_type,
        data.data_version,
    ])
    buf = data.data_buffer
    return concat_bytes(path, header, uint32_to_bytes_be(len(buf)), buf, buf)


def layout_legacy(path: bytes, data: SignTxData) -> bytes:
    """Firmware < 1.1.0: no length prefix, single copy of data."""
    header = bytes([
        data.amount_precision,
        data.fee_precision,
        data.data_type,
        data.data_version,
    ])
    return concat_bytes(path, header, data.data_buffer)


def select_layout(firmware: int) -> Callable[[bytes, SignTxData], bytes]:
    if firmware >= FW_1_2_0:
        return layout_v1_2
    if firmware >= FW_1_1_0:
        return layout_v1_1
    return layout_legacy


class DCC:
    """Protocol operations for the DCC Ledger application."""

    check_status = staticmethod(check_status)
    split_path = staticmethod(split_path)

    def __init__(
        self,
        transport: Transport,
        network_code: int = MAIN_NET_CODE,
        observer: LoggingExchangeObserver | None = None,
    ) -> None:
        check_uint8("networkCode", network_code)
        self._transport = transport
        self._network_code = network_code
        self._observer = observer
        self._version: asyncio.Future[DeviceVersion] | None = None
        transport.decorate_app_api_methods(self, list(API_METHODS), APP_ID)

    @property
    def network_code(self) -> int:
        return self._network_code

    async def _send(self, label: str, apdu: APDU) -> Response:
        if self._observer is not None:
            self._observer.command(apdu)
        raw = await self._transport.send(apdu.cla, apdu.ins, apdu.p1, apdu.p2, apdu.data)
        resp = Response.from_bytes(raw)
        if self._observer is not None:
            self._observer.response(resp)
        lg.log(PROTOCOL, "%s %s", label, color_sw(resp.sw))
        return resp

    # -- commands --

    async def send_get_public_key(self, path: bytes, verify: bool = False) -> Response:
        """GET PUBLIC KEY (80 04). P1 asks for on-screen confirmation, P2 is the network."""
        p1 = P1_CONFIRM if verify else P1_NO_CONFIRM
        apdu = APDU(cla=CLA, ins=INS_GET_PUBLIC_KEY, p1=p1, p2=self._network_code, data=path)
        return await self._send(f"GET PUBLIC KEY verify={verify}", apdu)

    async def send_get_version(self) -> Response:
        """GET VERSION (80 06 00 00)."""
        apdu = APDU(cla=CLA, ins=INS_GET_VERSION, p1=0x00, p2=0x00)
        return await self._send("GET VERSION", apdu)

    async def send_sign(self, last: bool, chunk: bytes) -> Response:
        """SIGN (80 02) single chunk. P1=80 on the final chunk."""
        p1 = P1_LAST if last else P1_MORE
        apdu = APDU(cla=CLA, ins=INS_SIGN, p1=p1, p2=self._network_code, data=chunk)
        return await self._send(f"SIGN len={len(chunk)} last={last}", apdu)

    # -- operations --

    async def get_wallet_public_key(self, path: str, verify: bool = False) -> UserData:
        """Derive the public key and address for *path*."""
        resp = await self.send_get_public_key(split_path(path), verify)

        min_length = PUBLIC_KEY_LENGTH + ADDRESS_LENGTH + STATUS_LENGTH
        actual = resp.length
        if actual < min_length:
            raise DecodingError(
                f"Invalid response: expected at least {min_length} bytes, got {actual}"
            )
        raise_for_status(resp)

        public_key = base58_encode(resp.data[:PUBLIC_KEY_LENGTH])
        address = bytes_to_ascii(
            resp.data[PUBLIC_KEY_LENGTH : PUBLIC_KEY_LENGTH + ADDRESS_LENGTH]
        )
        status_code = bytes_to_hex(bytes([resp.sw1, resp.sw2]))
        return UserData(public_key=public_key, address=address, status_code=status_code)

    async def _query_version(self) -> DeviceVersion:
        resp = await self.send_get_version()
        raise_for_status(resp)
        return DeviceVersion.from_bytes(resp.data)

    async def get_version(self) -> DeviceVersion:
        """Application version, queried once per engine.

        A failed query is forgotten so the next call asks the device again.
        """
        if self._version is None:
            self._version = asyncio.ensure_future(self._query_version())
        version = self._version
        try:
            return await version
        except BaseException:
            if self._version is version:
                self._version = None
            raise

    async def build_signable_buffer(self, path: str, data: SignTxData) -> bytes:
        """Full signing payload (path, metadata, data) for the device's firmware."""
        if len(data.data_buffer) == 0:
            raise DecodingError("dataBuffer must not be empty")
        stamped = SignTxData(
            data_buffer=bytes(data.data_buffer),
            data_type=data.data_type,
            data_version=data.data_version,
            amount_precision=(
                DCC_PRECISION if data.amount_precision is None else data.amount_precision
            ),
            amount2_precision=(
                0 if data.amount2_precision is None else data.amount2_precision
            ),
            fee_precision=DCC_PRECISION if data.fee_precision is None else data.fee_precision,
        )
        check_uint8("amountPrecision", stamped.amount_precision)
        check_uint8("amount2Precision", stamped.amount2_precision)
        check_uint8("feePrecision", stamped.fee_precision)
        check_uint8("dataType", stamped.data_type)
        check_uint8("dataVersion", stamped.data_version)
        path_bytes = split_path(path)

        version = await self.get_version()
        layout = select_layout(version.number)
        lg.debug("firmware %s, signing with %s", version, layout.__name__)
        return layout(path_bytes, stamped)

    async def sign_data(self, buffer: bytes) -> str:
        """Send *buffer* in chunks and return the base58 signature."""
        if len(buffer) == 0:
            raise DecodingError("Cannot sign empty data payload")
        total = len(buffer)
        sent = 0
        resp = None
        while sent < total:
            size = min(total - sent, MAX_CHUNK_SIZE)
            last = total - sent <= MAX_CHUNK_SIZE
            resp = await self.send_sign(last, buffer[sent : sent + size])
            sent += size
            raise_for_status(resp)

        signature = resp.data
        if len(signature) == 0:
            raise DecodingError("Device returned an empty signature")
        return base58_encode(signature)

    async def _sign(self, path: str, data: SignTxData) -> str:
        buffer = await self.build_signable_buffer(path, data)
        return await self.sign_data(buffer)

    async def sign_transaction(self, path: str, data: SignTxData) -> str:
        """Sign a transaction; the device renders it from type and version."""
        return await self._sign(path, data)

    async def sign_order(self, path: str, data: SignOrderData) -> str:
        return await self._sign(path, SignTxData(
            data_buffer=data.data_buffer,
            data_type=ORDER,
            data_version=data.data_version,
            amount_precision=data.amount_precision,
            amount2_precision=data.amount2_precision,
            fee_precision=data.fee_precision,
        ))

    async def _sign_untyped(self, path: str, data: SignData, code: int) -> str:
        return await self._sign(path, SignTxData(
            data_buffer=data.data_buffer,
            data_type=code,
            data_version=0,
            amount_precision=0,
            fee_precision=0,
        ))

    async def sign_some_data(self, path: str, data: SignData) -> str:
        """Sign arbitrary bytes. The device shows a raw data warning only."""
        return await self._sign_untyped(path, data, SOME_DATA)

    sign_raw_data = sign_some_data

    async def sign_request(self, path: str, data: SignData) -> str:
        return await self._sign_untyped(path, data, REQUEST)

    async def sign_message(self, path: str, data: SignData | str) -> str:
        if isinstance(data, str):
            data = SignData(data_buffer=data.encode("utf-8"))
        return await self._sign_untyped(path, data, MESSAGE)
