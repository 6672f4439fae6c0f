import asyncio

import base58
import pytest

from fakes import ADDRESS, PUBLIC_KEY, FakeTransport, ok, public_key_response, sw

from dccledger.core.base.errors import DecodingError, OutOfRangeError, StatusError
from dccledger.core.dcc.messages import DeviceVersion, SignData, SignOrderData, SignTxData
from dccledger.core.dcc.path import account_path, split_path
from dccledger.core.dcc.protocol import API_METHODS, DCC

PATH = account_path(0)
PATH_BYTES = split_path(PATH)
SIGNATURE = bytes(range(64))


def b58(data):
    return base58.b58encode(data).decode("ascii")


def signed(version):
    """Transport answering one version query and a single-chunk signature."""
    transport = FakeTransport(ok(bytes(version)), ok(SIGNATURE))
    return transport, DCC(transport)


class TestConstruction:
    def test_binds_api_methods(self):
        transport = FakeTransport()
        dcc = DCC(transport)
        assert transport.decorated == (dcc, API_METHODS, "WAVES")
        assert dcc.network_code == 76

    @pytest.mark.parametrize("code", [-1, 256, True, 7.0])
    def test_network_code_range(self, code):
        with pytest.raises(OutOfRangeError, match="networkCode"):
            DCC(FakeTransport(), code)

    def test_static_helpers(self):
        assert DCC.split_path("1") == b"\x00\x00\x00\x01"
        assert DCC.check_status([0x90, 0x00]) is None


class TestPublicKey:
    async def test_apdu_and_result(self):
        transport = FakeTransport(public_key_response())
        user = await DCC(transport).get_wallet_public_key(PATH)

        assert transport.sent == [(0x80, 0x04, 0x00, 76, PATH_BYTES)]
        assert user.public_key == b58(PUBLIC_KEY)
        assert user.address == ADDRESS.decode("ascii")
        assert user.status_code == "9000"

    async def test_verify_and_network(self):
        transport = FakeTransport(public_key_response())
        await DCC(transport, 84).get_wallet_public_key(PATH, verify=True)
        assert transport.sent[0][2:4] == (0x80, 84)

    async def test_short_response(self):
        transport = FakeTransport(ok(b"\x00" * 66))
        with pytest.raises(DecodingError, match="expected at least 69 bytes, got 68"):
            await DCC(transport).get_wallet_public_key(PATH)

    @pytest.mark.parametrize("raw, length", [(b"", 0), (b"\x90", 1), (b"\x69\x85", 2)])
    async def test_short_response_reports_received_length(self, raw, length):
        transport = FakeTransport(raw)
        with pytest.raises(DecodingError, match=f"got {length}$"):
            await DCC(transport).get_wallet_public_key(PATH)

    async def test_status_error(self):
        transport = FakeTransport(sw(0x6986, PUBLIC_KEY + ADDRESS))
        with pytest.raises(StatusError) as exc_info:
            await DCC(transport).get_wallet_public_key(PATH)
        assert exc_info.value.status == 0x6986
        assert exc_info.value.message == "Device is locked"

    async def test_short_response_checked_before_status(self):
        transport = FakeTransport(sw(0x6986))
        with pytest.raises(DecodingError):
            await DCC(transport).get_wallet_public_key(PATH)

    async def test_bad_path_sends_nothing(self):
        transport = FakeTransport()
        with pytest.raises(DecodingError):
            await DCC(transport).get_wallet_public_key("44'/x")
        assert transport.sent == []


class TestVersion:
    async def test_query(self):
        transport = FakeTransport(ok(b"\x01\x02\x03"))
        version = await DCC(transport).get_version()
        assert version == DeviceVersion(1, 2, 3)
        assert str(version) == "1.2.3"
        assert transport.sent == [(0x80, 0x06, 0x00, 0x00, b"")]

    async def test_short_version_pads_with_zero(self):
        transport = FakeTransport(ok(b"\x01"))
        assert await DCC(transport).get_version() == DeviceVersion(1, 0, 0)

    async def test_cached(self):
        transport = FakeTransport(ok(b"\x01\x02\x00"))
        dcc = DCC(transport)
        assert await dcc.get_version() == await dcc.get_version()
        assert len(transport.sent) == 1

    async def test_concurrent_callers_share_one_query(self):
        transport = FakeTransport(ok(b"\x01\x02\x00"))
        dcc = DCC(transport)
        first, second = await asyncio.gather(dcc.get_version(), dcc.get_version())
        assert first == second == DeviceVersion(1, 2, 0)
        assert len(transport.sent) == 1

    async def test_failure_is_not_cached(self):
        transport = FakeTransport(sw(0x6D00), ok(b"\x01\x01\x00"))
        dcc = DCC(transport)
        with pytest.raises(StatusError, match="Instruction not supported"):
            await dcc.get_version()
        assert await dcc.get_version() == DeviceVersion(1, 1, 0)
        assert len(transport.sent) == 2


class TestLayouts:
    DATA = SignTxData(data_buffer=b"\xaa\xbb", data_type=4, data_version=2)

    async def _signed_payload(self, version):
        transport, dcc = signed(version)
        signature = await dcc.sign_transaction(PATH, self.DATA)
        assert signature == b58(SIGNATURE)
        cla, ins, p1, p2, payload = transport.sent[1]
        assert (cla, ins, p1, p2) == (0x80, 0x02, 0x80, 76)
        return payload

    @pytest.mark.parametrize("version", [[1, 2, 0], [2, 0, 0]])
    async def test_v1_2(self, version):
        payload = await self._signed_payload(version)
        expected = (
            PATH_BYTES + bytes([8, 0, 8, 4, 2]) + b"\x00\x00\x00\x02" + b"\xaa\xbb" * 4
        )
        assert payload == expected

    @pytest.mark.parametrize("version", [[1, 1, 0], [1, 1, 9]])
    async def test_v1_1(self, version):
        payload = await self._signed_payload(version)
        expected = PATH_BYTES + bytes([8, 8, 4, 2]) + b"\x00\x00\x00\x02" + b"\xaa\xbb" * 2
        assert payload == expected

    @pytest.mark.parametrize("version", [[1, 0, 0], [1, 0, 5], [0, 9, 0]])
    async def test_legacy(self, version):
        payload = await self._signed_payload(version)
        assert payload == PATH_BYTES + bytes([8, 8, 4, 2]) + b"\xaa\xbb"

    async def test_caller_precisions_kept(self):
        transport, dcc = signed([1, 2, 0])
        data = SignTxData(
            data_buffer=b"\x01",
            data_type=4,
            data_version=3,
            amount_precision=2,
            amount2_precision=6,
            fee_precision=5,
        )
        await dcc.sign_transaction(PATH, data)
        assert transport.sent[1][4][20:25] == bytes([2, 6, 5, 4, 3])

    async def test_version_queried_once_per_engine(self):
        transport = FakeTransport(ok(b"\x01\x02\x00"), ok(SIGNATURE), ok(SIGNATURE))
        dcc = DCC(transport)
        await dcc.sign_transaction(PATH, self.DATA)
        await dcc.sign_transaction(PATH, self.DATA)
        assert [s[1] for s in transport.sent] == [0x06, 0x02, 0x02]


class TestTypedSigning:
    async def _header(self, sign, data):
        transport, dcc = signed([1, 2, 0])
        await getattr(dcc, sign)(PATH, data)
        payload = transport.sent[1][4]
        return payload[20:25], payload[29:]

    async def test_order(self):
        data = SignOrderData(
            data_buffer=b"\x01", data_version=3, amount_precision=2, fee_precision=4,
        )
        header, body = await self._header("sign_order", data)
        assert header == bytes([2, 0, 4, 0xFC, 3])
        assert body == b"\x01" * 4

    async def test_order_defaults(self):
        header, _ = await self._header("sign_order", SignOrderData(data_buffer=b"\x01"))
        assert header == bytes([8, 0, 8, 0xFC, 0])

    @pytest.mark.parametrize(
        "sign, code",
        [("sign_some_data", 0xFD), ("sign_raw_data", 0xFD), ("sign_request", 0xFE),
         ("sign_message", 0xFF)],
    )
    async def test_untyped(self, sign, code):
        header, body = await self._header(sign, SignData(data_buffer=b"hi"))
        assert header == bytes([0, 0, 0, code, 0])
        assert body == b"hi" * 4

    async def test_message_from_text(self):
        header, body = await self._header("sign_message", "héllo")
        assert header[3] == 0xFF
        assert body == "héllo".encode("utf-8") * 4


class TestChunking:
    async def test_three_chunks(self):
        transport = FakeTransport(ok(), ok(), ok(SIGNATURE))
        buffer = bytes(i % 256 for i in range(250))

        assert await DCC(transport).sign_data(buffer) == b58(SIGNATURE)
        assert [s[2] for s in transport.sent] == [0x00, 0x00, 0x80]
        assert [s[3] for s in transport.sent] == [76, 76, 76]
        assert [len(s[4]) for s in transport.sent] == [123, 123, 4]
        assert b"".join(s[4] for s in transport.sent) == buffer

    @pytest.mark.parametrize("size, chunks", [(1, 1), (123, 1), (124, 2), (246, 2), (247, 3)])
    async def test_chunk_count(self, size, chunks):
        transport = FakeTransport(*([ok()] * (chunks - 1) + [ok(SIGNATURE)]))
        await DCC(transport).sign_data(b"\x01" * size)
        assert len(transport.sent) == chunks
        assert transport.sent[-1][2] == 0x80

    async def test_status_error_stops_sending(self):
        transport = FakeTransport(ok(), sw(0x9100), ok(SIGNATURE))
        with pytest.raises(StatusError) as exc_info:
            await DCC(transport).sign_data(b"\x01" * 250)
        assert exc_info.value.status == 0x9100
        assert len(transport.sent) == 2

    async def test_empty_payload(self):
        transport = FakeTransport()
        with pytest.raises(DecodingError, match="Cannot sign empty data payload"):
            await DCC(transport).sign_data(b"")
        assert transport.sent == []

    async def test_empty_signature(self):
        transport = FakeTransport(ok())
        with pytest.raises(DecodingError, match="empty signature"):
            await DCC(transport).sign_data(b"\x01")


class TestValidation:
    async def test_empty_data_buffer(self):
        transport = FakeTransport()
        with pytest.raises(DecodingError, match="dataBuffer must not be empty"):
            await DCC(transport).sign_transaction(PATH, SignTxData(data_buffer=b""))
        assert transport.sent == []

    @pytest.mark.parametrize(
        "field, name",
        [
            ("amount_precision", "amountPrecision"),
            ("amount2_precision", "amount2Precision"),
            ("fee_precision", "feePrecision"),
            ("data_type", "dataType"),
            ("data_version", "dataVersion"),
        ],
    )
    async def test_uint8_fields(self, field, name):
        transport = FakeTransport()
        data = SignTxData(data_buffer=b"\x01", **{field: 256})
        with pytest.raises(OutOfRangeError, match=name):
            await DCC(transport).sign_transaction(PATH, data)
        assert transport.sent == []
