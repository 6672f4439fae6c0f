from dccledger.core.transport.base import Transport, TransportFactory
from dccledger.core.transport.logging import PROTOCOL, TRACE
from dccledger.core.transport.types import APDU, Response

__all__ = ["APDU", "PROTOCOL", "Response", "TRACE", "Transport", "TransportFactory"]
