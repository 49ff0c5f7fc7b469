"""Transport interface consumed by the relay client."""

from .base import (
    RelayTransport,
    TransportError,
    TransportConnectionError,
    RPCError,
)
from .fake import FakeTransport

__all__ = [
    "RelayTransport",
    "TransportError",
    "TransportConnectionError",
    "RPCError",
    "FakeTransport",
]
