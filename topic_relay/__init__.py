"""Topic Relay - publish/subscribe client for JSON-RPC relay servers."""

from topic_relay.relay import (
    Relay,
    RelayError,
    UnsupportedProtocol,
    DecodeError,
    KeyMaterial,
    PublishOptions,
    SubscribeOptions,
)
from topic_relay.transport import RelayTransport, TransportError

__version__ = "0.1.0"

__all__ = [
    "Relay",
    "RelayError",
    "UnsupportedProtocol",
    "DecodeError",
    "KeyMaterial",
    "PublishOptions",
    "SubscribeOptions",
    "RelayTransport",
    "TransportError",
]
