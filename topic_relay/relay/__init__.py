"""
Topic Relay Module

Pub/sub client for a JSON-RPC relay server: publish payloads to topics,
subscribe to topics and receive relay pushes, unsubscribe.

Components:
- client.py: Relay orchestrator
- protocol.py: relay protocol versions and JSON-RPC 2.0 frames
- codec.py: payload encoding, plain or encrypted
- models.py: per-call options and key material
- exceptions.py: relay errors
"""

from .client import Relay, Subscription
from .exceptions import DecodeError, RelayError, UnsupportedProtocol
from .models import KeyMaterial, PublishOptions, SubscribeOptions
from .protocol import RELAY_JSONRPC, RelayProtocol, get_relay_protocol

__all__ = [
    "Relay",
    "Subscription",
    "RelayError",
    "UnsupportedProtocol",
    "DecodeError",
    "KeyMaterial",
    "PublishOptions",
    "SubscribeOptions",
    "RELAY_JSONRPC",
    "RelayProtocol",
    "get_relay_protocol",
]
