"""Transport interface.

This is the (small) contract a JSON-RPC transport must follow for the relay
client to run on top of it. Concrete socket transports live outside this
package; request/response correlation by message id is their job.

Events emitted by implementations:
- ``payload(frame)``: every inbound JSON-RPC frame (dict)
- ``connect``, ``disconnect``
- ``error(exc)``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from ..core.events import EventEmitter


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class RPCError(TransportError):
    """The peer answered a request with a JSON-RPC error."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class RelayTransport(ABC):
    """Minimal contract for a JSON-RPC request/response transport."""

    def __init__(self):
        self.events = EventEmitter()

    @abstractmethod
    async def connect(self) -> None:
        """Establish the underlying connection."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear down the underlying connection."""

    @abstractmethod
    async def request(self, request: Dict[str, Any]) -> Any:
        """Send a request frame and return the ``result`` of its response."""

    @abstractmethod
    async def send(self, frame: Dict[str, Any]) -> None:
        """Send a raw frame without waiting for a response."""

    @property
    def connected(self) -> bool:
        """Whether the transport is currently connected."""
        return False

    def on(self, event: str, listener: Callable) -> None:
        self.events.on(event, listener)

    def off(self, event: str, listener: Callable) -> None:
        self.events.off(event, listener)
