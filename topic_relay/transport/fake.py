"""In-memory relay transport for tests and local wiring."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Dict, List, Optional

from .base import RelayTransport, TransportConnectionError


class FakeTransport(RelayTransport):
    """Records traffic and answers requests from per-method responders.

    A responder is either a plain value (returned as the result), an exception
    instance (raised), or a callable taking the request frame and returning a
    result (may be async, may raise).
    """

    def __init__(self, responders: Optional[Dict[str, Any]] = None, fail_connect: Optional[Exception] = None):
        super().__init__()
        self.responders: Dict[str, Any] = dict(responders or {})
        self.fail_connect = fail_connect
        self.requests: List[Dict[str, Any]] = []
        self.sent: List[Dict[str, Any]] = []
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if self.fail_connect is not None:
            self.events.emit("error", self.fail_connect)
            raise self.fail_connect
        self._connected = True
        self.events.emit("connect")

    async def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self.events.emit("disconnect")

    async def request(self, request: Dict[str, Any]) -> Any:
        self.requests.append(request)
        if not self._connected:
            raise TransportConnectionError("Not connected to relay server")

        responder = self.responders.get(request["method"], True)
        if isinstance(responder, BaseException):
            raise responder
        if callable(responder):
            result = responder(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        return responder

    async def send(self, frame: Dict[str, Any]) -> None:
        self.sent.append(frame)

    def push(self, frame: Dict[str, Any]) -> None:
        """Deliver an inbound frame as if it arrived from the relay."""
        self.events.emit("payload", frame)

    def fail(self, error: Exception) -> None:
        self.events.emit("error", error)

    def methods(self) -> List[str]:
        return [r["method"] for r in self.requests]

    async def drain(self) -> None:
        """Yield to the loop so scheduled deliveries and acks run."""
        for _ in range(5):
            await asyncio.sleep(0)
