"""
JSON-RPC 2.0 Protocol for the Topic Relay

Maps relay protocol versions to method names and builds/inspects wire frames.

Request format:  {"id": 1, "jsonrpc": "2.0", "method": "...", "params": {...}}
Response format: {"id": 1, "jsonrpc": "2.0", "result": ...}
Push format:     {"id": 1, "jsonrpc": "2.0", "method": "<protocol>_subscription",
                  "params": {"id": "<subscription id>", "data": {...}}}

Relay methods per protocol:
- <protocol>_publish(topic, message, ttl)
- <protocol>_subscribe(topic) -> subscription id
- <protocol>_unsubscribe(id)
- <protocol>_subscription(id, data)  (server -> client, acked with true)
"""
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from .exceptions import UnsupportedProtocol

JSONRPC_VERSION = "2.0"
SUBSCRIPTION_SUFFIX = "_subscription"


@dataclass(frozen=True)
class RelayProtocol:
    """Method names for one relay protocol version"""
    publish: str
    subscribe: str
    subscription: str
    unsubscribe: str

    @classmethod
    def for_prefix(cls, prefix: str) -> "RelayProtocol":
        return cls(
            publish=f"{prefix}_publish",
            subscribe=f"{prefix}_subscribe",
            subscription=f"{prefix}{SUBSCRIPTION_SUFFIX}",
            unsubscribe=f"{prefix}_unsubscribe",
        )


RELAY_JSONRPC: Dict[str, RelayProtocol] = {
    "waku": RelayProtocol.for_prefix("waku"),
    "irn": RelayProtocol.for_prefix("irn"),
    "iridium": RelayProtocol.for_prefix("iridium"),
}


def get_relay_protocol(protocol: str) -> RelayProtocol:
    """Look up the method names for a relay protocol version."""
    jsonrpc = RELAY_JSONRPC.get(protocol)
    if jsonrpc is None:
        raise UnsupportedProtocol(protocol)
    return jsonrpc


@dataclass
class RPCRequest:
    """JSON-RPC 2.0 request"""
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id if self.id is not None else payload_id(),
            "jsonrpc": JSONRPC_VERSION,
            "method": self.method,
            "params": self.params,
        }


@dataclass
class RPCResponse:
    """JSON-RPC 2.0 success response"""
    id: int
    result: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "jsonrpc": JSONRPC_VERSION, "result": self.result}


def payload_id() -> int:
    """Millisecond timestamp with three random trailing digits."""
    return int(time.time() * 1000) * 1000 + random.randint(0, 999)


def format_request(method: str, params: Dict[str, Any], id: Optional[int] = None) -> Dict[str, Any]:
    return RPCRequest(method=method, params=params, id=id).to_dict()


def format_result(id: int, result: Any) -> Dict[str, Any]:
    return RPCResponse(id=id, result=result).to_dict()


def is_request(data: Any) -> bool:
    """Check if frame is a request (has id and method)"""
    return isinstance(data, dict) and "id" in data and isinstance(data.get("method"), str)


def is_subscription_push(data: Any) -> bool:
    """Check if frame is a relay subscription push request"""
    return is_request(data) and data["method"].endswith(SUBSCRIPTION_SUFFIX)
