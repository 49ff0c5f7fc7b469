"""
Topic Relay Client

Publishes payloads to relay topics, subscribes to topics and routes relay
subscription pushes back to local listeners over one JSON-RPC transport.

Flow:
1. init() connects the transport
2. subscribe() sends <protocol>_subscribe and gets back a subscription id
3. The relay pushes <protocol>_subscription requests carrying {id, data}
4. Each push is queued on that subscription's delivery task, decoded and
   handed to the listener; the push is acked with result true
5. unsubscribe() sends <protocol>_unsubscribe; pushes already queued are
   still delivered, later ones are dropped
"""
import asyncio
import inspect
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from topic_relay.core.config import RelaySettings, get_settings
from topic_relay.core.events import EventEmitter
from topic_relay.core.logging import get_logger
from topic_relay.transport.base import RelayTransport

from . import codec
from .exceptions import DecodeError
from .models import KeyMaterial, PublishOptions, SubscribeOptions
from .protocol import format_request, format_result, get_relay_protocol, is_subscription_push

logger = get_logger(__name__)

Listener = Callable[[Any], Any]

# Queue marker that ends a subscription's delivery task
_STOP = object()


@dataclass
class Subscription:
    """Dispatch entry for one active subscription id"""
    id: str
    topic: str
    handlers: List[Callable] = field(default_factory=list)
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    task: Optional[asyncio.Task] = None


class Relay:
    """Pub/sub client for a JSON-RPC relay server"""

    def __init__(self, transport: RelayTransport, settings: Optional[RelaySettings] = None):
        """
        Initialize relay client.

        Args:
            transport: Connected-or-connectable JSON-RPC transport
            settings: Defaults for protocol and publish ttl (RELAY_* env when omitted)
        """
        self.transport = transport
        self.settings = settings or get_settings()

        # Connection lifecycle signals (connect, disconnect, error)
        self.events = EventEmitter()

        # Subscription id -> dispatch entry
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

        # In-flight push acknowledgements
        self._ack_tasks: Set[asyncio.Task] = set()

        # Subscriptions unsubscribed while pushes were still queued
        self._draining: Set[asyncio.Task] = set()

        # Bound once so close() can detach the same objects
        self._transport_handlers: Dict[str, Callable] = {
            "payload": self._on_payload,
            "connect": self._on_connect,
            "disconnect": self._on_disconnect,
            "error": self._on_error,
        }
        for event, handler in self._transport_handlers.items():
            self.transport.on(event, handler)

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def init(self) -> None:
        """Connect the transport. Errors propagate, nothing is retried."""
        logger.debug("[Relay] Initializing")
        await self.transport.connect()
        logger.info("[Relay] Initialized")

    async def close(self) -> None:
        """Drop every subscription, detach from the transport and disconnect it.

        Unlike unsubscribe, queued pushes are discarded and running listeners
        are cancelled.
        """
        self.transport.off("payload", self._transport_handlers["payload"])

        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()

        tasks = [s.task for s in subscriptions if s.task is not None]
        tasks.extend(self._draining)
        tasks.extend(self._ack_tasks)
        tasks = [t for t in tasks if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if self.transport.connected:
            await self.transport.disconnect()

        for event, handler in self._transport_handlers.items():
            self.transport.off(event, handler)
        logger.info("[Relay] Closed", dropped_subscriptions=len(subscriptions))

    @property
    def connected(self) -> bool:
        return self.transport.connected

    @property
    def subscriptions(self) -> List[str]:
        """Ids of all active subscriptions."""
        with self._lock:
            return list(self._subscriptions.keys())

    # =========================================================================
    # Pub/Sub
    # =========================================================================

    async def publish(self, topic: str, payload: Any, opts: Optional[PublishOptions] = None) -> None:
        """
        Publish a payload to a relay topic.

        Args:
            topic: Relay topic
            payload: JSON-serializable payload
            opts: Protocol, ttl and optional encryption keys
        """
        opts = opts or PublishOptions()
        logger.debug("[Relay] Publishing Payload", topic=topic)
        try:
            jsonrpc = get_relay_protocol(opts.protocol or self.settings.default_protocol)
            message = codec.encode(payload, opts.encrypt_keys)
            request = format_request(jsonrpc.publish, {
                "topic": topic,
                "message": message,
                "ttl": opts.ttl or self.settings.default_publish_ttl,
            })
            self._log_outgoing(request)
            await self.transport.request(request)
            logger.debug("[Relay] Successfully Published Payload", topic=topic, id=request["id"])
        except Exception as e:
            logger.debug("[Relay] Failed to Publish Payload", topic=topic)
            logger.error("[Relay] Publish error", error=str(e))
            raise

    async def subscribe(self, topic: str, listener: Listener, opts: Optional[SubscribeOptions] = None) -> str:
        """
        Subscribe to a relay topic.

        Args:
            topic: Relay topic
            listener: Called with each decoded payload; may be a coroutine function
            opts: Protocol and optional decryption keys

        Returns:
            Subscription id assigned by the relay
        """
        opts = opts or SubscribeOptions()
        logger.debug("[Relay] Subscribing Topic", topic=topic)
        try:
            jsonrpc = get_relay_protocol(opts.protocol or self.settings.default_protocol)
            request = format_request(jsonrpc.subscribe, {"topic": topic})
            self._log_outgoing(request)
            id = await self.transport.request(request)
            self._register(id, topic, self._make_handler(id, listener, opts.decrypt_keys))
            logger.debug("[Relay] Successfully Subscribed Topic", topic=topic, subscription=id)
            return id
        except Exception as e:
            logger.debug("[Relay] Failed to Subscribe Topic", topic=topic)
            logger.error("[Relay] Subscribe error", error=str(e))
            raise

    async def unsubscribe(self, id: str, opts: Optional[SubscribeOptions] = None) -> None:
        """
        Unsubscribe a subscription id.

        The local dispatch entry is only dropped once the relay acknowledges;
        if the request fails, pushes for ``id`` keep being delivered.
        """
        opts = opts or SubscribeOptions()
        logger.debug("[Relay] Unsubscribing Topic", subscription=id)
        try:
            jsonrpc = get_relay_protocol(opts.protocol or self.settings.default_protocol)
            request = format_request(jsonrpc.unsubscribe, {"id": id})
            self._log_outgoing(request)
            await self.transport.request(request)
            await self._unregister(id)
            logger.debug("[Relay] Successfully Unsubscribed Topic", subscription=id)
        except Exception as e:
            logger.debug("[Relay] Failed to Unsubscribe Topic", subscription=id)
            logger.error("[Relay] Unsubscribe error", error=str(e))
            raise

    # =========================================================================
    # Lifecycle Events
    # =========================================================================

    def on(self, event: str, listener: Callable) -> None:
        self.events.on(event, listener)

    def once(self, event: str, listener: Callable) -> None:
        self.events.once(event, listener)

    def off(self, event: str, listener: Callable) -> None:
        self.events.off(event, listener)

    def remove_listener(self, event: str, listener: Callable) -> None:
        self.events.remove_listener(event, listener)

    def _on_connect(self) -> None:
        logger.info("[Relay] Transport connected")
        self.events.emit("connect")

    def _on_disconnect(self) -> None:
        # Subscriptions stay registered; resubscribing after reconnect is up to the caller
        logger.warning("[Relay] Transport disconnected", active_subscriptions=len(self.subscriptions))
        self.events.emit("disconnect")

    def _on_error(self, error: Exception) -> None:
        logger.error("[Relay] Transport error", error=str(error))
        self.events.emit("error", error)

    # =========================================================================
    # Subscription Dispatch
    # =========================================================================

    def _on_payload(self, payload: Dict[str, Any]) -> None:
        """Route an inbound frame. Only subscription pushes are handled here."""
        logger.info("[Relay] Incoming Relay Payload")
        logger.debug("[Relay] Payload", direction="incoming", payload=payload)
        if not is_subscription_push(payload):
            return

        params = payload.get("params")
        if not isinstance(params, dict) or not isinstance(params.get("id"), str):
            logger.warning("[Relay] Malformed subscription push", method=payload["method"], id=payload["id"], params=params)
            return

        with self._lock:
            subscription = self._subscriptions.get(params["id"])
        if subscription is not None:
            subscription.queue.put_nowait(params.get("data"))
        else:
            logger.debug("[Relay] Dropping push for inactive subscription", subscription=params["id"])

        self._acknowledge(payload["id"])

    def _acknowledge(self, request_id: Any) -> None:
        response = format_result(request_id, True)
        task = asyncio.ensure_future(self.transport.send(response))
        self._ack_tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._ack_tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error("[Relay] Failed to acknowledge push", id=request_id, error=str(t.exception()))

        task.add_done_callback(_done)

    def _make_handler(self, id: str, listener: Listener, keys: Optional[KeyMaterial]) -> Callable:
        async def handle(data: Any) -> None:
            try:
                if not isinstance(data, dict) or "message" not in data:
                    raise DecodeError("Subscription push data has no message")
                payload = codec.decode(data["message"], keys)
            except DecodeError as e:
                logger.error("[Relay] Failed to decode push", subscription=id, error=str(e))
                return

            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("[Relay] Subscription listener failed", subscription=id, error=str(e), exc_info=True)

        return handle

    def _register(self, id: str, topic: str, handler: Callable) -> None:
        with self._lock:
            subscription = self._subscriptions.get(id)
            if subscription is None:
                subscription = Subscription(id=id, topic=topic)
                subscription.task = asyncio.ensure_future(self._deliver(subscription))
                self._subscriptions[id] = subscription
            subscription.handlers.append(handler)

    async def _unregister(self, id: str) -> None:
        with self._lock:
            subscription = self._subscriptions.pop(id, None)
        if subscription is None or subscription.task is None:
            return
        # Pushes queued before this point are still delivered, then the task exits
        subscription.queue.put_nowait(_STOP)
        task = subscription.task
        if not task.done():
            self._draining.add(task)
            task.add_done_callback(self._draining.discard)

    async def _deliver(self, subscription: Subscription) -> None:
        """Deliver queued pushes for one subscription, in arrival order."""
        while True:
            data = await subscription.queue.get()
            if data is _STOP:
                return
            for handler in list(subscription.handlers):
                await handler(data)

    def _log_outgoing(self, request: Dict[str, Any]) -> None:
        logger.info("[Relay] Outgoing Relay Payload", method=request["method"], id=request["id"])
        logger.debug("[Relay] Payload", direction="outgoing", request=request)
