"""
Named-event bus for relay connection lifecycle signals.

Listeners may be plain callables or coroutine functions. Coroutine listeners
are scheduled on the running loop; a failing listener is logged and the rest
still run.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from topic_relay.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(eq=False)
class _Registration:
    listener: Callable
    once: bool = False


class EventEmitter:
    """Minimal on/once/off/emit event bus"""

    def __init__(self):
        self._listeners: Dict[str, List[_Registration]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def on(self, event: str, listener: Callable) -> None:
        self._listeners.setdefault(event, []).append(_Registration(listener))

    def once(self, event: str, listener: Callable) -> None:
        self._listeners.setdefault(event, []).append(_Registration(listener, once=True))

    def off(self, event: str, listener: Callable) -> None:
        registrations = self._listeners.get(event)
        if not registrations:
            return
        # Most recent registration goes first
        for index in range(len(registrations) - 1, -1, -1):
            if registrations[index].listener is listener:
                del registrations[index]
                break
        if not registrations:
            del self._listeners[event]

    remove_listener = off

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Invoke every listener for ``event``. Returns True if any existed."""
        registrations = self._listeners.get(event)
        if not registrations:
            return False

        snapshot = list(registrations)
        for registration in snapshot:
            if registration.once:
                self._discard(event, registration)
            try:
                result = registration.listener(*args)
            except Exception as e:
                logger.error("[Events] Listener failed", event_name=event, error=str(e), exc_info=True)
                continue
            if asyncio.iscoroutine(result):
                self._schedule(event, result)
        return True

    def _discard(self, event: str, registration: _Registration) -> None:
        registrations = self._listeners.get(event)
        if registrations and registration in registrations:
            registrations.remove(registration)
            if not registrations:
                del self._listeners[event]

    def _schedule(self, event: str, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error("[Events] Async listener failed", event_name=event, error=str(t.exception()))

        task.add_done_callback(_done)
