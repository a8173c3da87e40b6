"""Multicast event dispatcher."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Callable, Dict, List, Optional, Set, Union

from .events import Event, EventName, Handler

LOGGER = logging.getLogger(__name__)

EventKey = Union[EventName, str]
SlotLookup = Callable[[Event], Optional[Handler]]


def _key(name: EventKey) -> str:
    return name.value if isinstance(name, EventName) else name


def _same_handler(registered: Handler, handler: Handler) -> bool:
    if registered is handler:
        return True
    # Bound methods are recreated on every attribute access.
    if inspect.ismethod(registered) and inspect.ismethod(handler):
        return (
            registered.__self__ is handler.__self__
            and registered.__func__ is handler.__func__
        )
    if inspect.isbuiltin(registered) and inspect.isbuiltin(handler):
        return (
            registered.__self__ is handler.__self__
            and registered.__name__ == handler.__name__
        )
    return False


class EventBus:
    """Registry of handlers keyed by event name.

    Registering the same handler more than once under a name yields
    independent registrations that each fire on emission; ``off`` removes
    every occurrence of the handler under that name.

    Handlers run synchronously in registration order. A handler that raises
    is logged and skipped so the remaining handlers still run. Coroutine
    handlers are scheduled on the running loop and their failures logged.
    """

    def __init__(self, *, slot_lookup: Optional[SlotLookup] = None) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._lock = threading.RLock()
        self._slot_lookup = slot_lookup
        self._tasks: Set[asyncio.Task] = set()

    def on(self, name: EventKey, handler: Handler) -> Handler:
        with self._lock:
            self._handlers.setdefault(_key(name), []).append(handler)
        return handler

    def off(
        self, name: Optional[EventKey] = None, handler: Optional[Handler] = None
    ) -> Optional[Handler]:
        """Remove a handler, every handler of one event, or everything.

        ``off()`` clears the whole registry and ``off(name)`` clears one
        event. Removing something that is not registered is a no-op.
        """

        with self._lock:
            if name is None:
                self._handlers.clear()
                return None

            key = _key(name)
            if handler is None:
                self._handlers.pop(key, None)
                return None

            registered = self._handlers.get(key)
            if registered:
                remaining = [
                    item for item in registered if not _same_handler(item, handler)
                ]
                if remaining:
                    self._handlers[key] = remaining
                else:
                    del self._handlers[key]
        return handler

    def emit(self, event: Event) -> None:
        key = event.event_name.value
        with self._lock:
            handlers = list(self._handlers.get(key, ()))

        if self._slot_lookup is not None:
            slot = self._slot_lookup(event)
            if slot is not None:
                handlers.insert(0, slot)

        for handler in handlers:
            self._invoke(handler, event)

    def handler_count(self, name: Optional[EventKey] = None) -> int:
        with self._lock:
            if name is None:
                return sum(len(items) for items in self._handlers.values())
            return len(self._handlers.get(_key(name), ()))

    def _invoke(self, handler: Handler, event: Event) -> None:
        try:
            result = handler(event)
        except Exception:
            LOGGER.exception(
                "Event handler %r failed for %s", handler, event.event_name.value
            )
            return

        if asyncio.iscoroutine(result):
            try:
                task = asyncio.get_running_loop().create_task(result)
            except RuntimeError:
                result.close()
                LOGGER.warning(
                    "Dropped coroutine handler %r for %s: no running event loop",
                    handler,
                    event.event_name.value,
                )
                return
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Async event handler failed", exc_info=exc)
