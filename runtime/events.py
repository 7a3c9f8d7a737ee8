"""
Typed event bus for change notification.

Event types are Enum members, so subscribers never match on strings.
The editor publishes on this bus after every mutation, load, save and
validation pass; views subscribe instead of polling.

Usage:
    class TreeEvent(Enum):
        NODE_ADDED = auto()

    bus = EventBus()
    bus.subscribe(TreeEvent.NODE_ADDED, on_node_added)
    bus.publish(TreeEvent.NODE_ADDED, node_id="start")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    A published event.

    Attributes:
        type: The event type (Enum member)
        data: Keyword payload passed to publish()
        consumed: Set by a handler to stop propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop delivery to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe hub.

    Features:
    - Priority ordering (highest first)
    - Weak references by default, so a discarded view unsubscribes itself
    - One-shot handlers
    - Consumption stops propagation
    - Re-entrant publishes are queued until the current dispatch finishes
    """

    def __init__(self):
        # event type -> [(priority, handler or reference, one_shot)]
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        self._queue: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Register a handler for an event type.

        Args:
            event_type: Enum member to listen for
            handler: Callable receiving the Event
            priority: Higher runs first; equal priorities keep subscription order
            one_shot: Drop the handler after its first call
            weak: Hold only a weak reference to the handler
        """
        if weak:
            if hasattr(handler, '__self__'):
                entry_ref: Any = WeakMethod(handler)
            else:
                entry_ref = ref(handler)
        else:
            entry_ref = handler

        handlers = self._handlers.setdefault(event_type, [])
        position = len(handlers)
        for i, (existing_priority, _, _) in enumerate(handlers):
            if priority > existing_priority:
                position = i
                break
        handlers.insert(position, (priority, entry_ref, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove every registration of handler for event_type."""
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        self._handlers[event_type] = [
            entry for entry in handlers
            if self._resolve(entry[1]) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event; inspect .consumed to see whether a handler claimed it
        """
        event = Event(type=event_type, data=data)
        if self._dispatching:
            self._queue.append(event)
        else:
            self._dispatch(event)
        return event

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._handlers.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop handlers for one event type, or for all of them."""
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        handlers = self._handlers.get(event.type)
        if not handlers:
            return

        self._dispatching = True
        stale: list[tuple[int, Any, bool]] = []
        try:
            for entry in list(handlers):
                _, entry_ref, one_shot = entry
                handler = self._resolve(entry_ref)
                if handler is None:
                    stale.append(entry)
                    continue

                try:
                    handler(event)
                except Exception:
                    logger.exception("Handler for %s failed", event.type)

                if one_shot:
                    stale.append(entry)
                if event.consumed:
                    break

            # Handlers may have (un)subscribed during dispatch; match by identity.
            for entry in stale:
                for i, live in enumerate(handlers):
                    if live is entry:
                        del handlers[i]
                        break
        finally:
            self._dispatching = False

        while self._queue:
            self._dispatch(self._queue.pop(0))

    @staticmethod
    def _resolve(entry_ref: Any) -> EventHandler | None:
        if isinstance(entry_ref, (ref, WeakMethod)):
            return entry_ref()
        return entry_ref
