"""Typed events with parameters, and a listener registry that dispatches them."""

from __future__ import annotations

import functools
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable


@dataclass
class Event:
    """An event of a given type carrying keyed parameters."""

    type: Hashable
    params: dict[Hashable, Any] = field(default_factory=dict)

    def set_param(self, key: Hashable, value: Any) -> None:
        self.params[key] = value

    def get_param(self, key: Hashable) -> Any:
        """Return a parameter; raises KeyError if it was never set."""
        return self.params[key]


Listener = Callable[[Event], None]


class EventManager:
    """Keeps listeners per event type and calls them in registration order."""

    def __init__(self) -> None:
        self._listeners: defaultdict[Hashable, list[Listener]] = defaultdict(list)
        self._lock = threading.RLock()

    def add_listener(self, event_id: Hashable, listener: Listener) -> None:
        with self._lock:
            self._listeners[event_id].append(listener)

    def send_event(self, event: Event | Hashable) -> None:
        """Dispatch an event, or a bare event id as a parameterless event."""
        if not isinstance(event, Event):
            event = Event(event)
        with self._lock:
            for listener in self._listeners[event.type]:
                listener(event)


@functools.lru_cache(maxsize=None)
def get_event_manager() -> EventManager:
    """The process-wide event manager."""
    return EventManager()