"""
Event Bus: synchronous publish/subscribe for engine lifecycle events.

Handlers run in the emitting thread. A raising handler is logged and never
affects the emitter or the remaining handlers.
"""

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from pilot_engine.models.events import EngineEvent, EventType
from pilot_engine.utils.logging import get_logger

log = get_logger(__name__)

EventHandler = Callable[[EngineEvent], None]


class EventBus:
    def __init__(self, max_history: int = 1000):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._history: Deque[EngineEvent] = deque(maxlen=max_history)
        self._lock = threading.Lock()

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        event_type = EventType(event_type)
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """Remove one registration of `handler`. Returns False if it was not subscribed."""
        event_type = EventType(event_type)
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def emit(
        self,
        event_type: EventType,
        data: Optional[Dict[str, Any]] = None,
        source: str = "decision_engine",
    ) -> EngineEvent:
        event = EngineEvent(
            type=event_type,
            timestamp=datetime.now(timezone.utc),
            data=data or {},
            source=source,
        )
        # Snapshot so handlers may (un)subscribe while being called.
        with self._lock:
            self._history.append(event)
            handlers = list(self._handlers.get(event.type, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                log.exception("event_handler_error", event_type=event.type.value)
        return event

    def handler_count(self, event_type: Optional[EventType] = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(EventType(event_type), []))
            return sum(len(h) for h in self._handlers.values())

    def recent_events(self, n: int = 50, event_type: Optional[EventType] = None) -> List[EngineEvent]:
        with self._lock:
            events = list(self._history)
        if event_type is not None:
            events = [e for e in events if e.type == EventType(event_type)]
        return events[-n:]

    def clear(self) -> None:
        """Drop every handler and the event history."""
        with self._lock:
            self._handlers.clear()
            self._history.clear()
