"""
In-process event bus for domain events.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List

import structlog

logger = structlog.get_logger()

EventCallback = Callable[[Any], None]


@dataclass
class DomainEvent:
    name: str
    payload: Any = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


class InProcessEventBus:
    """
    Synchronous publish/subscribe bus.

    A failing subscriber is logged and does not stop the others.
    """

    def __init__(self, max_history: int = 100):
        self._listeners: Dict[str, List[EventCallback]] = defaultdict(list)
        self.history: Deque[DomainEvent] = deque(maxlen=max_history)

    def on(self, event_name: str, callback: EventCallback) -> Callable[[], None]:
        """Subscribe; returns an unsubscribe function."""
        self._listeners[event_name].append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(event_name, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def emit(self, event_name: str, payload: Any = None) -> None:
        self.history.append(DomainEvent(name=event_name, payload=payload))

        for callback in list(self._listeners.get(event_name, [])):
            try:
                callback(payload)
            except Exception as e:
                logger.error(
                    "Event subscriber failed",
                    event_name=event_name,
                    error=str(e),
                )

    def events_named(self, event_name: str) -> List[DomainEvent]:
        return [e for e in self.history if e.name == event_name]
