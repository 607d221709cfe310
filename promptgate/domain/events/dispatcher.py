"""Minimal synchronous event dispatcher.

Every event is logged at DEBUG; registered listeners are then called in
registration order. A failing listener is logged and skipped so that
observers can never break a request.
"""

import logging
from typing import Callable, List

from promptgate.domain.events.api_events import DomainEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[DomainEvent], None]

class EventDispatcher:
    """Fans domain events out to listeners."""

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener {listener!r} failed on {type(event).__name__}: {e}", exc_info=True)
