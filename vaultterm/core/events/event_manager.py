"""
Event management system for decoupled terminal communication.

The bus has two delivery paths. `publish_immediate` notifies subscribers
before returning and is used for anything the user must see in order
(output, prompt changes). `publish` queues the event until the shell loop
calls `process_events` after each command; bookkeeping such as logging and
progression tracking travels this way.
"""

import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import TerminalEvent, EventType


@dataclass(frozen=True)
class QueuedEvent:
    """An event waiting in the queue, with where it came from."""
    event: "TerminalEvent"
    source: str = "unknown"


EventSubscriber = Callable[["TerminalEvent"], None]
Unsubscribe = Callable[[], bool]


class EventManager:
    """Central event bus for terminal system communication."""

    def __init__(self, enable_debug_logging: bool = False):
        """Initialize the event manager.

        Args:
            enable_debug_logging: Whether to trace bus activity through the
                debug callback
        """
        self.enable_debug_logging = enable_debug_logging

        self._subscribers: dict["EventType", list[EventSubscriber]] = defaultdict(list)
        self._event_queue: deque[QueuedEvent] = deque()

        self._events_published = 0
        self._events_processed = 0

        self._lock = threading.RLock()
        self._debug_callback: Optional[Callable[[str], None]] = None

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        """Set a callback function for debug logging."""
        self._debug_callback = callback

    def _debug_log(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> Unsubscribe:
        """Subscribe to events of a specific type.

        Args:
            event_type: The type of events to subscribe to
            subscriber: Callback function to handle events
            subscriber_name: Optional name for debugging

        Returns:
            A callable that removes this subscription when invoked
        """
        with self._lock:
            self._subscribers[event_type].append(subscriber)

        subscriber_display = subscriber_name or getattr(subscriber, '__name__', 'anonymous')
        self._debug_log(f"Subscribed {subscriber_display} to {event_type.name} events")

        return lambda: self.unsubscribe(event_type, subscriber)

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Remove a subscriber; False if it was not subscribed."""
        with self._lock:
            try:
                self._subscribers[event_type].remove(subscriber)
            except ValueError:
                return False

        self._debug_log(f"Unsubscribed from {event_type.name} events")
        return True

    def subscriber_count(self, event_type: "EventType") -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def publish(self, event: "TerminalEvent", source: Optional[str] = None) -> None:
        """Queue an event for the next `process_events` call."""
        queued_event = QueuedEvent(event=event, source=source or "unknown")

        with self._lock:
            self._event_queue.append(queued_event)
            self._events_published += 1

        self._debug_log(f"Published {event.__class__.__name__} (source: {queued_event.source})")

    def publish_immediate(self, event: "TerminalEvent", source: Optional[str] = None) -> None:
        """Deliver an event to its subscribers before returning."""
        with self._lock:
            self._events_published += 1

        self._process_event(QueuedEvent(event=event, source=source or "immediate"))

    def process_events(self) -> int:
        """Deliver every queued event in publication order.

        Events published by subscribers while the queue is being drained are
        picked up by the next call.

        Returns:
            Number of events processed
        """
        with self._lock:
            pending = list(self._event_queue)
            self._event_queue.clear()

        for queued_event in pending:
            self._process_event(queued_event)

        return len(pending)

    def _process_event(self, queued_event: QueuedEvent) -> None:
        event = queued_event.event

        with self._lock:
            self._events_processed += 1
            subscribers = list(self._subscribers.get(event.event_type, []))

        self._debug_log(f"Processing {event.__class__.__name__} from {queued_event.source}")

        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception as e:
                self._debug_log(
                    f"Error in subscriber {getattr(subscriber, '__name__', 'anonymous')}: {e}"
                )

    def has_queued_events(self) -> bool:
        with self._lock:
            return len(self._event_queue) > 0

    def get_statistics(self) -> dict[str, Any]:
        """Counters shown by the `debug events` command."""
        with self._lock:
            return {
                'events_published': self._events_published,
                'events_processed': self._events_processed,
                'events_queued': len(self._event_queue),
                'subscribers_count': sum(len(subs) for subs in self._subscribers.values()),
            }

    def shutdown(self) -> None:
        """Drop every subscriber and queued event."""
        with self._lock:
            self._subscribers.clear()
            self._event_queue.clear()
        self._debug_log("Event manager shutdown complete")
