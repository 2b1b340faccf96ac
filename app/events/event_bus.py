"""Thread-safe EventBus for alignment session events.

The session publishes one immutable event per state change; presentation
code subscribes with a handler per event type. Handing a frozen snapshot
to subscribers is the worker-to-consumer hand-off, so readers never see a
partially built state.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Type, TypeVar

from log_config.logger import get_logger

logger = get_logger(__name__)

EventType = TypeVar('EventType')
EventHandler = Callable[[EventType], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event class.

    Thread Safety:
        - subscribe(), unsubscribe() and publish() may be called from any thread
        - Handlers run on the publisher's thread, outside the bus lock

    Handlers should be fast; the session publishes from its frame loop.

    Example:
        ```python
        bus = EventBus()

        def on_alignment(event: AlignmentUpdatedEvent):
            show(event.state.message)

        bus.subscribe(AlignmentUpdatedEvent, on_alignment)
        session = AlignmentSession(config, TemplateVariant.RIGHT_HAND, bus=bus)
        ```
    """

    def __init__(self):
        self._subscribers: Dict[Type, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._event_count: Dict[Type, int] = {}
        self._start_time = time.time()

        logger.debug("EventBus initialized")

    def subscribe(self, event_type: Type[EventType], handler: EventHandler) -> None:
        """Register handler for event type.

        Args:
            event_type: The event class to subscribe to (e.g., AlignmentUpdatedEvent)
            handler: Callback function that takes event as parameter
        """
        with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []
                self._event_count[event_type] = 0

            self._subscribers[event_type].append(handler)
            logger.debug(f"Subscribed handler to {event_type.__name__} "
                         f"({len(self._subscribers[event_type])} total subscribers)")

    def unsubscribe(self, event_type: Type[EventType], handler: EventHandler) -> bool:
        """Unregister handler for event type.

        Returns:
            True if handler was found and removed, False otherwise
        """
        with self._lock:
            if event_type not in self._subscribers:
                return False

            try:
                self._subscribers[event_type].remove(handler)
                return True
            except ValueError:
                return False

    def publish(self, event: EventType) -> None:
        """Publish event to all subscribers of its exact type.

        A handler that raises is logged at ERROR; the remaining handlers
        still run and nothing propagates to the publisher.
        """
        event_type = type(event)

        with self._lock:
            handlers = self._subscribers.get(event_type, []).copy()
            self._event_count[event_type] = self._event_count.get(event_type, 0) + 1

        if not handlers:
            return

        failed_handlers = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                failed_handlers += 1
                logger.opt(exception=e).error(
                    f"Event handler error for {event_type.__name__} "
                    f"({getattr(handler, '__name__', repr(handler))}): "
                    f"{e.__class__.__name__}: {e}"
                )

        if failed_handlers > 0:
            logger.warning(f"{failed_handlers}/{len(handlers)} handlers failed for {event_type.__name__}")

    def get_subscriber_count(self, event_type: Type[EventType]) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics.

        Returns:
            Dict with event_types, total_subscribers, event_counts
            (class name -> publish count) and uptime_seconds
        """
        with self._lock:
            stats = {
                "event_types": len(self._subscribers),
                "total_subscribers": sum(len(handlers) for handlers in self._subscribers.values()),
                "event_counts": {
                    event_type.__name__: count
                    for event_type, count in self._event_count.items()
                },
                "uptime_seconds": time.time() - self._start_time
            }
        return stats

    def clear_all_subscribers(self) -> None:
        """Remove all subscribers (useful for testing)."""
        with self._lock:
            self._subscribers.clear()
            self._event_count.clear()

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (f"EventBus(event_types={stats['event_types']}, "
                f"subscribers={stats['total_subscribers']}, "
                f"uptime={stats['uptime_seconds']:.1f}s)")
