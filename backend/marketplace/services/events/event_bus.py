"""
Event Bus

In-process publish/subscribe registry that decouples a committed write
from its side effects (emails, analytics, moderation).

Handlers for one event run sequentially in subscription order. Handlers may
be plain functions or coroutines. A failing handler is logged and skipped;
it never stops its siblings and never reaches the publisher, because the
write that triggered the event has already committed.
"""

import inspect
import threading
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Union

import structlog
from opentelemetry import trace
from prometheus_client import Counter

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

EVENTS_PUBLISHED = Counter(
    "marketplace_events_published_total",
    "Domain events published on the bus",
    ["event"],
)
SUBSCRIBER_FAILURES = Counter(
    "marketplace_event_subscriber_failures_total",
    "Event subscribers that raised while handling an event",
    ["event"],
)

Payload = Mapping[str, Any]
Handler = Callable[[Payload], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class _Subscription:
    """One registration; unsubscribing removes this object, not a position."""

    __slots__ = ("event_name", "handler")

    def __init__(self, event_name: str, handler: Handler):
        self.event_name = event_name
        self.handler = handler


class EventBus:
    """Subscriber registry keyed by event name."""

    def __init__(self):
        self._subscriptions: Dict[str, List[_Subscription]] = {}
        self._lock = threading.RLock()

    def subscribe(self, event_name: str, handler: Handler) -> Unsubscribe:
        """
        Register a handler for every future publish of ``event_name``.

        Returns:
            A callable removing exactly this registration. Calling it again
            is a no-op.
        """
        subscription = _Subscription(event_name, handler)
        with self._lock:
            self._subscriptions.setdefault(event_name, []).append(subscription)

        logger.debug(
            "Event handler subscribed",
            event_name=event_name,
            handler=getattr(handler, "__qualname__", repr(handler)),
        )

        def unsubscribe() -> None:
            with self._lock:
                subscriptions = self._subscriptions.get(event_name)
                if not subscriptions:
                    return
                for index, existing in enumerate(subscriptions):
                    if existing is subscription:
                        del subscriptions[index]
                        break
                if not subscriptions:
                    del self._subscriptions[event_name]

        return unsubscribe

    async def publish(self, event_name: str, payload: Payload) -> None:
        """Invoke every handler registered for ``event_name`` in order."""
        with self._lock:
            subscriptions = list(self._subscriptions.get(event_name, ()))

        if not subscriptions:
            return

        EVENTS_PUBLISHED.labels(event=event_name).inc()

        with tracer.start_as_current_span("event_bus.publish") as span:
            span.set_attribute("event.name", event_name)
            span.set_attribute("event.subscribers", len(subscriptions))

            for subscription in subscriptions:
                handler = subscription.handler
                try:
                    result = handler(payload)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    SUBSCRIBER_FAILURES.labels(event=event_name).inc()
                    logger.error(
                        "Event handler failed",
                        event_name=event_name,
                        handler=getattr(handler, "__qualname__", repr(handler)),
                        error=str(e),
                        exc_info=True,
                    )

    def unsubscribe_all(self, event_name: str) -> None:
        with self._lock:
            self._subscriptions.pop(event_name, None)

    def subscriber_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(event_name, ()))

    def clear(self) -> None:
        """Drop every subscription (test reset)."""
        with self._lock:
            self._subscriptions.clear()


@lru_cache()
def get_event_bus() -> EventBus:
    """Process-wide event bus, created on first use."""
    return EventBus()
