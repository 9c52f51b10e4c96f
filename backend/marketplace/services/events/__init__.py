"""In-process notification bus and its built-in observers."""

from .event_bus import EventBus, get_event_bus
from .observers import EnrollmentObserver, ReviewObserver, register_default_observers

__all__ = [
    "EventBus",
    "get_event_bus",
    "EnrollmentObserver",
    "ReviewObserver",
    "register_default_observers",
]
