"""Core analytics tracker components: events, context capture and errors."""

from .context import EnvironmentContext, system_context
from .events import BatchPayload, Event, EventPayload, now_ms
from .exceptions import ConfigurationError, DeliveryError, TrackerError

__all__ = [
    # Events
    "Event",
    "EventPayload",
    "BatchPayload",
    "now_ms",
    # Context
    "EnvironmentContext",
    "system_context",
    # Errors
    "TrackerError",
    "ConfigurationError",
    "DeliveryError",
]
