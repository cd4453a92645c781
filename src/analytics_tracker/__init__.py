"""Analytics Tracker - client-side event batching with pluggable delivery sinks."""

from .config import TrackerConfig, load_config, setup_logging
from .core import ConfigurationError, DeliveryError, EnvironmentContext, Event, TrackerError, system_context
from .lifecycle import ExitHook, get_exit_hook
from .queuer import RequeuePosition
from .sinks import FunctionSink, HTTPSink, Sink
from .tracker import EventTracker

__version__ = "1.0.0"

__all__ = [
    "EventTracker",
    "TrackerConfig",
    "RequeuePosition",
    "load_config",
    "setup_logging",
    "Event",
    "EnvironmentContext",
    "system_context",
    "Sink",
    "HTTPSink",
    "FunctionSink",
    "ExitHook",
    "get_exit_hook",
    "TrackerError",
    "ConfigurationError",
    "DeliveryError",
]
