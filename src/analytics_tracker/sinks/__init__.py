"""Delivery sinks - transports for event batches."""

from .base import Sink
from .function_sink import FunctionSink
from .http_sink import HTTPSink, HTTPSinkConfig

__all__ = ["Sink", "HTTPSink", "HTTPSinkConfig", "FunctionSink"]
