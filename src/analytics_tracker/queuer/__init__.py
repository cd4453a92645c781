"""Event queuing module for the analytics tracker."""

from .event_queue import EventQueue, RequeuePosition

__all__ = ["EventQueue", "RequeuePosition"]
