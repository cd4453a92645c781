"""Batching and flush engine."""

from .event_tracker import EventTracker

__all__ = ["EventTracker"]
