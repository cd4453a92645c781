"""Exception types raised by the analytics tracker."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker errors."""


class ConfigurationError(TrackerError, ValueError):
    """Raised at construction when a tracker or sink is misconfigured."""


class DeliveryError(TrackerError):
    """Raised by a sink when a batch could not be delivered."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
