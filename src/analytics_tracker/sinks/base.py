"""Base sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from ..core.events import Event


class Sink(ABC):
    """
    Abstract base class for delivery sinks.

    A sink transports one batch and reports the outcome: ``deliver`` returns
    on success and raises on failure. The tracker decides what to do with a
    failed batch; sinks never requeue or swallow errors themselves.
    """

    @abstractmethod
    def deliver(self, events: Sequence[Event]) -> None:
        """Deliver a batch of events in the given order."""
        ...

    def close(self) -> None:
        """Release resources held by the sink."""
        pass

    def get_stats(self) -> Dict[str, Any]:
        return {}
