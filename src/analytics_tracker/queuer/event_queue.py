"""In-memory event queue for the analytics tracker.

This module provides the thread-safe FIFO that holds tracked events until a
flush drains them. A failed batch is put back with ``requeue``; an optional
cap bounds growth when a sink keeps failing.
"""

from __future__ import annotations

import threading
from collections import deque
from enum import Enum
from typing import Iterable, Optional

from loguru import logger

from ..core.events import Event


class RequeuePosition(str, Enum):
    """Where a failed batch is reinserted."""

    TAIL = "tail"  # after anything tracked while the delivery was in flight
    HEAD = "head"  # ahead of newer events, keeps chronological retry order


class EventQueue:
    """Thread-safe FIFO of events owned by a single tracker."""

    def __init__(self, max_size: Optional[int] = None):
        """Initialize the event queue.

        Args:
            max_size: Maximum events held; events at the head are dropped beyond it
        """
        self.max_size = max_size
        self._queue: deque[Event] = deque()
        self._lock = threading.RLock()

        # Statistics
        self._total_enqueued = 0
        self._total_drained = 0
        self._total_requeued = 0
        self._total_dropped = 0

    def append(self, event: Event) -> None:
        """Add an event at the tail of the queue."""
        with self._lock:
            self._queue.append(event)
            self._total_enqueued += 1
            self._enforce_cap()

    def drain(self) -> list[Event]:
        """Atomically copy the queue contents and clear the queue.

        Returns:
            Events in insertion order (empty list if the queue was empty)
        """
        with self._lock:
            if not self._queue:
                return []
            events = list(self._queue)
            self._queue.clear()
            self._total_drained += len(events)

        logger.debug(f"Drained {len(events)} events from queue")
        return events

    def requeue(self, events: Iterable[Event], position: RequeuePosition = RequeuePosition.TAIL) -> None:
        """Put a failed batch back into the live queue.

        Args:
            events: Batch in its original order
            position: Reinsert after (tail) or before (head) current contents
        """
        events = list(events)
        if not events:
            return

        with self._lock:
            if position == RequeuePosition.HEAD:
                self._queue.extendleft(reversed(events))
            else:
                self._queue.extend(events)
            self._total_requeued += len(events)
            self._enforce_cap()

        logger.debug(f"Requeued {len(events)} events at {position.value}, queue size: {len(self._queue)}")

    def size(self) -> int:
        """Return the current queue size."""
        with self._lock:
            return len(self._queue)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        with self._lock:
            return len(self._queue) == 0

    def snapshot(self) -> tuple[Event, ...]:
        """Return a read-only copy of the queued events."""
        with self._lock:
            return tuple(self._queue)

    def get_stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                "current_size": len(self._queue),
                "max_size": self.max_size,
                "total_enqueued": self._total_enqueued,
                "total_drained": self._total_drained,
                "total_requeued": self._total_requeued,
                "total_dropped": self._total_dropped,
            }

    def _enforce_cap(self) -> None:
        """Drop events from the head until the queue fits ``max_size``. Caller holds the lock."""
        if self.max_size is None:
            return

        overflow = len(self._queue) - self.max_size
        if overflow <= 0:
            return

        for _ in range(overflow):
            self._queue.popleft()
        self._total_dropped += overflow
        logger.warning(f"Queue over capacity ({self.max_size}), dropped {overflow} events from the head")
