"""Event tracker that batches events and flushes them to a sink.

The tracker owns the queue and the batching policy. A flush is triggered by:

- an explicit ``flush()`` call,
- ``track()`` when the queue reaches ``batch_size``,
- the periodic timer every ``flush_interval_ms``,
- the exit hook, once, when the process exits.

Every flush drains the queue (snapshot, then clear) before the sink is
called, so events tracked while a delivery is in flight accumulate in a fresh
queue and a snapshot is never delivered twice. A failed batch is requeued.
"""

from __future__ import annotations

import threading
from queue import Queue
from typing import Any, Dict, Mapping, Optional, Sequence

from loguru import logger

from ..config.settings import TrackerConfig
from ..core.context import EnvironmentContext
from ..core.events import Event
from ..core.exceptions import ConfigurationError
from ..lifecycle import ExitHook, get_exit_hook
from ..queuer import EventQueue
from ..sinks.base import Sink


class EventTracker:
    """Collects events into ordered batches and delivers them to a sink."""

    def __init__(
        self,
        sink: Sink,
        config: Optional[TrackerConfig] = None,
        context: Optional[EnvironmentContext] = None,
        exit_hook: Optional[ExitHook] = None,
        autostart: bool = True,
    ):
        """Initialize the tracker.

        Args:
            sink: Delivery backend for drained batches
            config: Batching policy (defaults to TrackerConfig())
            context: Providers for the origin and agent fields of events
            exit_hook: Hook used for the final flush (defaults to the process hook)
            autostart: Start the flush timer immediately

        Raises:
            ConfigurationError: If the sink is missing or the config is invalid
        """
        if sink is None:
            raise ConfigurationError("EventTracker requires a sink")

        self.config = config or TrackerConfig()
        is_valid, errors = self.config.validate()
        if not is_valid:
            raise ConfigurationError(f"Invalid tracker configuration: {'; '.join(errors)}")

        self.sink = sink
        self.context = context or EnvironmentContext()

        self._queue = EventQueue(max_size=self.config.max_queue_size)
        self._lock = threading.RLock()
        self._deliveries_done = threading.Condition(self._lock)
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._inflight = 0
        self._outbox: Optional[Queue] = None  # batches waiting for the delivery worker
        self._worker: Optional[threading.Thread] = None

        self._exit_hook: Optional[ExitHook] = None
        if self.config.flush_on_exit:
            self._exit_hook = exit_hook or get_exit_hook()
            self._exit_hook.register(self._flush_at_exit)

        # Statistics
        self._total_events_tracked = 0
        self._total_batches_delivered = 0
        self._total_batches_failed = 0
        self._total_events_delivered = 0

        if autostart:
            self.start()

    # ------------------------------------------------------------------
    # Producer API
    # ------------------------------------------------------------------

    def track(self, name: str, properties: Optional[Mapping[str, Any]] = None) -> Event:
        """Record an event and flush if the batch threshold is reached.

        Args:
            name: Event name (not validated)
            properties: Event properties, passed through opaquely

        Returns:
            The queued event
        """
        origin, agent = self.context.capture()
        event = Event.create(name, properties, origin=origin, agent=agent)

        self._queue.append(event)
        with self._lock:
            self._total_events_tracked += 1

        if self._queue.size() >= self.config.batch_size:
            logger.debug(f"Batch size {self.config.batch_size} reached, flushing")
            self.flush()

        return event

    def flush(self, wait: bool = False) -> bool:
        """Drain the queue and hand the batch to the sink.

        Args:
            wait: Deliver on the calling thread instead of a worker thread

        Returns:
            True if a batch was dispatched, False if the queue was empty
        """
        batch = self._queue.drain()
        if not batch:
            return False

        if wait:
            self._deliver(batch)
        else:
            self._dispatch(batch)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic flush timer."""
        with self._lock:
            if self._timer_thread is not None and self._timer_thread.is_alive():
                logger.warning("Event tracker timer is already running")
                return

            self._stop_event.clear()
            self._timer_thread = threading.Thread(target=self._timer_loop, name="analytics-tracker-timer", daemon=True)
            self._timer_thread.start()

        if self._exit_hook is not None:
            self._exit_hook.register(self._flush_at_exit)

        logger.info(f"Started event tracker (batch_size={self.config.batch_size}, flush_interval={self.config.flush_interval_ms}ms)")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop the timer, flush what is left and wait for in-flight deliveries.

        Also detaches from the exit hook, so a stopped tracker can be
        garbage collected.

        Args:
            timeout: Seconds to wait for the timer and deliveries (defaults to config)

        Returns:
            True if all deliveries finished within the timeout
        """
        timeout = self.config.stop_timeout_s if timeout is None else timeout

        with self._lock:
            timer_thread = self._timer_thread
            self._timer_thread = None
        self._stop_event.set()

        if timer_thread is not None and timer_thread is not threading.current_thread():
            timer_thread.join(timeout=timeout)

        if self._exit_hook is not None:
            self._exit_hook.unregister(self._flush_at_exit)

        finished = self._drain_for_shutdown(timeout)
        if not finished:
            logger.warning(f"Stopped with {self._inflight} deliveries still in flight")
        self._retire_worker()

        stats = self.get_stats()
        logger.info(
            f"Stopped event tracker. Stats - Tracked: {stats['total_events_tracked']}, "
            f"Delivered: {stats['total_events_delivered']}, Failed batches: {stats['total_batches_failed']}, "
            f"Queued: {stats['queue']['current_size']}"
        )
        return finished

    def close(self) -> None:
        """Stop the tracker and close its sink."""
        self.stop()
        self.sink.close()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._timer_thread is not None and self._timer_thread.is_alive()

    def __enter__(self) -> EventTracker:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def queue(self) -> Sequence[Event]:
        """Read-only snapshot of the queued events, oldest first."""
        return self._queue.snapshot()

    @property
    def queue_size(self) -> int:
        return self._queue.size()

    def wait_for_deliveries(self, timeout: Optional[float] = None) -> bool:
        """Block until no asynchronous delivery is in flight.

        Returns:
            True if all deliveries finished, False on timeout
        """
        with self._deliveries_done:
            return self._deliveries_done.wait_for(lambda: self._inflight == 0, timeout=timeout)

    def get_stats(self) -> Dict[str, Any]:
        """Get tracker statistics."""
        with self._lock:
            return {
                "running": self._timer_thread is not None and self._timer_thread.is_alive(),
                "total_events_tracked": self._total_events_tracked,
                "total_batches_delivered": self._total_batches_delivered,
                "total_batches_failed": self._total_batches_failed,
                "total_events_delivered": self._total_events_delivered,
                "inflight_deliveries": self._inflight,
                "queue": self._queue.get_stats(),
                "sink": self.sink.get_stats(),
                "config": {
                    "batch_size": self.config.batch_size,
                    "flush_interval_ms": self.config.flush_interval_ms,
                    "max_queue_size": self.config.max_queue_size,
                    "requeue_position": self.config.requeue_position.value,
                },
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _timer_loop(self) -> None:
        """Flush every interval until stopped."""
        logger.debug("Started flush timer loop")

        while not self._stop_event.wait(self.config.flush_interval_seconds):
            try:
                self.flush()
            except Exception as e:
                logger.error(f"Error in flush timer: {e}")

        logger.debug("Flush timer loop finished")

    def _dispatch(self, batch: list[Event]) -> None:
        """Hand a batch to the delivery worker without blocking the caller.

        A single worker delivers batches one at a time in dispatch order, so a
        slow sink backs batches up in the outbox instead of spawning threads.
        """
        with self._lock:
            self._inflight += 1
            outbox = self._ensure_worker()
            if outbox is not None:
                outbox.put(batch)
                return

        # interpreter shutting down, threads can no longer be started
        self._run_delivery(batch)

    def _ensure_worker(self) -> Optional[Queue]:
        """Return the outbox of a live delivery worker, starting one if needed. Caller holds the lock."""
        if self._worker is not None and self._worker.is_alive():
            return self._outbox

        outbox: Queue = Queue()
        worker = threading.Thread(target=self._delivery_loop, args=(outbox,), name="analytics-tracker-delivery", daemon=True)
        try:
            worker.start()
        except RuntimeError as e:
            logger.warning(f"Could not start delivery thread ({e}), delivering inline")
            return None

        self._outbox, self._worker = outbox, worker
        return outbox

    def _retire_worker(self) -> None:
        """Ask the delivery worker to exit once its outbox is empty."""
        with self._lock:
            outbox, self._outbox, self._worker = self._outbox, None, None
        if outbox is not None:
            outbox.put(None)

    def _delivery_loop(self, outbox: Queue) -> None:
        logger.debug("Started delivery worker")

        while True:
            batch = outbox.get()
            if batch is None:
                break
            self._run_delivery(batch)

        logger.debug("Delivery worker finished")

    def _run_delivery(self, batch: list[Event]) -> None:
        try:
            self._deliver(batch)
        except Exception as e:
            logger.error(f"Unexpected error delivering batch: {e}")
        finally:
            with self._deliveries_done:
                self._inflight -= 1
                self._deliveries_done.notify_all()

    def _deliver(self, batch: list[Event]) -> bool:
        """Send a batch to the sink, requeueing it on failure."""
        try:
            self.sink.deliver(batch)
        except Exception as e:
            self._queue.requeue(batch, self.config.requeue_position)
            with self._lock:
                self._total_batches_failed += 1
            logger.error(f"Failed to deliver batch of {len(batch)} events, requeued at {self.config.requeue_position.value}: {e}")
            return False

        with self._lock:
            self._total_batches_delivered += 1
            self._total_events_delivered += len(batch)
        logger.info(f"Delivered batch with {len(batch)} events")
        return True

    def _drain_for_shutdown(self, timeout: float) -> bool:
        """Let queued async deliveries finish, then deliver what is left inline."""
        finished = self.wait_for_deliveries(timeout)
        self.flush(wait=True)
        return finished

    def _flush_at_exit(self) -> None:
        logger.debug("Process exiting, flushing event tracker")
        if not self._drain_for_shutdown(self.config.stop_timeout_s):
            logger.warning(f"Exiting with {self._inflight} deliveries still in flight")
