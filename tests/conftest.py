"""Shared fixtures for analytics tracker tests."""

from __future__ import annotations

import threading

import pytest

from analytics_tracker import DeliveryError, EventTracker, ExitHook, Sink, TrackerConfig


class RecordingSink(Sink):
    """Sink that records every batch it receives."""

    def __init__(self):
        self.batches = []
        self.delivered = threading.Event()
        self._lock = threading.Lock()

    def deliver(self, events):
        with self._lock:
            self.batches.append(list(events))
        self.delivered.set()

    @property
    def calls(self):
        with self._lock:
            return len(self.batches)


class FailingSink(Sink):
    """Sink that always fails, optionally running a hook during the next delivery."""

    def __init__(self):
        self.attempts = []
        self.on_deliver = None

    def deliver(self, events):
        self.attempts.append(list(events))
        hook, self.on_deliver = self.on_deliver, None  # one-shot
        if hook is not None:
            hook()
        raise DeliveryError("collector unavailable")


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def make_recording_sink():
    return RecordingSink


@pytest.fixture
def failing_sink():
    return FailingSink()


@pytest.fixture
def exit_hook():
    hook = ExitHook()
    yield hook
    hook.close()


@pytest.fixture
def make_tracker(exit_hook):
    """Build trackers bound to a private exit hook and stop them afterwards."""
    trackers = []

    def _make(sink, autostart=True, context=None, **config_kwargs):
        config_kwargs.setdefault("flush_interval_ms", 60_000)
        tracker = EventTracker(sink, TrackerConfig(**config_kwargs), context=context, exit_hook=exit_hook, autostart=autostart)
        trackers.append(tracker)
        return tracker

    yield _make

    for tracker in trackers:
        tracker.stop(timeout=2.0)
