"""Tests for the in-memory EventQueue."""

from __future__ import annotations

from analytics_tracker.core.events import Event
from analytics_tracker.queuer import EventQueue, RequeuePosition


def names(events):
    return [event.name for event in events]


def test_append_and_drain_preserve_order():
    queue = EventQueue()
    for name in ("a", "b", "c"):
        queue.append(Event.create(name))

    drained = queue.drain()

    assert names(drained) == ["a", "b", "c"]
    assert queue.is_empty()
    assert queue.drain() == []


def test_drain_returns_a_copy():
    queue = EventQueue()
    queue.append(Event.create("a"))

    drained = queue.drain()
    queue.append(Event.create("b"))

    assert names(drained) == ["a"]
    assert names(queue.snapshot()) == ["b"]


def test_requeue_tail_and_head():
    queue = EventQueue()
    queue.append(Event.create("new"))
    failed = [Event.create("old-1"), Event.create("old-2")]

    queue.requeue(failed, RequeuePosition.TAIL)
    assert names(queue.snapshot()) == ["new", "old-1", "old-2"]

    queue.drain()
    queue.append(Event.create("new"))
    queue.requeue(failed, RequeuePosition.HEAD)
    assert names(queue.snapshot()) == ["old-1", "old-2", "new"]


def test_requeue_empty_batch_is_noop():
    queue = EventQueue()
    queue.requeue([])

    assert queue.size() == 0
    assert queue.get_stats()["total_requeued"] == 0


def test_cap_drops_from_head():
    queue = EventQueue(max_size=3)
    for i in range(5):
        queue.append(Event.create(f"e{i}"))

    assert names(queue.snapshot()) == ["e2", "e3", "e4"]

    stats = queue.get_stats()
    assert stats["total_dropped"] == 2
    assert stats["total_enqueued"] == 5
    assert stats["current_size"] == 3


def test_unbounded_queue_never_drops():
    queue = EventQueue(max_size=None)
    queue.requeue([Event.create(str(i)) for i in range(1000)])

    assert queue.size() == 1000
    assert queue.get_stats()["total_dropped"] == 0
