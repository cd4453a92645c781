"""Tests for event records and the batch wire payload."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from analytics_tracker.core.context import EnvironmentContext, system_context
from analytics_tracker.core.events import BatchPayload, Event, now_ms


def test_create_stamps_time_and_copies_properties():
    properties = {"match": "m1", "page": "home"}
    before = now_ms()

    event = Event.create("page_load", properties, origin="https://app/home", agent="pytest")
    properties["page"] = "changed"

    assert before <= event.timestamp <= now_ms()
    assert event.properties["page"] == "home"
    assert event.event == "page_load"


def test_to_dict_uses_wire_names():
    event = Event("click", {"match": "m1"}, timestamp=1700000000000, origin="https://app", agent="ua")

    assert event.to_dict() == {
        "event": "click",
        "properties": {"match": "m1"},
        "timestamp": 1700000000000,
        "url": "https://app",
        "userAgent": "ua",
    }


def test_batch_payload_wraps_events_in_order():
    events = [Event("a", {"i": 0}, timestamp=1), Event("b", {"i": 1}, timestamp=2, origin="u", agent="ua")]

    body = json.loads(BatchPayload.from_events(events).to_json())

    assert list(body) == ["events"]
    assert [item["event"] for item in body["events"]] == ["a", "b"]
    assert body["events"][1] == {"event": "b", "properties": {"i": 1}, "timestamp": 2, "url": "u", "userAgent": "ua"}


def test_batch_payload_stringifies_unencodable_values():
    when = datetime(2024, 1, 2, 3, 4, 5)
    body = json.loads(BatchPayload.from_events([Event("a", {"at": when}, timestamp=1)]).to_json())

    assert body["events"][0]["properties"]["at"] == str(when)


def test_batch_payload_stringifies_non_json_keys():
    events = [Event("grid", {("row", 1): "x", 2: {frozenset({"k"}): ("a", "b")}}, timestamp=1)]

    body = json.loads(BatchPayload.from_events(events).to_json())

    assert body["events"][0]["properties"] == {"('row', 1)": "x", "2": {"frozenset({'k'})": ["a", "b"]}}


def test_batch_payload_rejects_unencodable_event_individually():
    circular = {}
    circular["self"] = circular
    events = [Event("good-1", {}, timestamp=1), Event("circular", circular, timestamp=2), Event("good-2", {}, timestamp=3)]
    rejected = []

    payload = BatchPayload.from_events(events, on_reject=lambda event, error: rejected.append(event.name))

    assert [item.event for item in payload.events] == ["good-1", "good-2"]
    assert rejected == ["circular"]

    with pytest.raises(ValueError):
        BatchPayload.from_events(events)


def test_empty_context_yields_empty_strings():
    assert EnvironmentContext().capture() == ("", "")


def test_system_context_describes_interpreter():
    origin, agent = system_context(origin="svc://billing").capture()

    assert origin == "svc://billing"
    assert agent.startswith("python/")
