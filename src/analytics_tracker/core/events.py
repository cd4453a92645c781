"""Event models for the analytics tracker.

Events flow through the tracker as: track() → EventQueue → flush() → Sink.
``Event`` is the in-memory record; ``BatchPayload`` is the JSON body sent by
the HTTP sink.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Event:
    """A single named occurrence with its properties and capture metadata."""

    name: str
    properties: Any = field(default_factory=dict)
    timestamp: int = field(default_factory=now_ms)
    origin: str = ""  # location identifier, "" when unavailable
    agent: str = ""  # client identifier, "" when unavailable

    @classmethod
    def create(cls, name: str, properties: Any = None, origin: str = "", agent: str = "") -> Event:
        """Create an event stamped with the current time.

        Mapping properties are shallow-copied so later changes by the caller
        do not leak into the queued event. Anything else is kept as given.
        """
        if properties is None:
            properties = {}
        elif isinstance(properties, Mapping):
            properties = dict(properties)
        return cls(name=name, properties=properties, timestamp=now_ms(), origin=origin, agent=agent)

    @property
    def event(self) -> str:
        """Event name as it appears on the wire."""
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to its wire representation."""
        return {
            "event": self.name,
            "properties": self.properties,
            "timestamp": self.timestamp,
            "url": self.origin,
            "userAgent": self.agent,
        }


# Keys json.dumps accepts as object keys; anything else is stringified
_JSON_KEY_TYPES = (str, int, float, bool, type(None))


def _json_safe(value: Any) -> Any:
    """Return ``value`` with mapping keys JSON can encode and sequences as lists."""
    if isinstance(value, Mapping):
        return {(key if isinstance(key, _JSON_KEY_TYPES) else str(key)): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return value


class EventPayload(BaseModel):
    """Wire model for a single event inside a batch."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    event: str = Field(..., description="Event name")
    properties: Any = Field(default_factory=dict, description="Caller supplied properties")
    timestamp: int = Field(..., ge=0, description="Capture time in milliseconds since epoch")
    origin: str = Field("", alias="url", description="Location identifier of the triggering context")
    agent: str = Field("", alias="userAgent", description="Client identifier of the triggering context")

    @classmethod
    def from_event(cls, event: Event) -> EventPayload:
        """Build the wire model for one event.

        Raises:
            ValueError: If the event cannot be encoded as JSON (e.g. circular properties)
            TypeError: If a value rejects conversion to JSON
        """
        try:
            properties = _json_safe(event.properties)
        except RecursionError as e:
            raise ValueError(f"Properties are nested too deeply or circular: {e}") from e

        payload = cls(
            event=str(event.name),
            properties=properties,
            timestamp=event.timestamp,
            url=event.origin or "",
            userAgent=event.agent or "",
        )
        # Fail here, per event, rather than later for the whole batch
        json.dumps(payload.model_dump(by_alias=True), default=str)
        return payload


class BatchPayload(BaseModel):
    """Request body posted by the HTTP sink: ``{"events": [...]}``."""

    model_config = ConfigDict(extra="forbid")

    events: List[EventPayload] = Field(default_factory=list, description="Events in queue order")

    @classmethod
    def from_events(
        cls,
        events: Sequence[Event],
        on_reject: Optional[Callable[[Event, Exception], None]] = None,
    ) -> BatchPayload:
        """Build a payload preserving the order of ``events``.

        Args:
            events: Events to encode
            on_reject: Called with each event that cannot be encoded; the event is
                left out of the payload. Without it the first such error is raised.
        """
        payloads = []
        for event in events:
            try:
                payloads.append(EventPayload.from_event(event))
            except (TypeError, ValueError) as e:
                if on_reject is None:
                    raise
                on_reject(event, e)
        return cls(events=payloads)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        """Serialize the payload; values JSON cannot encode fall back to ``str()``."""
        return json.dumps(self.to_dict(), default=str)
