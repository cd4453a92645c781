"""HTTP sink for posting event batches to a collection endpoint.

The batch is serialized as ``{"events": [...]}`` and sent in a single JSON
POST. Any network failure or non-2xx status raises ``DeliveryError`` so the
tracker can requeue the batch. Events that cannot be encoded as JSON are
dropped and counted instead, since a retry would fail the same way.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from loguru import logger

from ..core.events import BatchPayload, Event
from ..core.exceptions import ConfigurationError, DeliveryError
from .base import Sink

USER_AGENT = "analytics-tracker-python"


@dataclass
class HTTPSinkConfig:
    """Configuration for the HTTP sink."""

    endpoint: str = ""  # Full URL batches are POSTed to
    timeout_seconds: float = 30  # Request timeout
    headers: Dict[str, str] = field(default_factory=dict)  # Extra headers, e.g. auth


class HTTPSink(Sink):
    """Sink that POSTs each batch as JSON to a fixed endpoint."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        config: Optional[HTTPSinkConfig] = None,
    ):
        """Initialize the HTTP sink.

        Args:
            endpoint: Target URL (overrides ``config.endpoint``)
            timeout_seconds: Request timeout (overrides ``config.timeout_seconds``)
            headers: Extra request headers merged over ``config.headers``
            config: Sink configuration

        Raises:
            ConfigurationError: If no endpoint is configured
        """
        self.config = replace(config) if config else HTTPSinkConfig()
        if endpoint is not None:
            self.config.endpoint = endpoint
        if timeout_seconds is not None:
            self.config.timeout_seconds = timeout_seconds
        if headers:
            self.config.headers = {**self.config.headers, **headers}

        if not self.config.endpoint or not self.config.endpoint.strip():
            raise ConfigurationError("HTTP sink requires a target endpoint")

        # Statistics
        self._total_batches_sent = 0
        self._total_batches_failed = 0
        self._total_events_sent = 0
        self._total_events_rejected = 0
        self._total_send_time = 0.0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def deliver(self, events: Sequence[Event]) -> None:
        """POST a batch to the endpoint.

        Args:
            events: Batch to send

        Raises:
            DeliveryError: On network failure or a non-success status
        """
        start_time = time.time()
        payload = BatchPayload.from_events(events, on_reject=self._reject)
        if not payload.events:
            logger.warning(f"None of the {len(events)} events could be serialized, nothing to post")
            return
        body = payload.to_json().encode("utf-8")

        try:
            self._send_request(body)
        except DeliveryError as e:
            self._total_batches_failed += 1
            self._last_error = str(e)
            raise
        finally:
            self._total_send_time += time.time() - start_time

        self._total_batches_sent += 1
        self._total_events_sent += len(payload.events)
        self._last_successful_send = datetime.now()
        self._last_error = None
        logger.debug(f"Posted {len(payload.events)} events to {self.config.endpoint}")

    def get_stats(self) -> Dict[str, Any]:
        """Get sink statistics."""
        attempts = self._total_batches_sent + self._total_batches_failed
        return {
            "endpoint": self.config.endpoint,
            "total_batches_sent": self._total_batches_sent,
            "total_batches_failed": self._total_batches_failed,
            "total_events_sent": self._total_events_sent,
            "total_events_rejected": self._total_events_rejected,
            "success_rate": self._total_batches_sent / max(1, attempts),
            "average_send_time_seconds": self._total_send_time / max(1, attempts),
            "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
            "last_error": self._last_error,
        }

    def _reject(self, event: Event, error: Exception) -> None:
        """Drop an event that cannot be encoded. Retrying it would fail the same way."""
        self._total_events_rejected += 1
        logger.warning(f"Dropping event '{event.name}' that cannot be serialized: {error}")

    def _send_request(self, body: bytes) -> None:
        """Send a single HTTP request."""
        req = Request(
            self.config.endpoint,
            data=body,
            method="POST",
            headers={
                "User-Agent": USER_AGENT,
                **self.config.headers,
                "Content-Type": "application/json",
            },
        )

        try:
            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                if not 200 <= response.status < 300:
                    raise DeliveryError(f"HTTP {response.status}: {response.reason}", status=response.status)
        except HTTPError as e:
            raise DeliveryError(f"HTTP error: {e.code} {e.reason}", status=e.code) from e
        except URLError as e:
            raise DeliveryError(f"Network error: {e.reason}") from e
        except OSError as e:
            # socket timeouts and resets surface outside URLError
            raise DeliveryError(f"Request error: {e}") from e
