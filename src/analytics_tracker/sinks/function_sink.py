"""Sink that hands each batch to caller-supplied logic with a held client.

Typical use is a database client: the client is built once from connection
parameters and reused for every batch.

    sink = FunctionSink(create_client, insert_events, url=DB_URL, key=DB_KEY)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence

from loguru import logger

from ..core.events import Event
from ..core.exceptions import DeliveryError
from .base import Sink

DeliverFunction = Callable[[Any, List[Event]], Any]


class FunctionSink(Sink):
    """Forwards batches to ``function(client, events)``."""

    def __init__(self, client_factory: Callable[..., Any], function: DeliverFunction, **connection_params: Any):
        """Initialize the sink and construct its client handle.

        Args:
            client_factory: Called once with ``connection_params`` to build the client
            function: Receives ``(client, events)`` for each batch
            **connection_params: Keyword arguments for ``client_factory``
        """
        self.client = client_factory(**connection_params)
        self.function = function
        self._total_calls = 0
        logger.debug(f"Created function sink client {type(self.client).__name__}")

    @classmethod
    def with_client(cls, client: Any, function: DeliverFunction) -> FunctionSink:
        """Wrap an already constructed client handle."""
        return cls(lambda: client, function)

    def deliver(self, events: Sequence[Event]) -> None:
        """Call the user function; its exceptions propagate unchanged.

        Raises:
            DeliveryError: If the function explicitly returns ``False``
        """
        self._total_calls += 1
        result = self.function(self.client, list(events))
        if result is False:
            raise DeliveryError(f"Delivery function {getattr(self.function, '__name__', self.function)!s} reported failure")

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()

    def get_stats(self) -> Dict[str, Any]:
        return {"total_calls": self._total_calls, "client": type(self.client).__name__}
