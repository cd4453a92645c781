"""Environment context capture for tracked events.

The tracker never inspects its host for a page URL or client string. Instead it
is handed an ``EnvironmentContext`` holding optional providers; any provider
that is missing or fails yields an empty string.
"""

from __future__ import annotations

import platform
import socket
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from loguru import logger

Provider = Callable[[], str]


@dataclass(frozen=True)
class EnvironmentContext:
    """Optional providers for the origin and agent fields of an event."""

    origin_provider: Optional[Provider] = None  # location identifier (e.g. URL)
    agent_provider: Optional[Provider] = None  # client identifier (e.g. user agent)

    def capture(self) -> Tuple[str, str]:
        """Return ``(origin, agent)`` for the current execution context."""
        return _call(self.origin_provider, "origin"), _call(self.agent_provider, "agent")


def _call(provider: Optional[Provider], field_name: str) -> str:
    if provider is None:
        return ""
    try:
        value = provider()
    except Exception as e:
        logger.debug(f"Context provider for {field_name} failed: {e}")
        return ""
    return "" if value is None else str(value)


def system_context(origin: str = "") -> EnvironmentContext:
    """Build a context describing the running interpreter and host.

    Args:
        origin: Fixed location identifier for every event (e.g. a service URL)

    Returns:
        Context whose agent looks like ``python/3.12.1 (linux; myhost)``
    """
    agent = f"python/{platform.python_version()} ({platform.system().lower()}; {socket.gethostname()})"
    return EnvironmentContext(
        origin_provider=(lambda: origin) if origin else None,
        agent_provider=lambda: agent,
    )
