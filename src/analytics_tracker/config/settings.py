"""Configuration for the analytics tracker.

Configuration is plain dataclasses. ``load_config`` layers environment
variable overrides and then explicit keyword overrides on top of the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from ..queuer import RequeuePosition

ENV_PREFIX = "ANALYTICS_TRACKER_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class TrackerConfig:
    """Batching policy for an EventTracker."""

    batch_size: int = 10  # Queue length that triggers an immediate flush
    flush_interval_ms: int = 5000  # Period of the timer flush
    max_queue_size: Optional[int] = 10000  # Cap on queued events, None = unbounded
    requeue_position: RequeuePosition = RequeuePosition.TAIL
    flush_on_exit: bool = True  # Register a final flush with the exit hook
    stop_timeout_s: float = 5.0  # How long stop() waits for in-flight deliveries

    def __post_init__(self):
        if not isinstance(self.requeue_position, RequeuePosition):
            self.requeue_position = RequeuePosition(str(self.requeue_position).lower())

    @property
    def flush_interval_seconds(self) -> float:
        return self.flush_interval_ms / 1000.0

    def apply_env_overrides(self) -> None:
        """Apply configuration overrides from environment variables."""
        if batch_size := os.getenv(f"{ENV_PREFIX}BATCH_SIZE"):
            try:
                self.batch_size = int(batch_size)
            except ValueError:
                logger.warning(f"Invalid batch size: {batch_size}")

        if flush_interval := os.getenv(f"{ENV_PREFIX}FLUSH_INTERVAL_MS"):
            try:
                self.flush_interval_ms = int(flush_interval)
            except ValueError:
                logger.warning(f"Invalid flush interval: {flush_interval}")

        if max_queue_size := os.getenv(f"{ENV_PREFIX}MAX_QUEUE_SIZE"):
            if max_queue_size.lower() == "none":
                self.max_queue_size = None
            else:
                try:
                    self.max_queue_size = int(max_queue_size)
                except ValueError:
                    logger.warning(f"Invalid max queue size: {max_queue_size}")

        if requeue_position := os.getenv(f"{ENV_PREFIX}REQUEUE_POSITION"):
            try:
                self.requeue_position = RequeuePosition(requeue_position.lower())
            except ValueError:
                logger.warning(f"Invalid requeue position: {requeue_position}")

        if flush_on_exit := os.getenv(f"{ENV_PREFIX}FLUSH_ON_EXIT"):
            parsed = _parse_bool(flush_on_exit)
            if parsed is None:
                logger.warning(f"Invalid flush-on-exit flag: {flush_on_exit}")
            else:
                self.flush_on_exit = parsed

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not isinstance(self.batch_size, int) or self.batch_size <= 0:
            errors.append("Batch size must be a positive integer")

        if not isinstance(self.flush_interval_ms, int) or self.flush_interval_ms <= 0:
            errors.append("Flush interval must be a positive number of milliseconds")

        if self.max_queue_size is not None:
            if not isinstance(self.max_queue_size, int) or self.max_queue_size <= 0:
                errors.append("Max queue size must be a positive integer or None")
            elif isinstance(self.batch_size, int) and self.max_queue_size < self.batch_size:
                errors.append("Max queue size must not be smaller than batch size")

        if self.stop_timeout_s < 0:
            errors.append("Stop timeout must not be negative")

        return len(errors) == 0, errors


@dataclass
class LoggingConfig:
    """Configuration for loguru handlers installed by setup_logging()."""

    level: str = "INFO"
    to_console: bool = True
    to_file: bool = False
    file_path: Path = field(default_factory=lambda: Path.cwd() / "logs" / "analytics_tracker.log")
    rotation: str = "10 MB"
    retention: str = "7 days"

    def apply_env_overrides(self) -> None:
        """Apply configuration overrides from environment variables."""
        if level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            self.level = level.upper()

        for name, attr in (("LOG_TO_CONSOLE", "to_console"), ("LOG_TO_FILE", "to_file")):
            if raw := os.getenv(f"{ENV_PREFIX}{name}"):
                parsed = _parse_bool(raw)
                if parsed is None:
                    logger.warning(f"Invalid {name.lower()} flag: {raw}")
                else:
                    setattr(self, attr, parsed)

        if file_path := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            self.file_path = Path(file_path)

        if rotation := os.getenv(f"{ENV_PREFIX}LOG_ROTATION"):
            self.rotation = rotation

        if retention := os.getenv(f"{ENV_PREFIX}LOG_RETENTION"):
            self.retention = retention


def load_config(**overrides: Any) -> TrackerConfig:
    """Load tracker configuration with environment and keyword overrides.

    Args:
        **overrides: TrackerConfig field values that win over the environment

    Returns:
        Configured TrackerConfig instance
    """
    config = TrackerConfig()
    config.apply_env_overrides()

    known = {f.name for f in fields(TrackerConfig)}
    for key, value in overrides.items():
        if key not in known:
            raise TypeError(f"Unknown tracker config option: {key}")
        if key == "requeue_position" and not isinstance(value, RequeuePosition):
            value = RequeuePosition(value)
        setattr(config, key, value)

    return config


def load_logging_config() -> LoggingConfig:
    """Load logging configuration with environment overrides."""
    config = LoggingConfig()
    config.apply_env_overrides()
    return config


def _parse_bool(raw: str) -> Optional[bool]:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None
