"""Configuration module for the analytics tracker."""

from .logger_config import setup_logging
from .settings import LoggingConfig, TrackerConfig, load_config, load_logging_config

__all__ = ["TrackerConfig", "LoggingConfig", "load_config", "load_logging_config", "setup_logging"]
