"""loguru handler setup for applications embedding the tracker.

The tracker itself only logs through ``loguru.logger``; calling
``setup_logging`` is optional and replaces loguru's default stderr handler.
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

from .settings import LoggingConfig, load_logging_config

CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> <cyan>{name}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {thread.name} | {name}:{line} - {message}"


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Install console and file handlers according to ``config``.

    Defaults to ``load_logging_config()``, i.e. ``ANALYTICS_TRACKER_LOG_*``.
    """
    config = config or load_logging_config()

    logger.remove()

    if config.to_console:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=config.level, colorize=True)

    if not config.to_file:
        return

    config.file_path.parent.mkdir(parents=True, exist_ok=True)
    # enqueue: delivery and timer threads write through one queue
    logger.add(
        str(config.file_path),
        format=FILE_FORMAT,
        level=config.level,
        rotation=config.rotation,
        retention=config.retention,
        compression="gz",
        enqueue=True,
    )
    logger.info(f"Logging {config.level} and above to {config.file_path} (rotation={config.rotation}, retention={config.retention})")
