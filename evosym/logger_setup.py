"""
Logging Setup

loguru configuration for applications embedding the engine. The package
disables its own logger on import; calling setup_logger turns it back on
with a console sink and, optionally, a rotating file sink.
"""

from datetime import datetime, timezone
import os
import sys
from typing import Optional

from loguru import logger


def setup_logger(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
) -> Optional[str]:
    """
    Set up console (and optional file) logging for evosym.

    Args:
        level: Logging level (TRACE, DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files, or None for console only
        rotation: Log rotation policy (e.g., "50 MB", "1 day")
        retention: Log retention policy (e.g., "30 days")
        enable_colors: Whether to colour console output on a TTY

    Returns:
        Path to the log file, or None when logging to console only
    """
    logger.remove()
    colorize = enable_colors and sys.stderr.isatty()

    if colorize:
        console_format = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<yellow>{line}</yellow> | "
            "<level>{message}</level>"
        )
    else:
        console_format = "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"

    logger.add(sys.stderr, level=level, format=console_format, colorize=colorize)

    log_file = None
    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"simulation_{timestamp}.log")
        logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        )

    logger.enable("evosym")
    logger.debug(f"[Logger] Level {level}, file: {log_file}")
    return log_file
