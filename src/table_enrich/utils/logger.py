"""Logging configuration for table enrichment."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

from ..config.settings import settings

CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    name: str,
    level: Optional[Union[int, str]] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for a package or module.

    Args:
        name: Logger name (typically the package name)
        level: Log level (default: LOG_LEVEL setting)
        log_dir: Directory for a rotating log file (default: TABLE_ENRICH_LOG_DIR, if set)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or settings.LOG_LEVEL)

    # Avoid stacking handlers when called twice for the same logger
    if logger.handlers:
        return logger

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console_handler)

    # File handler
    log_dir = log_dir or settings.get_log_dir()
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f'{name}.log',
            maxBytes=10485760,  # 10MB
            backupCount=5,
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
