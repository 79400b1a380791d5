"""
Logging configuration for the soil data submission ledger.

Provides consistent logging setup across the ledger components and the CLI.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


LEDGER_LOGGER_NAME = "soil_ledger"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    include_timestamp: bool = True
) -> logging.Logger:
    """
    Set up logging for the ledger package.

    Handlers are attached to the package logger rather than the root logger so
    that embedding applications keep control of their own logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output
        include_timestamp: Whether to include timestamps in log messages

    Returns:
        The configured package logger
    """
    if include_timestamp:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        formatter = logging.Formatter(
            '%(name)s - %(levelname)s - %(message)s'
        )

    logger = logging.getLogger(LEDGER_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Re-running setup must not duplicate output
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance under the package hierarchy
    """
    return logging.getLogger(name)
