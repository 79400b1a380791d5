"""Utility modules for the soil data submission ledger."""

from .logging import setup_logging, get_logger
from .exceptions import (
    ErrorKind,
    LedgerError,
    OperationRejected,
    InvariantViolation,
    ConfigurationError,
    StorageError
)

__all__ = [
    "setup_logging",
    "get_logger",
    "ErrorKind",
    "LedgerError",
    "OperationRejected",
    "InvariantViolation",
    "ConfigurationError",
    "StorageError"
]
