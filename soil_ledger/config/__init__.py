"""Configuration models for the soil data submission ledger."""

from .models import (
    LedgerSettings,
    LedgerInfo,
    GovernanceSettings,
    SubmissionSettings,
    StorageSettings,
    LoggingSettings,
    MetricRange,
    METRIC_FIELDS
)

__all__ = [
    "LedgerSettings",
    "LedgerInfo",
    "GovernanceSettings",
    "SubmissionSettings",
    "StorageSettings",
    "LoggingSettings",
    "MetricRange",
    "METRIC_FIELDS"
]
