"""Ledger components for soil data submissions and rewards."""

from .base import (
    SensorRegistry,
    DataValidator,
    TokenContract,
    AlertSystem,
    AnalyticsEngine
)

from .clock import ManualClock, wall_clock
from .config_store import ConfigStore
from .ledger import SubmissionLedger
from .rewards import RewardLedger
from .service import SubmissionService
from .storage import DuckDBLedgerStore
from .collaborators import (
    StaticSensorRegistry,
    PlausibilityDataValidator,
    InMemoryTokenContract,
    ThresholdAlertSystem,
    RunningAnalyticsEngine
)

__all__ = [
    "SensorRegistry",
    "DataValidator",
    "TokenContract",
    "AlertSystem",
    "AnalyticsEngine",
    "ManualClock",
    "wall_clock",
    "ConfigStore",
    "SubmissionLedger",
    "RewardLedger",
    "SubmissionService",
    "DuckDBLedgerStore",
    "StaticSensorRegistry",
    "PlausibilityDataValidator",
    "InMemoryTokenContract",
    "ThresholdAlertSystem",
    "RunningAnalyticsEngine"
]
