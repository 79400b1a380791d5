"""
In-process collaborator implementations.

These back the CLI and the demo with simple, self-contained behaviour:
a fixed sensor registry, a plausibility data validator, a balance-keeping
token contract, a threshold alert system and a running-average analytics
engine. Deployments replace them with adapters for the real services.
"""

import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from soil_ledger.components.base import (
    AlertSystem,
    AnalyticsEngine,
    DataValidator,
    SensorRegistry,
    TokenContract
)
from soil_ledger.config import MetricRange, METRIC_FIELDS
from soil_ledger.models import Metrics
from soil_ledger.utils import get_logger


class StaticSensorRegistry(SensorRegistry):
    """Registry backed by a fixed set of sensor ids."""

    def __init__(self, sensor_ids: Iterable[int] = ()):
        self.sensor_ids = set(sensor_ids)

    def register(self, sensor_id: int) -> None:
        self.sensor_ids.add(sensor_id)

    def is_registered(self, sensor_id: int) -> bool:
        return sensor_id in self.sensor_ids


class PlausibilityDataValidator(DataValidator):
    """
    Rejects readings that are in range but not physically plausible.

    A probe pinned at the rail of its scale (bone-dry or saturated moisture,
    pH at the ends of the scale) or reporting soil temperatures beyond what
    the ground reaches is treated as a faulty sensor.

    Args:
        bands: Plausible band per metric; metrics without a band always pass
    """

    def __init__(self, bands: Optional[Dict[str, MetricRange]] = None):
        self.logger = get_logger(__name__)
        self.bands = bands if bands is not None else {
            "moisture": MetricRange(min=1, max=99),
            "ph": MetricRange(min=3, max=10),
            "temperature": MetricRange(min=-30, max=55),
        }

    def validate_data(self, metrics: Metrics) -> bool:
        for field, band in self.bands.items():
            value = getattr(metrics, field)
            if not band.contains(value):
                self.logger.warning(f"Implausible {field}={value}, expected [{band.min}, {band.max}]")
                return False
        return True


class InMemoryTokenContract(TokenContract):
    """Token contract that keeps balances in memory."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.balances: Dict[str, int] = defaultdict(int)
        self.total_minted = 0
        self._lock = threading.Lock()

    def mint(self, amount: int, recipient: str) -> bool:
        if amount <= 0 or not recipient:
            self.logger.warning(f"Refusing to mint {amount} to {recipient!r}")
            return False
        with self._lock:
            self.balances[recipient] += amount
            self.total_minted += amount
        self.logger.info(f"Minted {amount} to {recipient}")
        return True

    def balance_of(self, recipient: str) -> int:
        return self.balances.get(recipient, 0)


class ThresholdAlertSystem(AlertSystem):
    """
    Records an alert for each metric outside its comfort band.

    Args:
        thresholds: Comfort band per metric; metrics without a band never alert
    """

    def __init__(self, thresholds: Optional[Dict[str, MetricRange]] = None):
        self.logger = get_logger(__name__)
        self.thresholds = thresholds if thresholds is not None else {
            "moisture": MetricRange(min=20, max=80),
            "ph": MetricRange(min=5.5, max=7.5),
            "temperature": MetricRange(min=5, max=35),
        }
        self.alerts: List[Tuple[int, int, str, float]] = []

    def trigger_alert(self, farm_id: int, sensor_id: int, metrics: Metrics) -> None:
        for field, band in self.thresholds.items():
            value = getattr(metrics, field)
            if not band.contains(value):
                self.alerts.append((farm_id, sensor_id, field, value))
                self.logger.warning(
                    f"Alert: farm {farm_id} sensor {sensor_id} {field}={value} outside [{band.min}, {band.max}]"
                )


class RunningAnalyticsEngine(AnalyticsEngine):
    """Keeps a running mean of every metric per farm."""

    def __init__(self):
        self._counts: Dict[int, int] = defaultdict(int)
        self._sums: Dict[int, Dict[str, float]] = defaultdict(lambda: {field: 0.0 for field in METRIC_FIELDS})

    def update_analytics(self, farm_id: int, metrics: Metrics) -> None:
        self._counts[farm_id] += 1
        sums = self._sums[farm_id]
        for field in METRIC_FIELDS:
            sums[field] += getattr(metrics, field)

    def readings_for(self, farm_id: int) -> int:
        return self._counts.get(farm_id, 0)

    def averages_for(self, farm_id: int) -> Optional[Dict[str, float]]:
        count = self._counts.get(farm_id, 0)
        if count == 0:
            return None
        return {field: total / count for field, total in self._sums[farm_id].items()}
