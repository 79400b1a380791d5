"""
Abstract base classes for the collaborators the ledger calls out to.

Each collaborator exposes exactly one operation. The submission service depends
only on these interfaces, so production adapters and test doubles can be
injected interchangeably. A collaborator call fails when it raises or returns
a falsy value.
"""

from abc import ABC, abstractmethod

from soil_ledger.models import Metrics


class SensorRegistry(ABC):
    """Knows which sensors are registered."""

    @abstractmethod
    def is_registered(self, sensor_id: int) -> bool:
        """
        Check whether a sensor is registered.

        Args:
            sensor_id: Sensor identifier from the submission

        Returns:
            True if the sensor may submit readings
        """
        pass


class DataValidator(ABC):
    """Semantic data-quality check applied before a reading is stored."""

    @abstractmethod
    def validate_data(self, metrics: Metrics) -> bool:
        """
        Validate the metrics of a reading.

        Args:
            metrics: Soil measurements that already passed the range checks

        Returns:
            True if the reading is acceptable
        """
        pass


class TokenContract(ABC):
    """Mints reward tokens."""

    @abstractmethod
    def mint(self, amount: int, recipient: str) -> bool:
        """
        Mint reward tokens to a recipient.

        Args:
            amount: Number of tokens to mint
            recipient: Identity receiving the tokens

        Returns:
            True if the tokens were minted
        """
        pass


class AlertSystem(ABC):
    """Receives accepted readings for alerting. Best-effort."""

    @abstractmethod
    def trigger_alert(self, farm_id: int, sensor_id: int, metrics: Metrics) -> None:
        pass


class AnalyticsEngine(ABC):
    """Receives accepted readings for aggregation. Best-effort."""

    @abstractmethod
    def update_analytics(self, farm_id: int, metrics: Metrics) -> None:
        pass
