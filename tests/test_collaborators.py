"""
Tests for the in-process collaborator implementations, including an
end-to-end run of the service wired to them.
"""

import pytest

from soil_ledger.components import (
    InMemoryTokenContract,
    PlausibilityDataValidator,
    RunningAnalyticsEngine,
    StaticSensorRegistry,
    ThresholdAlertSystem
)
from soil_ledger.config import MetricRange
from soil_ledger.models import Metrics
from soil_ledger.utils import ErrorKind


class TestStaticSensorRegistry:

    def test_membership(self):
        registry = StaticSensorRegistry([1, 2])

        assert registry.is_registered(1) is True
        assert registry.is_registered(3) is False

        registry.register(3)
        assert registry.is_registered(3) is True


class TestPlausibilityDataValidator:

    def test_accepts_typical_reading(self, valid_metrics):
        assert PlausibilityDataValidator().validate_data(valid_metrics) is True

    @pytest.mark.parametrize("metrics", [
        {"moisture": 100, "ph": 7, "nutrients": 200, "temperature": 25},
        {"moisture": 0, "ph": 7, "nutrients": 200, "temperature": 25},
        {"moisture": 50, "ph": 13, "nutrients": 200, "temperature": 25},
        {"moisture": 50, "ph": 7, "nutrients": 200, "temperature": 58},
    ])
    def test_rejects_in_range_but_implausible(self, metrics):
        assert PlausibilityDataValidator().validate_data(Metrics(**metrics)) is False

    def test_custom_bands(self, valid_metrics):
        validator = PlausibilityDataValidator({"nutrients": MetricRange(min=300, max=900)})
        assert validator.validate_data(valid_metrics) is False
        assert PlausibilityDataValidator({}).validate_data(Metrics(moisture=0, ph=0, nutrients=0, temperature=60)) is True


class TestInMemoryTokenContract:

    def test_mint_tracks_balances(self):
        token = InMemoryTokenContract()

        assert token.mint(10, "ST1TEST") is True
        assert token.mint(5, "ST1TEST") is True
        assert token.mint(7, "ST2OTHER") is True

        assert token.balance_of("ST1TEST") == 15
        assert token.balance_of("ST2OTHER") == 7
        assert token.balance_of("ST3NOBODY") == 0
        assert token.total_minted == 22

    @pytest.mark.parametrize("amount,recipient", [(0, "ST1TEST"), (-1, "ST1TEST"), (10, "")])
    def test_invalid_mint_refused(self, amount, recipient):
        token = InMemoryTokenContract()
        assert token.mint(amount, recipient) is False
        assert token.total_minted == 0


class TestThresholdAlertSystem:

    def test_alerts_outside_comfort_band(self):
        alerts = ThresholdAlertSystem()

        alerts.trigger_alert(1, 2, Metrics(moisture=10, ph=8, nutrients=200, temperature=25))

        assert alerts.alerts == [(1, 2, "moisture", 10.0), (1, 2, "ph", 8.0)]

    def test_no_alert_inside_band(self, valid_metrics):
        alerts = ThresholdAlertSystem()
        alerts.trigger_alert(1, 1, valid_metrics)
        assert alerts.alerts == []

    def test_custom_thresholds(self, valid_metrics):
        alerts = ThresholdAlertSystem({"nutrients": MetricRange(min=300, max=900)})
        alerts.trigger_alert(4, 5, valid_metrics)
        assert alerts.alerts == [(4, 5, "nutrients", 200.0)]


class TestRunningAnalyticsEngine:

    def test_running_means(self):
        analytics = RunningAnalyticsEngine()

        analytics.update_analytics(1, Metrics(moisture=40, ph=6, nutrients=100, temperature=20))
        analytics.update_analytics(1, Metrics(moisture=60, ph=8, nutrients=300, temperature=30))

        assert analytics.readings_for(1) == 2
        assert analytics.averages_for(1) == {
            "moisture": 50.0, "ph": 7.0, "nutrients": 200.0, "temperature": 25.0
        }
        assert analytics.averages_for(2) is None


class TestServiceWithReferenceCollaborators:
    """End-to-end flow over the in-process collaborators."""

    def test_submit_and_claim(self, oracle_service, clock, farmer):
        registry = StaticSensorRegistry([1])
        validator = PlausibilityDataValidator()
        alerts = ThresholdAlertSystem()
        analytics = RunningAnalyticsEngine()
        token = InMemoryTokenContract()
        dry = Metrics(moisture=5, ph=7, nutrients=200, temperature=25)

        outcome = oracle_service.submit(farmer, 1, 1, "d" * 64, dry, registry, validator, alerts, analytics)
        assert outcome.ok is True
        assert alerts.alerts == [(1, 1, "moisture", 5.0)]
        assert analytics.readings_for(1) == 1

        clock.advance()
        outcome = oracle_service.submit(farmer, 1, 2, "d" * 64, dry, registry, validator, alerts, analytics)
        assert outcome.error == ErrorKind.SENSOR_NOT_REGISTERED

        saturated = Metrics(moisture=100, ph=7, nutrients=200, temperature=25)
        outcome = oracle_service.submit(farmer, 1, 1, "d" * 64, saturated, registry, validator, alerts, analytics)
        assert outcome.error == ErrorKind.VALIDATION_FAILED
        assert oracle_service.get_total_submissions() == 1

        assert oracle_service.claim_reward(farmer, 1, 1, 1, token).ok is True
        assert token.balance_of(farmer) == 10
