"""
Pytest configuration and shared fixtures for testing.

Provides settings, a manual clock, ready-made services and recording stub
collaborators for all test modules.
"""

import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

from soil_ledger.components import (
    AlertSystem,
    AnalyticsEngine,
    DataValidator,
    ManualClock,
    SensorRegistry,
    SubmissionService,
    TokenContract
)
from soil_ledger.config import LedgerSettings
from soil_ledger.models import Metrics


ADMIN = "ST1ADMIN"
FARMER = "ST1TEST"
ORACLE = "ST2ORACLE"


class StubRegistry(SensorRegistry):
    """Registry returning a fixed answer, optionally raising instead."""

    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def is_registered(self, sensor_id):
        self.calls.append(sensor_id)
        if self.error is not None:
            raise self.error
        return self.result


class StubValidator(DataValidator):
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def validate_data(self, metrics):
        self.calls.append(metrics)
        if self.error is not None:
            raise self.error
        return self.result


class StubTokenContract(TokenContract):
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def mint(self, amount, recipient):
        self.calls.append((amount, recipient))
        if self.error is not None:
            raise self.error
        return self.result


class StubAlertSystem(AlertSystem):
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def trigger_alert(self, farm_id, sensor_id, metrics):
        self.calls.append((farm_id, sensor_id, metrics))
        if self.error is not None:
            raise self.error


class StubAnalyticsEngine(AnalyticsEngine):
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def update_analytics(self, farm_id, metrics):
        self.calls.append((farm_id, metrics))
        if self.error is not None:
            raise self.error


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def farmer():
    return FARMER


@pytest.fixture
def sample_config_data(temp_dir):
    """Raw settings dictionary with temporary storage paths."""
    return {
        "ledger": {
            "name": "test_soil_ledger",
            "version": "1.0.0"
        },
        "governance": {
            "admin_principal": ADMIN,
            "oracle_principal": None,
            "max_submissions_per_farm": 1000,
            "reward_per_submission": 10
        },
        "submission": {
            "hash_length": 64,
            "ranges": {
                "moisture": {"min": 0, "max": 100},
                "ph": {"min": 0, "max": 14},
                "nutrients": {"min": 0, "max": 1000},
                "temperature": {"min": -50, "max": 60}
            }
        },
        "storage": {
            "database_path": str(temp_dir / "ledger.duckdb"),
            "export_dir": str(temp_dir / "exports")
        },
        "logging": {
            "level": "DEBUG",
            "log_file": None
        }
    }


@pytest.fixture
def sample_settings(sample_config_data):
    """Create test settings with temporary paths."""
    return LedgerSettings(**sample_config_data)


@pytest.fixture
def valid_metrics():
    return Metrics(moisture=50, ph=7, nutrients=200, temperature=25)


@pytest.fixture
def valid_hash():
    return "a" * 64


@pytest.fixture
def clock():
    """Manual clock starting at tick 1."""
    return ManualClock(start=1)


@pytest.fixture
def service(sample_settings, clock):
    """Service with fresh state and the oracle still unset."""
    return SubmissionService.from_settings(sample_settings, clock)


@pytest.fixture
def oracle_service(service):
    """Service with the oracle principal set."""
    outcome = service.config_store.set_oracle_principal(ADMIN, ORACLE)
    assert outcome.ok
    return service


@pytest.fixture
def collaborators():
    """Recording collaborators that accept everything."""
    return SimpleNamespace(
        registry=StubRegistry(),
        validator=StubValidator(),
        alerts=StubAlertSystem(),
        analytics=StubAnalyticsEngine(),
        token=StubTokenContract()
    )


@pytest.fixture
def submit(oracle_service, collaborators, valid_metrics, valid_hash):
    """Submit through the oracle-enabled service with overridable defaults."""
    def _submit(farm_id=1, sensor_id=1, data_hash=None, metrics=None, caller=FARMER):
        return oracle_service.submit(
            caller,
            farm_id,
            sensor_id,
            data_hash if data_hash is not None else valid_hash,
            metrics if metrics is not None else valid_metrics,
            collaborators.registry,
            collaborators.validator,
            collaborators.alerts,
            collaborators.analytics
        )
    return _submit
