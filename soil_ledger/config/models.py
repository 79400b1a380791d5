"""
Pydantic models for ledger configuration.

These models provide type-safe parsing and validation of the YAML settings file.
They supply the deployment-time values for the governance surface, the declared
metric ranges, storage locations and logging.
"""

from pathlib import Path
from typing import Dict, Optional, Union
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from soil_ledger.utils.exceptions import ConfigurationError


METRIC_FIELDS = ("moisture", "ph", "nutrients", "temperature")


def _resolve_project_path(v):
    """Convert a relative path to an absolute one under the project root."""
    if isinstance(v, str):
        path = Path(v)
        if not path.is_absolute():
            project_root = Path(__file__).parent.parent.parent
            path = (project_root / v).resolve()
        return str(path)
    return v


class LedgerInfo(BaseModel):
    """Basic ledger metadata."""
    name: str = Field("soil_data_ledger", description="Ledger name")
    version: str = Field("1.0.0", description="Ledger version")


class GovernanceSettings(BaseModel):
    """Deployment values for the administrative surface."""
    admin_principal: str = Field(..., min_length=1, description="Identity allowed to change configuration")
    oracle_principal: Optional[str] = Field(None, description="Oracle identity; submissions are rejected while unset")
    max_submissions_per_farm: int = Field(1000, gt=0, description="Per-farm submission quota")
    reward_per_submission: int = Field(10, gt=0, description="Flat reward minted per claimed submission")


class MetricRange(BaseModel):
    """Acceptable value range for a soil metric."""
    min: float = Field(..., description="Minimum acceptable value")
    max: float = Field(..., description="Maximum acceptable value")

    @model_validator(mode='after')
    def check_bounds(self):
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is greater than max {self.max}")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


def default_ranges() -> Dict[str, MetricRange]:
    return {
        "moisture": MetricRange(min=0, max=100),
        "ph": MetricRange(min=0, max=14),
        "nutrients": MetricRange(min=0, max=1000),
        "temperature": MetricRange(min=-50, max=60),
    }


class SubmissionSettings(BaseModel):
    """Admission rules for incoming readings."""
    model_config = ConfigDict(extra='forbid')

    hash_length: int = Field(64, gt=0, description="Required length of the data hash")
    ranges: Dict[str, MetricRange] = Field(default_factory=default_ranges, description="Declared range per metric")

    @field_validator('ranges')
    @classmethod
    def require_all_metrics(cls, v):
        """Fill in any metric the file leaves out and reject unknown ones."""
        unknown = set(v) - set(METRIC_FIELDS)
        if unknown:
            raise ValueError(f"unknown metrics in ranges: {sorted(unknown)}")
        merged = default_ranges()
        merged.update(v)
        return merged


class StorageSettings(BaseModel):
    """Locations for durable ledger state."""
    model_config = ConfigDict(validate_default=True)

    database_path: str = Field("data/ledger.duckdb", description="DuckDB file holding ledger state")
    export_dir: str = Field("data/exports", description="Directory for Parquet exports")

    @field_validator('database_path', 'export_dir', mode='before')
    @classmethod
    def resolve_paths(cls, v):
        """Convert relative paths to absolute paths."""
        if v == ":memory:":
            return v
        return _resolve_project_path(v)


class LoggingSettings(BaseModel):
    """Logging output configuration."""
    level: str = Field("INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Optional log file path")

    @field_validator('level')
    @classmethod
    def check_level(cls, v):
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid logging level: {v}")
        return v.upper()


class LedgerSettings(BaseModel):
    """Complete ledger configuration model."""
    model_config = ConfigDict(extra='forbid')

    ledger: LedgerInfo = Field(default_factory=LedgerInfo, description="Ledger metadata")
    governance: GovernanceSettings = Field(..., description="Administrative defaults")
    submission: SubmissionSettings = Field(default_factory=SubmissionSettings, description="Admission rules")
    storage: StorageSettings = Field(default_factory=StorageSettings, description="Durable storage")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging configuration")

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "LedgerSettings":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file is empty or malformed: {config_path}")

        return cls(**config_data)

    def get_metric_range(self, metric: str) -> MetricRange:
        """Get the declared range for a soil metric."""
        return self.submission.ranges[metric]
