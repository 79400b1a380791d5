"""
Pydantic models for data structures used throughout the ledger.

These models ensure type safety for readings, ledger records and the results
handed back to callers.
"""

from typing import Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from soil_ledger.utils.exceptions import ErrorKind


class SubmissionKey(BaseModel):
    """Structural identity of a reading: farm, sensor and submission time."""
    model_config = ConfigDict(frozen=True)

    farm_id: int = Field(..., description="Farm identifier")
    sensor_id: int = Field(..., description="Sensor identifier")
    submission_time: int = Field(..., description="Clock value at which the reading was accepted")

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.farm_id, self.sensor_id, self.submission_time)


class Metrics(BaseModel):
    """Soil measurements carried by one reading."""
    moisture: float = Field(..., description="Volumetric moisture percentage (0-100)")
    ph: float = Field(..., description="Soil pH (0-14)")
    nutrients: float = Field(..., description="Nutrient concentration (0-1000)")
    temperature: float = Field(..., description="Soil temperature in Celsius (-50-60)")


class Submission(BaseModel):
    """An accepted reading as stored in the ledger."""
    data_hash: str = Field(..., description="Hash of the off-system raw payload")
    metrics: Metrics = Field(..., description="Soil measurements")
    submitter: str = Field(..., description="Identity that submitted the reading")
    validated: bool = Field(True, description="Whether the reading passed validation before the write")
    reward_claimed: bool = Field(False, description="Whether the reward has been paid out")


class SubmissionHistory(BaseModel):
    """Per-farm submission history."""
    count: int = Field(0, description="Number of accepted submissions for the farm")
    last_submission_time: int = Field(..., description="Time of the latest accepted submission")


class Outcome(BaseModel):
    """Success/failure result of a ledger operation."""
    ok: bool = Field(..., description="Whether the operation succeeded")
    value: Any = Field(None, description="Operation payload on success")
    error: Optional[ErrorKind] = Field(None, description="Rejection reason on failure")

    @classmethod
    def success(cls, value: Any = True) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorKind) -> "Outcome":
        return cls(ok=False, error=error)

    @property
    def code(self) -> Optional[int]:
        """Numeric code of the rejection, None on success."""
        return self.error.code if self.error is not None else None
