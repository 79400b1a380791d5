"""
Error taxonomy and custom exceptions for the soil data submission ledger.

Every user-facing rejection is one ErrorKind. Internally the checks raise
OperationRejected, which the service boundary turns into a failed Outcome.
The remaining exceptions signal programming errors or infrastructure failures
and are allowed to propagate.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Categorical rejection reasons returned to callers."""
    UNAUTHORIZED = "Unauthorized"
    INVALID_FARM_ID = "InvalidFarmId"
    INVALID_SENSOR_ID = "InvalidSensorId"
    INVALID_HASH = "InvalidHash"
    INVALID_MOISTURE = "InvalidMoisture"
    INVALID_PH = "InvalidPh"
    INVALID_NUTRIENTS = "InvalidNutrients"
    INVALID_TEMPERATURE = "InvalidTemperature"
    ORACLE_NOT_SET = "OracleNotSet"
    SENSOR_NOT_REGISTERED = "SensorNotRegistered"
    MAX_SUBMISSIONS_EXCEEDED = "MaxSubmissionsExceeded"
    DUPLICATE_SUBMISSION = "DuplicateSubmission"
    TIMESTAMP_INVALID = "TimestampInvalid"
    VALIDATION_FAILED = "ValidationFailed"
    SUBMISSION_NOT_FOUND = "SubmissionNotFound"
    REWARD_CLAIM_FAILED = "RewardClaimFailed"
    INVALID_CONFIG_VALUE = "InvalidConfigValue"

    @property
    def code(self) -> int:
        """Numeric error code, stable across releases."""
        return _ERROR_CODES[self]


_ERROR_CODES = {
    ErrorKind.UNAUTHORIZED: 1000,
    ErrorKind.SENSOR_NOT_REGISTERED: 1002,
    ErrorKind.SUBMISSION_NOT_FOUND: 1003,
    ErrorKind.INVALID_HASH: 1005,
    ErrorKind.DUPLICATE_SUBMISSION: 1006,
    ErrorKind.INVALID_FARM_ID: 1007,
    ErrorKind.INVALID_SENSOR_ID: 1008,
    ErrorKind.REWARD_CLAIM_FAILED: 1009,
    ErrorKind.VALIDATION_FAILED: 1010,
    ErrorKind.TIMESTAMP_INVALID: 1011,
    ErrorKind.MAX_SUBMISSIONS_EXCEEDED: 1013,
    ErrorKind.INVALID_MOISTURE: 1014,
    ErrorKind.INVALID_PH: 1015,
    ErrorKind.INVALID_NUTRIENTS: 1016,
    ErrorKind.INVALID_TEMPERATURE: 1017,
    ErrorKind.ORACLE_NOT_SET: 1018,
    ErrorKind.INVALID_CONFIG_VALUE: 1019,
}


class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class OperationRejected(LedgerError):
    """Raised when a submission, claim or config change fails a check."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        message = f"{kind.value} ({kind.code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvariantViolation(LedgerError):
    """Raised when a ledger write would break a storage invariant."""
    pass


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""
    pass


class StorageError(LedgerError):
    """Raised when saving, loading or exporting ledger state fails."""
    pass
