"""
Submission service: admission of soil readings and reward claims.

This module coordinates the checks, collaborator calls and ledger writes for
the two state-changing operations:
submit: input checks -> config -> registry -> quota/uniqueness/ordering -> validator -> write -> notify
claim_reward: lookup -> ownership/state checks -> mint -> mark claimed -> accumulate

Each operation runs under one lock shared with the ConfigStore, so every
check-then-write sequence is serialized. A rejected operation leaves all
state untouched.
"""

from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from soil_ledger.components.base import (
    AlertSystem,
    AnalyticsEngine,
    DataValidator,
    SensorRegistry,
    TokenContract
)
from soil_ledger.components.clock import wall_clock
from soil_ledger.components.config_store import ConfigStore
from soil_ledger.components.ledger import SubmissionLedger
from soil_ledger.components.rewards import RewardLedger
from soil_ledger.config import LedgerSettings, METRIC_FIELDS
from soil_ledger.models import Metrics, Outcome, Submission, SubmissionHistory, SubmissionKey
from soil_ledger.utils import get_logger, ErrorKind, OperationRejected


METRIC_ERRORS = {
    "moisture": ErrorKind.INVALID_MOISTURE,
    "ph": ErrorKind.INVALID_PH,
    "nutrients": ErrorKind.INVALID_NUTRIENTS,
    "temperature": ErrorKind.INVALID_TEMPERATURE,
}


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class SubmissionService:
    """Orchestrates submissions and reward claims over the ledgers."""

    def __init__(
        self,
        settings: LedgerSettings,
        config_store: ConfigStore,
        ledger: SubmissionLedger,
        rewards: RewardLedger,
        clock: Callable[[], int] = wall_clock
    ):
        """
        Initialize the service.

        Args:
            settings: Ledger settings (hash length and metric ranges)
            config_store: Governance configuration
            ledger: Store of accepted submissions
            rewards: Cumulative reward accumulator
            clock: Source of the current submission time
        """
        self.settings = settings
        self.config_store = config_store
        self.ledger = ledger
        self.rewards = rewards
        self.clock = clock
        self.logger = get_logger(__name__)
        self.lock = config_store.lock

    @classmethod
    def from_settings(cls, settings: LedgerSettings, clock: Callable[[], int] = wall_clock) -> "SubmissionService":
        """Build a service with fresh, empty state."""
        ledger = SubmissionLedger()
        return cls(settings, ConfigStore(settings), ledger, RewardLedger(ledger), clock)

    def submit(
        self,
        caller: str,
        farm_id: int,
        sensor_id: int,
        data_hash: str,
        metrics: Union[Metrics, Dict[str, Any]],
        sensor_registry: SensorRegistry,
        data_validator: DataValidator,
        alert_system: AlertSystem,
        analytics_engine: AnalyticsEngine
    ) -> Outcome:
        """
        Validate and store a soil reading.

        Args:
            caller: Identity of the submitter
            farm_id: Farm the reading belongs to
            sensor_id: Sensor that produced the reading
            data_hash: 64-character hash of the raw payload
            metrics: Soil measurements
            sensor_registry: Registration check collaborator
            data_validator: Data-quality check collaborator
            alert_system: Post-commit alert collaborator
            analytics_engine: Post-commit analytics collaborator

        Returns:
            Outcome carrying the SubmissionKey on success, or the first failing ErrorKind
        """
        with self.lock:
            current_time = self.clock()
            try:
                key, metrics = self._admit(farm_id, sensor_id, data_hash, metrics, current_time,
                                           sensor_registry, data_validator)
            except OperationRejected as e:
                self.logger.warning(f"Submission rejected for farm {farm_id} sensor {sensor_id} at {current_time}: {e}")
                return Outcome.failure(e.kind)

            submission = Submission(
                data_hash=data_hash,
                metrics=metrics,
                submitter=caller,
                validated=True,
                reward_claimed=False
            )
            self.ledger.insert(key, submission)
            self.logger.info(f"Accepted submission {key.as_tuple()} from {caller}")

            # The write is the success boundary; notifications cannot undo it
            self._notify("analytics", analytics_engine.update_analytics, farm_id, metrics)
            self._notify("alert", alert_system.trigger_alert, farm_id, sensor_id, metrics)

            return Outcome.success(key)

    def claim_reward(
        self,
        caller: str,
        farm_id: int,
        sensor_id: int,
        submission_time: int,
        token_contract: TokenContract
    ) -> Outcome:
        """
        Pay the flat reward for a stored submission, at most once.

        The mint happens before the claim is recorded, so a failed mint leaves
        the submission unclaimed and the claim can be retried.

        Returns:
            Outcome with value True on success, or the failing ErrorKind
        """
        with self.lock:
            try:
                key = self._lookup_key(farm_id, sensor_id, submission_time)
                submission = self.ledger.get(key) if key is not None else None
                if submission is None:
                    raise OperationRejected(
                        ErrorKind.SUBMISSION_NOT_FOUND, f"no submission for {(farm_id, sensor_id, submission_time)}"
                    )
                if submission.submitter != caller:
                    raise OperationRejected(ErrorKind.UNAUTHORIZED, f"{caller} did not submit {key.as_tuple()}")
                if not submission.validated:
                    raise OperationRejected(ErrorKind.VALIDATION_FAILED, "submission was never validated")
                if submission.reward_claimed:
                    raise OperationRejected(ErrorKind.REWARD_CLAIM_FAILED, "reward already claimed")

                amount = self.config_store.reward_per_submission
                if not self._call_collaborator("token mint", token_contract.mint, amount, caller):
                    raise OperationRejected(ErrorKind.REWARD_CLAIM_FAILED, "token mint failed")
            except OperationRejected as e:
                self.logger.warning(f"Reward claim rejected for {caller}: {e}")
                return Outcome.failure(e.kind)

            self.ledger.mark_reward_claimed(key)
            self.rewards.record_claim(amount)
            self.logger.info(f"Paid reward of {amount} to {caller} for {key.as_tuple()}")

            return Outcome.success(True)

    # Read accessors

    def get_submission(self, farm_id: int, sensor_id: int, submission_time: int) -> Optional[Submission]:
        return self.ledger.get(self.ledger.key_of(farm_id, sensor_id, submission_time))

    def get_farm_submission_count(self, farm_id: int) -> int:
        return self.ledger.count_of(farm_id)

    def get_submission_history(self, farm_id: int) -> Optional[SubmissionHistory]:
        return self.ledger.history_of(farm_id)

    def get_total_submissions(self) -> int:
        return self.ledger.total_submissions

    def get_total_rewards_claimed(self) -> int:
        return self.rewards.total_rewards_claimed

    def get_reward_per_submission(self) -> int:
        return self.config_store.reward_per_submission

    def get_max_submissions_per_farm(self) -> int:
        return self.config_store.max_submissions_per_farm

    def get_oracle_principal(self) -> Optional[str]:
        return self.config_store.oracle_principal

    def _admit(
        self,
        farm_id: int,
        sensor_id: int,
        data_hash: str,
        metrics: Union[Metrics, Dict[str, Any]],
        current_time: int,
        sensor_registry: SensorRegistry,
        data_validator: DataValidator
    ) -> Tuple[SubmissionKey, Metrics]:
        """Run the admission checks in order and return the key and metrics to write."""
        # Step 1: Local input checks
        metrics = self._check_inputs(farm_id, sensor_id, data_hash, metrics)

        # Step 2: Configuration
        if self.config_store.oracle_principal is None:
            raise OperationRejected(ErrorKind.ORACLE_NOT_SET)

        # Step 3: Registry
        if not self._call_collaborator("sensor registry", sensor_registry.is_registered, sensor_id):
            raise OperationRejected(ErrorKind.SENSOR_NOT_REGISTERED, f"sensor {sensor_id}")

        # Step 4: Ledger state, read right before the write
        max_submissions = self.config_store.max_submissions_per_farm
        if self.ledger.count_of(farm_id) >= max_submissions:
            raise OperationRejected(ErrorKind.MAX_SUBMISSIONS_EXCEEDED, f"farm {farm_id} reached {max_submissions}")

        key = self.ledger.key_of(farm_id, sensor_id, current_time)
        if self.ledger.contains(key):
            raise OperationRejected(ErrorKind.DUPLICATE_SUBMISSION, f"key {key.as_tuple()}")

        # Ordering is per farm, not per sensor
        history = self.ledger.history_of(farm_id)
        if history is not None and current_time <= history.last_submission_time:
            raise OperationRejected(
                ErrorKind.TIMESTAMP_INVALID,
                f"time {current_time} is not after farm {farm_id} last time {history.last_submission_time}"
            )

        # Step 5: Data validator
        if not self._call_collaborator("data validator", data_validator.validate_data, metrics):
            raise OperationRejected(ErrorKind.VALIDATION_FAILED)

        return key, metrics

    def _check_inputs(
        self,
        farm_id: int,
        sensor_id: int,
        data_hash: str,
        metrics: Union[Metrics, Dict[str, Any]]
    ) -> Metrics:
        if not _is_positive_int(farm_id):
            raise OperationRejected(ErrorKind.INVALID_FARM_ID, f"farm id {farm_id}")
        if not _is_positive_int(sensor_id):
            raise OperationRejected(ErrorKind.INVALID_SENSOR_ID, f"sensor id {sensor_id}")

        hash_length = self.settings.submission.hash_length
        if not isinstance(data_hash, str) or len(data_hash) != hash_length:
            raise OperationRejected(ErrorKind.INVALID_HASH, f"expected {hash_length} characters")

        metrics = self._coerce_metrics(metrics)
        for field in METRIC_FIELDS:
            value = getattr(metrics, field)
            value_range = self.settings.get_metric_range(field)
            if not value_range.contains(value):
                raise OperationRejected(
                    METRIC_ERRORS[field],
                    f"{field} {value} outside [{value_range.min}, {value_range.max}]"
                )
        return metrics

    @staticmethod
    def _coerce_metrics(metrics: Union[Metrics, Dict[str, Any]]) -> Metrics:
        """Build Metrics from caller input; a missing or non-numeric field is that field's error."""
        if isinstance(metrics, Metrics):
            return metrics
        try:
            return Metrics.model_validate(metrics)
        except ValidationError as e:
            failed = {error["loc"][0] for error in e.errors() if error["loc"]}
            field = next((name for name in METRIC_FIELDS if name in failed), METRIC_FIELDS[0])
            raise OperationRejected(METRIC_ERRORS[field], f"{field} is missing or not a number") from e

    def _lookup_key(self, farm_id: int, sensor_id: int, submission_time: int) -> Optional[SubmissionKey]:
        """Key for a claim lookup, or None when the parts cannot name a stored reading."""
        try:
            return self.ledger.key_of(farm_id, sensor_id, submission_time)
        except ValidationError:
            return None

    def _call_collaborator(self, name: str, call: Callable[..., Any], *args) -> bool:
        """Call a gating collaborator; an exception counts as a failed call."""
        try:
            return bool(call(*args))
        except Exception as e:
            self.logger.warning(f"{name} call failed: {str(e)}")
            return False

    def _notify(self, name: str, call: Callable[..., Any], *args) -> None:
        try:
            call(*args)
        except Exception as e:
            self.logger.error(f"{name} notification failed after commit: {str(e)}")
