"""
Governance configuration for the soil data submission ledger.

Holds the oracle principal, the per-farm quota and the flat reward amount.
Values start from the deployment settings and are then changed in place by
the administrative identity only; they are never reset.
"""

import threading
from typing import Any, Dict, Optional

from soil_ledger.config import LedgerSettings
from soil_ledger.models import Outcome
from soil_ledger.utils import get_logger, ErrorKind, OperationRejected


class ConfigStore:
    """Process-wide configuration with admin-only mutation."""

    def __init__(self, settings: LedgerSettings):
        """
        Initialize the store from deployment settings.

        Args:
            settings: Ledger settings; the governance section supplies initial values
        """
        self.logger = get_logger(__name__)
        governance = settings.governance

        self._admin = governance.admin_principal
        self._oracle_principal: Optional[str] = governance.oracle_principal
        self._max_submissions_per_farm = governance.max_submissions_per_farm
        self._reward_per_submission = governance.reward_per_submission

        # Shared with the submission service so config changes serialize with ledger operations
        self.lock = threading.RLock()

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def oracle_principal(self) -> Optional[str]:
        return self._oracle_principal

    @property
    def max_submissions_per_farm(self) -> int:
        return self._max_submissions_per_farm

    @property
    def reward_per_submission(self) -> int:
        return self._reward_per_submission

    def set_oracle_principal(self, caller: str, new_oracle: str) -> Outcome:
        """Replace the oracle principal."""
        with self.lock:
            try:
                self._require_admin(caller)
                if not isinstance(new_oracle, str) or not new_oracle:
                    raise OperationRejected(ErrorKind.INVALID_CONFIG_VALUE, "oracle principal must be a non-empty identity")
            except OperationRejected as e:
                return self._reject("set_oracle_principal", caller, e)

            self._oracle_principal = new_oracle
            self.logger.info(f"Oracle principal set to {new_oracle} by {caller}")
            return Outcome.success(True)

    def set_max_submissions_per_farm(self, caller: str, new_max: int) -> Outcome:
        """
        Replace the per-farm quota.

        Farms already at or above the new quota are not touched; their next
        submission simply fails the quota check.
        """
        with self.lock:
            try:
                self._require_admin(caller)
                self._require_positive(new_max, "max submissions per farm")
            except OperationRejected as e:
                return self._reject("set_max_submissions_per_farm", caller, e)

            self._max_submissions_per_farm = new_max
            self.logger.info(f"Max submissions per farm set to {new_max} by {caller}")
            return Outcome.success(True)

    def set_reward_per_submission(self, caller: str, new_reward: int) -> Outcome:
        """Replace the flat reward paid per claimed submission."""
        with self.lock:
            try:
                self._require_admin(caller)
                self._require_positive(new_reward, "reward per submission")
            except OperationRejected as e:
                return self._reject("set_reward_per_submission", caller, e)

            self._reward_per_submission = new_reward
            self.logger.info(f"Reward per submission set to {new_reward} by {caller}")
            return Outcome.success(True)

    def snapshot(self) -> Dict[str, Any]:
        """Current values, keyed as they are persisted."""
        with self.lock:
            return {
                "oracle_principal": self._oracle_principal,
                "max_submissions_per_farm": self._max_submissions_per_farm,
                "reward_per_submission": self._reward_per_submission,
            }

    def restore(self, oracle_principal: Optional[str], max_submissions_per_farm: int,
                reward_per_submission: int) -> None:
        """Load previously persisted values, bypassing the admin check."""
        with self.lock:
            self._oracle_principal = oracle_principal
            self._max_submissions_per_farm = max_submissions_per_farm
            self._reward_per_submission = reward_per_submission

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise OperationRejected(ErrorKind.UNAUTHORIZED, f"{caller} is not the admin")

    @staticmethod
    def _require_positive(value: Any, name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise OperationRejected(ErrorKind.INVALID_CONFIG_VALUE, f"{name} must be positive, got {value!r}")

    def _reject(self, operation: str, caller: str, error: OperationRejected) -> Outcome:
        self.logger.warning(f"{operation} rejected for {caller}: {error}")
        return Outcome.failure(error.kind)
