"""
Reward bookkeeping for claimed submissions.

Tracks the cumulative amount paid out. Claim state itself lives on each
Submission in the SubmissionLedger, which this component only reads.
"""

from soil_ledger.components.ledger import SubmissionLedger
from soil_ledger.models import SubmissionKey
from soil_ledger.utils import get_logger


class RewardLedger:
    """Cumulative reward accumulator with read-only access to submissions."""

    def __init__(self, ledger: SubmissionLedger):
        self.logger = get_logger(__name__)
        self.ledger = ledger
        self._total_rewards_claimed = 0

    @property
    def total_rewards_claimed(self) -> int:
        return self._total_rewards_claimed

    def is_claimable(self, key: SubmissionKey, caller: str) -> bool:
        """True if the submission exists, belongs to caller, is validated and unclaimed."""
        submission = self.ledger.get(key)
        if submission is None:
            return False
        return submission.submitter == caller and submission.validated and not submission.reward_claimed

    def record_claim(self, amount: int) -> None:
        """Add a paid reward to the accumulator."""
        if amount <= 0:
            raise ValueError(f"Reward amount must be positive, got {amount}")
        self._total_rewards_claimed += amount
        self.logger.debug(f"Recorded reward of {amount}; total claimed {self._total_rewards_claimed}")

    def restore(self, total_rewards_claimed: int) -> None:
        self._total_rewards_claimed = total_rewards_claimed
