"""
Submission ledger for accepted soil readings.

Owns every stored Submission, the per-farm submission counts, the per-farm
history of the latest accepted time, and the global submission counter.
The ledger performs no admission policy of its own: callers check uniqueness,
ordering and quota first, and the ledger only guards against writes that
would corrupt its invariants.
"""

from typing import Dict, Iterator, Optional, Tuple

from soil_ledger.models import Submission, SubmissionHistory, SubmissionKey
from soil_ledger.utils import get_logger, InvariantViolation


class SubmissionLedger:
    """In-memory map of accepted readings plus per-farm bookkeeping."""

    def __init__(self):
        self.logger = get_logger(__name__)

        self._submissions: Dict[SubmissionKey, Submission] = {}
        self._history: Dict[int, SubmissionHistory] = {}
        self._farm_counts: Dict[int, int] = {}
        self._total_submissions = 0

    @staticmethod
    def key_of(farm_id: int, sensor_id: int, time: int) -> SubmissionKey:
        """Derive the identity of a reading. Total and deterministic."""
        return SubmissionKey(farm_id=farm_id, sensor_id=sensor_id, submission_time=time)

    def contains(self, key: SubmissionKey) -> bool:
        return key in self._submissions

    def get(self, key: SubmissionKey) -> Optional[Submission]:
        """Return a copy of the stored submission, or None."""
        submission = self._submissions.get(key)
        return submission.model_copy(deep=True) if submission is not None else None

    def history_of(self, farm_id: int) -> Optional[SubmissionHistory]:
        """Return the farm's history, or None if it has never submitted."""
        history = self._history.get(farm_id)
        return history.model_copy() if history is not None else None

    def count_of(self, farm_id: int) -> int:
        return self._farm_counts.get(farm_id, 0)

    @property
    def total_submissions(self) -> int:
        return self._total_submissions

    def __len__(self) -> int:
        return len(self._submissions)

    def items(self) -> Iterator[Tuple[SubmissionKey, Submission]]:
        """Iterate over (key, copy of submission) pairs in insertion order."""
        for key, submission in list(self._submissions.items()):
            yield key, submission.model_copy(deep=True)

    def farm_histories(self) -> Dict[int, SubmissionHistory]:
        return {farm_id: history.model_copy() for farm_id, history in self._history.items()}

    def farm_counts(self) -> Dict[int, int]:
        return dict(self._farm_counts)

    def insert(self, key: SubmissionKey, submission: Submission) -> None:
        """
        Store a new submission and update the farm and global counters.

        Args:
            key: Derived submission key; must not be present yet
            submission: The accepted reading

        Raises:
            InvariantViolation: If the key is already stored
        """
        if key in self._submissions:
            raise InvariantViolation(f"Submission already stored for key {key.as_tuple()}")

        farm_id = key.farm_id
        previous = self._history.get(farm_id)
        new_history = SubmissionHistory(
            count=(previous.count if previous is not None else 0) + 1,
            last_submission_time=key.submission_time
        )
        new_count = self._farm_counts.get(farm_id, 0) + 1

        # Every value is computed before the first assignment, so no failure can leave a partial write
        self._submissions[key] = submission.model_copy(deep=True)
        self._farm_counts[farm_id] = new_count
        self._history[farm_id] = new_history
        self._total_submissions += 1

        self.logger.debug(f"Stored submission {key.as_tuple()} (farm count {new_count})")

    def mark_reward_claimed(self, key: SubmissionKey) -> None:
        """
        Flip reward_claimed to True, leaving the other fields unchanged.

        Raises:
            InvariantViolation: If the submission is absent or already claimed
        """
        submission = self._submissions.get(key)
        if submission is None:
            raise InvariantViolation(f"No submission stored for key {key.as_tuple()}")
        if submission.reward_claimed:
            raise InvariantViolation(f"Reward already claimed for key {key.as_tuple()}")

        submission.reward_claimed = True

    def restore(
        self,
        submissions: Dict[SubmissionKey, Submission],
        history: Dict[int, SubmissionHistory],
        farm_counts: Dict[int, int],
        total_submissions: int
    ) -> None:
        """Replace the whole ledger state with previously persisted records."""
        self._submissions = {key: value.model_copy(deep=True) for key, value in submissions.items()}
        self._history = {farm_id: value.model_copy() for farm_id, value in history.items()}
        self._farm_counts = dict(farm_counts)
        self._total_submissions = total_submissions
