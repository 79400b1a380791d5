"""
Tests for reward claims and the read accessors of the service.
"""

import pytest

from soil_ledger.utils import ErrorKind


@pytest.fixture
def accepted(submit):
    """A stored submission at key (1, 1, 1)."""
    outcome = submit(farm_id=1, sensor_id=1)
    assert outcome.ok
    return outcome.value


class TestClaimReward:
    """Exactly-once reward payout."""

    def test_claim_succeeds_once(self, oracle_service, collaborators, accepted, farmer):
        token = collaborators.token

        outcome = oracle_service.claim_reward(farmer, 1, 1, accepted.submission_time, token)

        assert outcome.ok is True
        assert outcome.value is True
        assert token.calls == [(10, farmer)]
        assert oracle_service.get_submission(1, 1, 1).reward_claimed is True
        assert oracle_service.get_total_rewards_claimed() == 10

    def test_second_claim_fails_without_minting(self, oracle_service, collaborators, accepted, farmer):
        token = collaborators.token
        oracle_service.claim_reward(farmer, 1, 1, 1, token)

        outcome = oracle_service.claim_reward(farmer, 1, 1, 1, token)

        assert outcome.ok is False
        assert outcome.error == ErrorKind.REWARD_CLAIM_FAILED
        assert len(token.calls) == 1
        assert oracle_service.get_total_rewards_claimed() == 10

    def test_claim_by_other_identity_unauthorized(self, oracle_service, collaborators, accepted):
        outcome = oracle_service.claim_reward("ST9INTRUDER", 1, 1, 1, collaborators.token)

        assert outcome.error == ErrorKind.UNAUTHORIZED
        assert collaborators.token.calls == []
        assert oracle_service.get_submission(1, 1, 1).reward_claimed is False

    @pytest.mark.parametrize("farm_id,sensor_id,submission_time", [
        (1, 1, 2),
        (1, 2, 1),
        (2, 1, 1),
        (0, 0, 0),
        (1.5, 1, 1),
        (1, None, 1),
    ])
    def test_unknown_submission(self, oracle_service, collaborators, accepted, farmer,
                                farm_id, sensor_id, submission_time):
        outcome = oracle_service.claim_reward(farmer, farm_id, sensor_id, submission_time, collaborators.token)
        assert outcome.error == ErrorKind.SUBMISSION_NOT_FOUND

    def test_mint_failure_leaves_claim_retryable(self, oracle_service, collaborators, accepted, farmer):
        token = collaborators.token
        token.result = False

        outcome = oracle_service.claim_reward(farmer, 1, 1, 1, token)
        assert outcome.error == ErrorKind.REWARD_CLAIM_FAILED
        assert oracle_service.get_submission(1, 1, 1).reward_claimed is False
        assert oracle_service.get_total_rewards_claimed() == 0

        token.result = True
        assert oracle_service.claim_reward(farmer, 1, 1, 1, token).ok is True
        assert oracle_service.get_total_rewards_claimed() == 10

    def test_mint_exception_is_claim_failure(self, oracle_service, collaborators, accepted, farmer):
        collaborators.token.error = ConnectionError("token contract unreachable")

        outcome = oracle_service.claim_reward(farmer, 1, 1, 1, collaborators.token)

        assert outcome.error == ErrorKind.REWARD_CLAIM_FAILED
        assert oracle_service.get_submission(1, 1, 1).reward_claimed is False

    def test_unvalidated_submission_rejected(self, oracle_service, collaborators, accepted, farmer):
        """Guard for records that were persisted without validation."""
        stored = oracle_service.ledger._submissions[accepted]
        stored.validated = False

        outcome = oracle_service.claim_reward(farmer, 1, 1, 1, collaborators.token)

        assert outcome.error == ErrorKind.VALIDATION_FAILED
        assert collaborators.token.calls == []

    def test_accumulator_uses_current_reward(self, oracle_service, collaborators, submit, clock, farmer, admin):
        submit()
        clock.advance()
        submit(sensor_id=2)

        oracle_service.claim_reward(farmer, 1, 1, 1, collaborators.token)
        oracle_service.config_store.set_reward_per_submission(admin, 25)
        oracle_service.claim_reward(farmer, 1, 2, 2, collaborators.token)

        assert collaborators.token.calls == [(10, farmer), (25, farmer)]
        assert oracle_service.get_total_rewards_claimed() == 35

    def test_claim_does_not_touch_other_fields(self, oracle_service, collaborators, accepted, farmer):
        before = oracle_service.get_submission(1, 1, 1)

        oracle_service.claim_reward(farmer, 1, 1, 1, collaborators.token)

        after = oracle_service.get_submission(1, 1, 1)
        assert after.model_dump(exclude={"reward_claimed"}) == before.model_dump(exclude={"reward_claimed"})


class TestReadAccessors:
    """Pure lookups never fail."""

    def test_defaults_on_fresh_service(self, service):
        assert service.get_submission(1, 1, 1) is None
        assert service.get_farm_submission_count(42) == 0
        assert service.get_submission_history(42) is None
        assert service.get_total_submissions() == 0
        assert service.get_total_rewards_claimed() == 0
        assert service.get_reward_per_submission() == 10
        assert service.get_max_submissions_per_farm() == 1000
        assert service.get_oracle_principal() is None

    def test_returned_submission_is_a_copy(self, oracle_service, accepted):
        copy = oracle_service.get_submission(1, 1, 1)
        copy.reward_claimed = True
        copy.metrics.moisture = 0

        stored = oracle_service.get_submission(1, 1, 1)
        assert stored.reward_claimed is False
        assert stored.metrics.moisture == 50

    def test_reward_ledger_claimability(self, oracle_service, collaborators, accepted, farmer):
        rewards = oracle_service.rewards

        assert rewards.is_claimable(accepted, farmer) is True
        assert rewards.is_claimable(accepted, "ST9OTHER") is False

        oracle_service.claim_reward(farmer, 1, 1, 1, collaborators.token)
        assert rewards.is_claimable(accepted, farmer) is False
