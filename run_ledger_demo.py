#!/usr/bin/env python3
"""
Demo script that walks a farm through submissions and reward claims.

Uses the in-process collaborators and a manual clock, so it runs without any
external services and leaves no files behind.
"""

from pathlib import Path

from soil_ledger.components import (
    InMemoryTokenContract,
    ManualClock,
    PlausibilityDataValidator,
    RunningAnalyticsEngine,
    StaticSensorRegistry,
    SubmissionService,
    ThresholdAlertSystem
)
from soil_ledger.config import LedgerSettings
from soil_ledger.models import Metrics
from soil_ledger.utils import setup_logging


def main():
    """Run a short submission and claim scenario."""
    print("🌱 Soil Data Submission Ledger Demo")
    print("=" * 50)

    settings = LedgerSettings.from_yaml(Path("config/default.yaml"))
    setup_logging("WARNING")

    clock = ManualClock(start=1)
    service = SubmissionService.from_settings(settings, clock)
    admin = service.config_store.admin
    farmer = "ST2FARMER"

    registry = StaticSensorRegistry([1, 2])
    validator = PlausibilityDataValidator()
    alerts = ThresholdAlertSystem()
    analytics = RunningAnalyticsEngine()
    token = InMemoryTokenContract()

    metrics = Metrics(moisture=50, ph=7, nutrients=200, temperature=25)

    print("\n🔒 Step 1: Submission before the oracle is set")
    print("-" * 30)
    outcome = service.submit(farmer, 1, 1, "a" * 64, metrics, registry, validator, alerts, analytics)
    print(f"   Rejected: {outcome.error.value} ({outcome.code})")

    print("\n⚙️  Step 2: Admin sets the oracle")
    print("-" * 30)
    service.config_store.set_oracle_principal(admin, "ST3ORACLE")
    print(f"   Oracle: {service.get_oracle_principal()}")

    print("\n📥 Step 3: Submissions")
    print("-" * 30)
    outcome = service.submit(farmer, 1, 1, "a" * 64, metrics, registry, validator, alerts, analytics)
    key = outcome.value
    print(f"   Accepted: {key.as_tuple()}")

    outcome = service.submit(farmer, 1, 2, "b" * 64, metrics, registry, validator, alerts, analytics)
    print(f"   Same tick, other sensor: {outcome.error.value}")

    clock.advance()
    dry = Metrics(moisture=12, ph=6.5, nutrients=180, temperature=28)
    outcome = service.submit(farmer, 1, 2, "b" * 64, dry, registry, validator, alerts, analytics)
    print(f"   Next tick, other sensor: {outcome.value.as_tuple()}")
    print(f"   Alerts raised: {len(alerts.alerts)}")
    print(f"   Farm 1 averages: {analytics.averages_for(1)}")

    print("\n💰 Step 4: Reward claims")
    print("-" * 30)
    outcome = service.claim_reward("ST4OTHER", 1, 1, key.submission_time, token)
    print(f"   Claim by another identity: {outcome.error.value}")
    outcome = service.claim_reward(farmer, 1, 1, key.submission_time, token)
    print(f"   Claim by submitter: ok={outcome.ok}")
    outcome = service.claim_reward(farmer, 1, 1, key.submission_time, token)
    print(f"   Second claim: {outcome.error.value}")

    print("\n📊 Ledger Summary:")
    print(f"   Total submissions: {service.get_total_submissions()}")
    print(f"   Farm 1 history: {service.get_submission_history(1)}")
    print(f"   Total rewards claimed: {service.get_total_rewards_claimed()}")
    print(f"   Farmer balance: {token.balance_of(farmer)}")


if __name__ == "__main__":
    main()
