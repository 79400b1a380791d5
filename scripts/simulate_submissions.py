#!/usr/bin/env python3
"""
Synthetic submission generator for the soil data ledger.

- Drives a ledger with realistic soil readings from several farms and sensors.
- Injects edge cases: out-of-range metrics, probes stuck at a rail, malformed
  hashes, unregistered sensors and same-tick submissions from a second sensor
  on the same farm.
- Claims rewards for a share of the accepted readings, then saves the state to
  DuckDB and exports the accepted submissions to Parquet.

Usage:
  python scripts/simulate_submissions.py \
    --farms 3 \
    --ticks 48 \
    --include-edge-cases

If no args are provided, defaults are used: farms=3, ticks=48, seed=42.
"""

from __future__ import annotations

import argparse
import hashlib
from collections import Counter
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd

from soil_ledger.components import (
    DuckDBLedgerStore,
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


SENSORS_PER_FARM = 3
FARMER_TEMPLATE = "ST{farm_id}FARMER"


def synth_metrics(rng: np.random.Generator, anomalous: bool) -> Metrics:
    """Draw one reading; anomalous readings push a single metric out of range."""
    values = {
        "moisture": float(np.clip(rng.normal(loc=45, scale=15), 0, 100)),
        "ph": float(np.clip(rng.normal(loc=6.5, scale=0.7), 0, 14)),
        "nutrients": float(np.clip(rng.normal(loc=250, scale=80), 0, 1000)),
        "temperature": float(np.clip(rng.normal(loc=22, scale=7), -50, 60)),
    }
    if anomalous:
        field = rng.choice(list(values))
        values[field] = {"moisture": 130.0, "ph": 15.2, "nutrients": 1400.0, "temperature": -70.0}[field]
    return Metrics(**values)


def payload_hash(farm_id: int, sensor_id: int, tick: int, metrics: Metrics) -> str:
    payload = f"{farm_id}:{sensor_id}:{tick}:{metrics.model_dump_json()}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def simulate(settings: LedgerSettings, farms: int, ticks: int, include_edge_cases: bool, seed: int) -> pd.DataFrame:
    """Run the simulation and return one row per attempted submission."""
    rng = np.random.default_rng(seed)
    clock = ManualClock(start=1)
    service = SubmissionService.from_settings(settings, clock)
    service.config_store.set_oracle_principal(service.config_store.admin, "ST0ORACLE")

    registered = [farm * 10 + s for farm in range(1, farms + 1) for s in range(1, SENSORS_PER_FARM + 1)]
    registry = StaticSensorRegistry(registered)
    validator = PlausibilityDataValidator()
    alerts = ThresholdAlertSystem()
    analytics = RunningAnalyticsEngine()
    token = InMemoryTokenContract()

    attempts: List[dict] = []

    def attempt(farm_id: int, sensor_id: int, data_hash: str, metrics: Metrics, case: str) -> None:
        caller = FARMER_TEMPLATE.format(farm_id=farm_id)
        outcome = service.submit(caller, farm_id, sensor_id, data_hash, metrics,
                                 registry, validator, alerts, analytics)
        attempts.append({
            "tick": clock(),
            "farm_id": farm_id,
            "sensor_id": sensor_id,
            "case": case,
            "accepted": outcome.ok,
            "error": outcome.error.value if outcome.error else None,
        })
        # Claim roughly half of the accepted readings
        if outcome.ok and rng.random() < 0.5:
            service.claim_reward(caller, farm_id, sensor_id, outcome.value.submission_time, token)

    for _ in range(ticks):
        for farm_id in range(1, farms + 1):
            sensor_id = farm_id * 10 + int(rng.integers(1, SENSORS_PER_FARM + 1))
            anomalous = include_edge_cases and rng.random() < 0.10
            metrics = synth_metrics(rng, anomalous)
            case = "anomalous" if anomalous else "valid"
            if include_edge_cases and not anomalous and rng.random() < 0.05:
                # In range, but a probe pinned at saturation
                metrics = metrics.model_copy(update={"moisture": 100.0})
                case = "stuck_probe"
            attempt(farm_id, sensor_id, payload_hash(farm_id, sensor_id, clock(), metrics), metrics, case)

            if include_edge_cases:
                roll = rng.random()
                if roll < 0.05:
                    attempt(farm_id, farm_id * 10 + 9, "0" * 64, metrics, "unregistered_sensor")
                elif roll < 0.10:
                    attempt(farm_id, sensor_id, "deadbeef", metrics, "short_hash")
                elif roll < 0.20:
                    other = farm_id * 10 + (sensor_id % 10) % SENSORS_PER_FARM + 1
                    attempt(farm_id, other, payload_hash(farm_id, other, clock(), metrics), metrics, "same_tick")
        clock.advance()

    with DuckDBLedgerStore(settings) as store:
        store.save(service.config_store, service.ledger, service.rewards)
        export_path = store.export_parquet(service.ledger)

    print(f"✓ Accepted {service.get_total_submissions()} submissions across {farms} farms")
    print(f"✓ Rewards claimed: {service.get_total_rewards_claimed()} (minted {token.total_minted})")
    print(f"✓ Alerts raised: {len(alerts.alerts)}")
    print(f"✓ Exported submissions to {export_path}")

    return pd.DataFrame(attempts)


def main():
    parser = argparse.ArgumentParser(description="Simulate soil data submissions with edge cases")
    parser.add_argument("--config", type=Path, default=None, help="Settings file (default: config/default.yaml)")
    parser.add_argument("--farms", type=int, default=3, help="Number of farms")
    parser.add_argument("--ticks", type=int, default=48, help="Clock ticks to simulate")
    parser.add_argument("--include-edge-cases", action="store_true", help="Also submit invalid readings")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    project_root = Path(__file__).resolve().parent.parent
    settings = LedgerSettings.from_yaml(args.config or project_root / "config/default.yaml")
    setup_logging("ERROR")

    attempts = simulate(settings, args.farms, args.ticks, args.include_edge_cases, args.seed)

    outcomes = Counter(attempts["error"].fillna("Accepted"))
    print("\nOutcome counts:")
    for outcome, count in outcomes.most_common():
        print(f"   {outcome}: {count}")


if __name__ == "__main__":
    main()
