"""
Command-line entry point for the soil data submission ledger.

Each invocation loads the ledger state from DuckDB, runs one operation and
saves the state back when the operation changed it:
set-oracle | set-quota | set-reward | submit | claim | show | export
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError

from soil_ledger.components import (
    DuckDBLedgerStore,
    InMemoryTokenContract,
    PlausibilityDataValidator,
    RunningAnalyticsEngine,
    StaticSensorRegistry,
    SubmissionService,
    ThresholdAlertSystem,
    wall_clock
)
from soil_ledger.config import LedgerSettings
from soil_ledger.models import Metrics, Outcome
from soil_ledger.utils import setup_logging, get_logger, LedgerError


DEFAULT_CONFIG = Path("config/default.yaml")


class LedgerApp:
    """Wires settings, service and durable store for one CLI run."""

    def __init__(self, settings: LedgerSettings, clock: Callable[[], int] = wall_clock):
        self.settings = settings
        self.service = SubmissionService.from_settings(settings, clock)
        self.store = DuckDBLedgerStore(settings)
        self.logger = get_logger(__name__)

    def __enter__(self) -> "LedgerApp":
        self.store.load(self.service.config_store, self.service.ledger, self.service.rewards)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.store.close()

    def save(self) -> None:
        self.store.save(self.service.config_store, self.service.ledger, self.service.rewards)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="soil-ledger", description="Soil data submission ledger")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="Ledger settings YAML file")
    parser.add_argument("--caller", default=None, help="Identity of the caller (defaults to the admin)")

    sub = parser.add_subparsers(dest="command", required=True)

    oracle = sub.add_parser("set-oracle", help="Set the oracle principal")
    oracle.add_argument("oracle")

    quota = sub.add_parser("set-quota", help="Set the per-farm submission quota")
    quota.add_argument("max_submissions", type=int)

    reward = sub.add_parser("set-reward", help="Set the reward per submission")
    reward.add_argument("reward", type=int)

    submit = sub.add_parser("submit", help="Submit a soil reading")
    submit.add_argument("farm_id", type=int)
    submit.add_argument("sensor_id", type=int)
    submit.add_argument("data_hash")
    submit.add_argument("--moisture", type=float, required=True)
    submit.add_argument("--ph", type=float, required=True)
    submit.add_argument("--nutrients", type=float, required=True)
    submit.add_argument("--temperature", type=float, required=True)
    submit.add_argument(
        "--registered-sensors", type=int, nargs="*", default=None,
        help="Sensor ids known to the registry (defaults to the submitting sensor)"
    )

    claim = sub.add_parser("claim", help="Claim the reward for a submission")
    claim.add_argument("farm_id", type=int)
    claim.add_argument("sensor_id", type=int)
    claim.add_argument("submission_time", type=int)

    show = sub.add_parser("show", help="Show ledger counters, or one farm")
    show.add_argument("--farm", type=int, default=None)

    export = sub.add_parser("export", help="Export submissions to Parquet")
    export.add_argument("--output", type=Path, default=None)

    return parser


def _report(outcome: Outcome) -> int:
    if outcome.ok:
        value = outcome.value
        print(json.dumps({"ok": True, "value": value.model_dump() if hasattr(value, "model_dump") else value}))
        return 0
    print(json.dumps({"ok": False, "error": outcome.error.value, "code": outcome.code}))
    return 1


def run(args: argparse.Namespace, app: LedgerApp) -> int:
    """Execute one parsed command against an opened app."""
    service = app.service
    config_store = service.config_store
    caller = args.caller or config_store.admin

    if args.command == "set-oracle":
        outcome = config_store.set_oracle_principal(caller, args.oracle)
    elif args.command == "set-quota":
        outcome = config_store.set_max_submissions_per_farm(caller, args.max_submissions)
    elif args.command == "set-reward":
        outcome = config_store.set_reward_per_submission(caller, args.reward)
    elif args.command == "submit":
        registered = args.registered_sensors if args.registered_sensors is not None else [args.sensor_id]
        metrics = Metrics(
            moisture=args.moisture,
            ph=args.ph,
            nutrients=args.nutrients,
            temperature=args.temperature
        )
        outcome = service.submit(
            caller, args.farm_id, args.sensor_id, args.data_hash, metrics,
            StaticSensorRegistry(registered),
            PlausibilityDataValidator(),
            ThresholdAlertSystem(),
            RunningAnalyticsEngine()
        )
    elif args.command == "claim":
        token_contract = InMemoryTokenContract()
        outcome = service.claim_reward(caller, args.farm_id, args.sensor_id, args.submission_time, token_contract)
    elif args.command == "show":
        summary = {
            "oracle_principal": service.get_oracle_principal(),
            "max_submissions_per_farm": service.get_max_submissions_per_farm(),
            "reward_per_submission": service.get_reward_per_submission(),
            "total_submissions": service.get_total_submissions(),
            "total_rewards_claimed": service.get_total_rewards_claimed(),
        }
        if args.farm is not None:
            history = service.get_submission_history(args.farm)
            summary["farm"] = {
                "farm_id": args.farm,
                "submission_count": service.get_farm_submission_count(args.farm),
                "history": history.model_dump() if history is not None else None,
            }
        print(json.dumps(summary, indent=2))
        return 0
    elif args.command == "export":
        path = app.store.export_parquet(service.ledger, args.output)
        print(json.dumps({"ok": True, "value": str(path)}))
        return 0
    else:
        raise ValueError(f"Unknown command: {args.command}")

    if outcome.ok:
        app.save()
    return _report(outcome)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ledger CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = LedgerSettings.from_yaml(args.config)
    except (FileNotFoundError, ValidationError, LedgerError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.logging.level, settings.logging.log_file)

    try:
        with LedgerApp(settings) as app:
            return run(args, app)
    except LedgerError as e:
        print(f"Ledger operation failed: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
