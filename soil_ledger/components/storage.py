"""
Durable storage for ledger state.

Persists the logical state (submissions keyed by farm/sensor/time, per-farm
history and counts, governance config and the two global counters) to DuckDB,
and exports accepted submissions to compressed Parquet for downstream use.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import duckdb
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from soil_ledger.components.config_store import ConfigStore
from soil_ledger.components.ledger import SubmissionLedger
from soil_ledger.components.rewards import RewardLedger
from soil_ledger.config import LedgerSettings
from soil_ledger.models import Metrics, Submission, SubmissionHistory, SubmissionKey
from soil_ledger.utils import get_logger, StorageError


SUBMISSION_COLUMNS = [
    "farm_id", "sensor_id", "submission_time", "data_hash",
    "moisture", "ph", "nutrients", "temperature",
    "submitter", "validated", "reward_claimed"
]

SCHEMA_DDL = [
    """
    CREATE TABLE IF NOT EXISTS submissions (
        farm_id BIGINT NOT NULL,
        sensor_id BIGINT NOT NULL,
        submission_time BIGINT NOT NULL,
        data_hash VARCHAR NOT NULL,
        moisture DOUBLE NOT NULL,
        ph DOUBLE NOT NULL,
        nutrients DOUBLE NOT NULL,
        temperature DOUBLE NOT NULL,
        submitter VARCHAR NOT NULL,
        validated BOOLEAN NOT NULL,
        reward_claimed BOOLEAN NOT NULL,
        PRIMARY KEY (farm_id, sensor_id, submission_time)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS submission_history (
        farm_id BIGINT PRIMARY KEY,
        submission_count BIGINT NOT NULL,
        last_submission_time BIGINT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS farm_counts (
        farm_id BIGINT PRIMARY KEY,
        submission_count BIGINT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_config (
        oracle_principal VARCHAR,
        max_submissions_per_farm BIGINT NOT NULL,
        reward_per_submission BIGINT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_counters (
        total_submissions BIGINT NOT NULL,
        total_rewards_claimed BIGINT NOT NULL
    )
    """
]

TABLES = ["submissions", "submission_history", "farm_counts", "ledger_config", "ledger_counters"]


class DuckDBLedgerStore:
    """Saves and restores ledger state in a DuckDB database."""

    def __init__(self, settings: LedgerSettings):
        """
        Open the database named in the storage settings.

        Args:
            settings: Ledger settings; storage.database_path may be ':memory:'
        """
        self.logger = get_logger(__name__)
        self.database_path = settings.storage.database_path
        self.export_dir = Path(settings.storage.export_dir)

        self.stats = {
            "saves": 0,
            "loads": 0,
            "submissions_written": 0,
            "submissions_loaded": 0,
            "exports": 0
        }

        try:
            if self.database_path != ":memory:":
                Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = duckdb.connect(self.database_path)
        except duckdb.Error as e:
            raise StorageError(f"Could not open ledger database {self.database_path}: {str(e)}") from e

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "DuckDBLedgerStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def save(self, config_store: ConfigStore, ledger: SubmissionLedger, rewards: RewardLedger) -> None:
        """
        Replace the persisted state with the current in-memory state.

        The whole write runs in one transaction; on failure the previous
        contents are kept.

        Raises:
            StorageError: If the write fails
        """
        # One consistent capture; submits and claims hold the same lock
        with config_store.lock:
            submissions = self._submissions_frame(ledger)
            history = pd.DataFrame(
                [
                    {"farm_id": farm_id, "submission_count": h.count, "last_submission_time": h.last_submission_time}
                    for farm_id, h in ledger.farm_histories().items()
                ],
                columns=["farm_id", "submission_count", "last_submission_time"]
            )
            counts = pd.DataFrame(
                [{"farm_id": farm_id, "submission_count": count} for farm_id, count in ledger.farm_counts().items()],
                columns=["farm_id", "submission_count"]
            )
            config = config_store.snapshot()
            totals = [ledger.total_submissions, rewards.total_rewards_claimed]

        in_transaction = False
        try:
            self.conn.execute("BEGIN TRANSACTION")
            in_transaction = True

            for ddl in SCHEMA_DDL:
                self.conn.execute(ddl)
            for table in TABLES:
                self.conn.execute(f"DELETE FROM {table}")

            self._insert_frame("submissions", submissions, SUBMISSION_COLUMNS)
            self._insert_frame("submission_history", history, ["farm_id", "submission_count", "last_submission_time"])
            self._insert_frame("farm_counts", counts, ["farm_id", "submission_count"])

            self.conn.execute(
                "INSERT INTO ledger_config VALUES (?, ?, ?)",
                [config["oracle_principal"], config["max_submissions_per_farm"], config["reward_per_submission"]]
            )
            self.conn.execute(
                "INSERT INTO ledger_counters VALUES (?, ?)",
                totals
            )

            self.conn.execute("COMMIT")
            in_transaction = False
        except duckdb.Error as e:
            if in_transaction:
                self.conn.execute("ROLLBACK")
            self.logger.error(f"Saving ledger state failed: {str(e)}")
            raise StorageError(f"Saving ledger state failed: {str(e)}") from e

        self.stats["saves"] += 1
        self.stats["submissions_written"] = len(submissions)
        self.logger.info(f"Saved {len(submissions)} submissions to {self.database_path}")

    def load(self, config_store: ConfigStore, ledger: SubmissionLedger, rewards: RewardLedger) -> bool:
        """
        Restore state saved by a previous save().

        Returns:
            True if state was restored, False if the database holds no saved state

        Raises:
            StorageError: If the saved state cannot be read
        """
        try:
            existing = {
                row[0] for row in self.conn.execute(
                    "SELECT table_name FROM information_schema.tables"
                ).fetchall()
            }
            if not set(TABLES).issubset(existing):
                self.logger.info(f"No saved ledger state in {self.database_path}")
                return False

            counters = self.conn.execute(
                "SELECT total_submissions, total_rewards_claimed FROM ledger_counters"
            ).fetchone()
            config = self.conn.execute(
                "SELECT oracle_principal, max_submissions_per_farm, reward_per_submission FROM ledger_config"
            ).fetchone()
            if counters is None or config is None:
                return False

            submissions_df = self.conn.execute(
                f"SELECT {', '.join(SUBMISSION_COLUMNS)} FROM submissions "
                "ORDER BY submission_time, farm_id, sensor_id"
            ).df()
            history_df = self.conn.execute(
                "SELECT farm_id, submission_count, last_submission_time FROM submission_history"
            ).df()
            counts_df = self.conn.execute("SELECT farm_id, submission_count FROM farm_counts").df()
        except duckdb.Error as e:
            self.logger.error(f"Loading ledger state failed: {str(e)}")
            raise StorageError(f"Loading ledger state failed: {str(e)}") from e

        submissions = {}
        for row in submissions_df.itertuples(index=False):
            key = SubmissionKey(
                farm_id=int(row.farm_id),
                sensor_id=int(row.sensor_id),
                submission_time=int(row.submission_time)
            )
            submissions[key] = Submission(
                data_hash=row.data_hash,
                metrics=Metrics(
                    moisture=float(row.moisture),
                    ph=float(row.ph),
                    nutrients=float(row.nutrients),
                    temperature=float(row.temperature)
                ),
                submitter=row.submitter,
                validated=bool(row.validated),
                reward_claimed=bool(row.reward_claimed)
            )

        history = {
            int(row.farm_id): SubmissionHistory(
                count=int(row.submission_count),
                last_submission_time=int(row.last_submission_time)
            )
            for row in history_df.itertuples(index=False)
        }
        counts = {int(row.farm_id): int(row.submission_count) for row in counts_df.itertuples(index=False)}

        with config_store.lock:
            ledger.restore(submissions, history, counts, int(counters[0]))
            rewards.restore(int(counters[1]))
            config_store.restore(config[0], int(config[1]), int(config[2]))

        self.stats["loads"] += 1
        self.stats["submissions_loaded"] = len(submissions)
        self.logger.info(f"Loaded {len(submissions)} submissions from {self.database_path}")
        return True

    def export_parquet(self, ledger: SubmissionLedger, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write all accepted submissions to a zstd-compressed Parquet file.

        Args:
            ledger: Ledger to export
            path: Output file; defaults to submissions.parquet in the export directory

        Returns:
            Path of the written file
        """
        output = Path(path) if path is not None else self.export_dir / "submissions.parquet"
        data = self._submissions_frame(ledger)

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            table = pa.Table.from_pandas(data, preserve_index=False)
            pq.write_table(table, output, compression="zstd")
        except (OSError, pa.ArrowException) as e:
            self.logger.error(f"Parquet export failed: {str(e)}")
            raise StorageError(f"Parquet export to {output} failed: {str(e)}") from e

        self.stats["exports"] += 1
        self.logger.info(f"Exported {len(data)} submissions to {output}")
        return output

    @staticmethod
    def _submissions_frame(ledger: SubmissionLedger) -> pd.DataFrame:
        rows: List[Dict[str, Any]] = []
        for key, submission in ledger.items():
            rows.append({
                "farm_id": key.farm_id,
                "sensor_id": key.sensor_id,
                "submission_time": key.submission_time,
                "data_hash": submission.data_hash,
                **submission.metrics.model_dump(),
                "submitter": submission.submitter,
                "validated": submission.validated,
                "reward_claimed": submission.reward_claimed
            })

        frame = pd.DataFrame(rows, columns=SUBMISSION_COLUMNS)
        return frame.astype({
            "farm_id": "int64",
            "sensor_id": "int64",
            "submission_time": "int64",
            "moisture": "float64",
            "ph": "float64",
            "nutrients": "float64",
            "temperature": "float64",
            "validated": "bool",
            "reward_claimed": "bool"
        })

    def _insert_frame(self, table: str, frame: pd.DataFrame, columns: List[str]) -> None:
        if frame.empty:
            return
        view = f"{table}_frame"
        self.conn.register(view, frame)
        try:
            self.conn.execute(f"INSERT INTO {table} SELECT {', '.join(columns)} FROM {view}")
        finally:
            self.conn.unregister(view)
