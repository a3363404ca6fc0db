"""
Repository for health record database operations.

All SQL for health records is encapsulated here - no SQL in service or API
layers. Read failures surface as UpstreamFetchFailedError so the analytics
engine can abort cleanly without knowing about SQLite.
"""
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

from health_analytics.core.datetime_utils import format_iso, parse_datetime
from health_analytics.core.exceptions import UpstreamFetchFailedError
from health_analytics.models import HealthRecord
from health_analytics.repositories.base import Database
from health_analytics.services.time_window import TimeWindow

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, timestamp, systolic, diastolic, blood_sugar, "
    "weight, height_cm, heart_rate, activity"
)


def _row_to_record(row: Sequence) -> HealthRecord:
    """Build a HealthRecord from a row selected with _COLUMNS."""
    return HealthRecord(
        id=row[0],
        user_id=row[1],
        timestamp=parse_datetime(row[2]),
        systolic=row[3],
        diastolic=row[4],
        blood_sugar=row[5],
        weight=row[6],
        height_cm=row[7],
        heart_rate=row[8],
        activity=row[9],
    )


class HealthRecordRepository:
    """
    Repository for health record reads and writes.

    Instantiate via health_analytics.core.dependencies.get_health_record_repository().
    """

    def __init__(self, db: Database):
        """
        Initialize the health record repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def _query(self, operation: str, sql: str, params: Sequence) -> List[HealthRecord]:
        """Run a SELECT and map rows, wrapping storage failures."""
        try:
            conn = self._db.get_connection()
            try:
                rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(
                "Health record query failed",
                extra={"operation": operation, "error": str(e)}
            )
            raise UpstreamFetchFailedError(operation=operation) from e
        return [_row_to_record(row) for row in rows]

    def save(
        self,
        user_id: int,
        timestamp: datetime,
        systolic: Optional[int] = None,
        diastolic: Optional[int] = None,
        blood_sugar: Optional[int] = None,
        weight: Optional[float] = None,
        height_cm: Optional[int] = None,
        heart_rate: Optional[int] = None,
        activity: Optional[str] = None,
    ) -> HealthRecord:
        """
        Insert a health record and return it with its assigned id.

        Args:
            user_id: Owner of the record.
            timestamp: When the measurements were taken.
            systolic..activity: Optional measurements.

        Returns:
            The stored HealthRecord.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO health_records
                (user_id, timestamp, systolic, diastolic, blood_sugar,
                 weight, height_cm, heart_rate, activity)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, format_iso(timestamp), systolic, diastolic, blood_sugar,
                 weight, height_cm, heart_rate, activity),
            )
            record_id = cursor.lastrowid
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM health_records WHERE id = ?", (record_id,)
            ).fetchone()
            conn.commit()
        finally:
            conn.close()
        return _row_to_record(row)

    def fetch_records(self, user_id: int, start: datetime, end: datetime) -> List[HealthRecord]:
        """
        Records with start <= timestamp <= end, oldest first.

        Args:
            user_id: Owner of the records.
            start: Inclusive lower bound (any timezone).
            end: Inclusive upper bound (any timezone).
        """
        return self._query(
            "fetch_records",
            f"""
            SELECT {_COLUMNS} FROM health_records
            WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp ASC, id ASC
            """,
            (user_id, format_iso(start), format_iso(end)),
        )

    def fetch_records_for_comparison(self, user_id: int, window: TimeWindow) -> List[HealthRecord]:
        """Records inside the prior equivalent window of ``window`` (end-exclusive)."""
        prior = window.previous()
        return self._query(
            "fetch_records_for_comparison",
            f"""
            SELECT {_COLUMNS} FROM health_records
            WHERE user_id = ? AND timestamp >= ? AND timestamp < ?
            ORDER BY timestamp ASC, id ASC
            """,
            (user_id, format_iso(prior.start), format_iso(prior.end)),
        )

    def fetch_latest_record(self, user_id: int) -> Optional[HealthRecord]:
        """Most recent record for ``user_id`` or None."""
        records = self._query(
            "fetch_latest_record",
            f"""
            SELECT {_COLUMNS} FROM health_records
            WHERE user_id = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT 1
            """,
            (user_id,),
        )
        return records[0] if records else None
