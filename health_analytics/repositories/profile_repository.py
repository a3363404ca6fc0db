"""
Repository for subject profiles.

A profile combines the stored name and birth date with the height from the
user's most recent record that carries one.
"""
import logging
import sqlite3
from datetime import date
from typing import Optional

from health_analytics.core.datetime_utils import parse_date
from health_analytics.core.exceptions import UpstreamFetchFailedError
from health_analytics.models import SubjectProfile
from health_analytics.repositories.base import Database

logger = logging.getLogger(__name__)


class SubjectProfileRepository:
    """Repository for subject profile reads and writes."""

    def __init__(self, db: Database):
        self._db = db

    def create(self, name: str, birth_date: Optional[date] = None) -> int:
        """Insert a subject and return its id."""
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO subjects (name, birth_date) VALUES (?, ?)",
                (name, birth_date.isoformat() if birth_date else None),
            )
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def fetch_subject_profile(self, user_id: int) -> Optional[SubjectProfile]:
        """
        Load the profile for ``user_id``.

        Returns:
            The SubjectProfile, or None if no such subject exists.

        Raises:
            UpstreamFetchFailedError: If the database cannot be read.
        """
        try:
            conn = self._db.get_connection()
            try:
                row = conn.execute(
                    "SELECT name, birth_date FROM subjects WHERE id = ?", (user_id,)
                ).fetchone()
                height_row = conn.execute(
                    """
                    SELECT height_cm FROM health_records
                    WHERE user_id = ? AND height_cm IS NOT NULL
                    ORDER BY timestamp DESC, id DESC
                    LIMIT 1
                    """,
                    (user_id,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Profile query failed", extra={"user_id": user_id, "error": str(e)})
            raise UpstreamFetchFailedError(operation="fetch_subject_profile") from e

        if row is None:
            return None

        birth_date = None
        if row[1]:
            try:
                birth_date = parse_date(row[1])
            except ValueError:
                logger.warning("Ignoring malformed birth date", extra={"user_id": user_id, "value": row[1]})

        return SubjectProfile(
            name=row[0],
            birth_date=birth_date,
            height_cm=height_row[0] if height_row else None,
        )
