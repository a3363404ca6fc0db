"""
Base database connection and initialization.

This module handles database connection management and schema initialization.
Optimized for SQLite concurrency with WAL mode and busy_timeout.

Database instantiation should go through the DI layer
(health_analytics.core.dependencies.get_database) so tests can swap it.
"""
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from health_analytics.core.config import settings
from health_analytics.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database connection manager with concurrency optimizations.

    Features:
    - WAL mode for concurrent readers during writes
    - Busy timeout to handle lock contention gracefully
    - Foreign key constraints enabled on every connection
    - Timestamps stored as ISO 8601 UTC strings

    Usage:
        db = Database(db_path="/tmp/test.db")
        with closing(db.get_connection()) as conn:
            ...
    """

    def __init__(self, db_path: Optional[str] = None, busy_timeout: Optional[int] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to the configured path.
            busy_timeout: SQLite busy timeout in milliseconds. Defaults to config value.
        """
        self.db_path = db_path or settings.database_path
        self.busy_timeout = (
            busy_timeout if busy_timeout is not None else settings.health_analytics_db_busy_timeout
        )

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._init_db()
        except sqlite3.Error as e:
            logger.error("Database initialisation failed", extra={"db_path": self.db_path, "error": str(e)})
            raise DatabaseError(operation="schema initialisation", db_path=self.db_path) from e

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """Apply busy timeout and foreign key pragmas to a connection."""
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout}")
        conn.execute("PRAGMA foreign_keys = ON")

    def _init_db(self) -> None:
        """Create tables and indexes if missing and enable WAL mode."""
        conn = sqlite3.connect(self.db_path)
        try:
            self._configure_connection(conn)
            cursor = conn.cursor()

            cursor.execute("PRAGMA journal_mode = WAL")
            result = cursor.fetchone()
            if not result or result[0].lower() != "wal":
                logger.warning(f"Failed to enable WAL mode, current mode: {result}")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS subjects (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    birth_date TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Every metric column is nullable: a check-in records whatever was measured.
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS health_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    timestamp TEXT NOT NULL,
                    systolic INTEGER,
                    diastolic INTEGER,
                    blood_sugar INTEGER,
                    weight REAL,
                    height_cm INTEGER,
                    heart_rate INTEGER,
                    activity TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_health_records_user_timestamp
                ON health_records (user_id, timestamp)
            """)
            conn.commit()
        finally:
            conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with concurrency settings applied."""
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        return conn
