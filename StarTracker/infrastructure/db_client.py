"""
PostgreSQL database client for storing and retrieving star history.
"""

import logging
import os
from typing import Optional
import psycopg2
from psycopg2.extras import execute_values
from psycopg2.extensions import connection

from core.entities import History, Snapshot, SnapshotRepoEntry

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    PostgreSQL history store. The whole history is rewritten on every save,
    which keeps the stored window identical to the trimmed in-memory one.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "star_tracker",
        user: str = "github",
        password: str = "github",
    ):
        """
        Initialize database client.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
        """
        # Allow environment variable overrides
        self.host = os.environ.get("DB_HOST", host)
        self.port = int(os.environ.get("DB_PORT", port))
        self.database = os.environ.get("DB_NAME", database)
        self.user = os.environ.get("DB_USER", user)
        self.password = os.environ.get("DB_PASSWORD", password)

        self._conn: Optional[connection] = None

    def connect(self):
        """Establish database connection."""
        if self._conn is None or self._conn.closed:
            logger.info(
                f"Connecting to database {self.database} at {self.host}:{self.port}"
            )
            self._conn = psycopg2.connect(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
            )
            logger.info("Database connection established")

    def close(self):
        """Close database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.info("Database connection closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def create_schema(self):
        """
        Create database schema if it doesn't exist.
        Includes tables for snapshots, their repositories and tracker state.
        """
        self.connect()

        with self._conn.cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    id SERIAL PRIMARY KEY,
                    taken_at TEXT NOT NULL,
                    total_stars INTEGER NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS snapshot_repos (
                    snapshot_id INTEGER NOT NULL
                        REFERENCES snapshots(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    full_name TEXT NOT NULL,
                    name TEXT,
                    owner TEXT,
                    stars INTEGER NOT NULL,
                    PRIMARY KEY (snapshot_id, full_name)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_snapshot_repos_full_name
                ON snapshot_repos(full_name)
            """)

            # Single row table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tracker_state (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    stars_at_last_notification INTEGER
                )
            """)

            self._conn.commit()
            logger.info("Database schema created successfully")

    def read_history(self, limit: Optional[int] = None) -> History:
        """
        Load the stored history, oldest snapshot first.

        Args:
            limit: Only load the most recent snapshots

        Returns:
            History, empty if nothing has been stored yet
        """
        self.connect()

        with self._conn.cursor() as cursor:
            cursor.execute(
                """
                SELECT id, taken_at, total_stars FROM (
                    SELECT id, taken_at, total_stars
                    FROM snapshots
                    ORDER BY id DESC
                    LIMIT %s
                ) recent
                ORDER BY id ASC
                """,
                (limit,),
            )
            snapshot_rows = cursor.fetchall()

            repos_by_snapshot: dict[int, list[SnapshotRepoEntry]] = {
                row[0]: [] for row in snapshot_rows
            }
            if snapshot_rows:
                cursor.execute(
                    """
                    SELECT snapshot_id, full_name, name, owner, stars
                    FROM snapshot_repos
                    WHERE snapshot_id = ANY(%s)
                    ORDER BY snapshot_id, position
                    """,
                    (list(repos_by_snapshot),),
                )
                for snapshot_id, full_name, name, owner, stars in cursor.fetchall():
                    repos_by_snapshot[snapshot_id].append(
                        SnapshotRepoEntry(
                            full_name=full_name, name=name, owner=owner, stars=stars
                        )
                    )

            cursor.execute(
                "SELECT stars_at_last_notification FROM tracker_state WHERE id = 1"
            )
            state_row = cursor.fetchone()

        snapshots = tuple(
            Snapshot(
                timestamp=taken_at,
                total_stars=total_stars,
                repos=tuple(repos_by_snapshot[snapshot_id]),
            )
            for snapshot_id, taken_at, total_stars in snapshot_rows
        )

        logger.info(f"Loaded {len(snapshots)} snapshots from database")
        return History(
            snapshots=snapshots,
            stars_at_last_notification=state_row[0] if state_row else None,
        )

    def write_history(self, history: History):
        """
        Replace the stored history in a single transaction.

        Args:
            history: History to persist
        """
        self.connect()

        try:
            with self._conn.cursor() as cursor:
                cursor.execute("DELETE FROM snapshots")

                for snapshot in history.snapshots:
                    cursor.execute(
                        """
                        INSERT INTO snapshots (taken_at, total_stars)
                        VALUES (%s, %s)
                        RETURNING id
                        """,
                        (snapshot.timestamp, snapshot.total_stars),
                    )
                    snapshot_id = cursor.fetchone()[0]

                    if snapshot.repos:
                        execute_values(
                            cursor,
                            """
                            INSERT INTO snapshot_repos
                                (snapshot_id, position, full_name, name, owner, stars)
                            VALUES %s
                            """,
                            [
                                (
                                    snapshot_id,
                                    position,
                                    repo.full_name,
                                    repo.name,
                                    repo.owner,
                                    repo.stars,
                                )
                                for position, repo in enumerate(snapshot.repos)
                            ],
                        )

                cursor.execute(
                    """
                    INSERT INTO tracker_state (id, stars_at_last_notification)
                    VALUES (1, %s)
                    ON CONFLICT (id)
                    DO UPDATE SET
                        stars_at_last_notification = EXCLUDED.stars_at_last_notification
                    """,
                    (history.stars_at_last_notification,),
                )

            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

        logger.info(f"Saved {len(history.snapshots)} snapshots to database")
