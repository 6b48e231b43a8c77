from datetime import datetime
import sqlite3
from pathlib import Path
import logging
import threading
from typing import List, Dict, Optional, Any, Union
from focus_timer.models.session import CompletedSessionRecord, StoredSession
from focus_timer.services.errors import DatabaseError

logger = logging.getLogger(__name__)

MIGRATIONS = [
    """
    -- Completed focus sessions
    CREATE TABLE IF NOT EXISTS sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        duration INTEGER NOT NULL CHECK (duration >= 1),
        started_at TIMESTAMP NOT NULL,
        intent_id INTEGER,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_sessions_started_at ON sessions(started_at);
    CREATE INDEX IF NOT EXISTS idx_sessions_intent ON sessions(intent_id);
    """
]

class DatabaseConnectionError(DatabaseError):
    """Exception raised when database connection fails"""
    pass

class QueryError(DatabaseError):
    """Exception raised when a database query fails"""
    pass

class DatabaseManager:
    """SQLite session store.

    One connection is shared across threads behind a lock: completed
    sessions are written from background workers while the CLI reads from
    the main thread.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """Initialize database manager"""
        self.db_path = str(db_path or "focus_timer.db")
        self._lock = threading.Lock()
        self.conn: Optional[sqlite3.Connection] = None
        logger.info(f"Initialized DatabaseManager with db_path: {self.db_path}")
        self.initialize()

    def initialize(self):
        """Initialize database schema"""
        try:
            self.conn = self.get_connection()
            with self._lock:
                for migration in MIGRATIONS:
                    self.conn.executescript(migration)
                self.conn.commit()
            logger.info("Database initialization complete")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise DatabaseError(f"Failed to initialize database: {e}")

    def get_connection(self) -> sqlite3.Connection:
        """Open a connection usable from worker threads"""
        if self.db_path != ":memory:":
            db_path = Path(self.db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Failed to connect to {self.db_path}: {e}")

        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def _require_conn(self) -> sqlite3.Connection:
        if self.conn is None:
            raise DatabaseConnectionError("Database connection is closed")
        return self.conn

    def create_session(self, record: CompletedSessionRecord) -> int:
        """Store a completed focus session and return its id"""
        if not isinstance(record, CompletedSessionRecord):
            raise DatabaseError(f"Expected CompletedSessionRecord, got {type(record).__name__}")

        conn = self._require_conn()
        try:
            with self._lock:
                cursor = conn.execute("""
                    INSERT INTO sessions (duration, started_at, intent_id)
                    VALUES (?, ?, ?)
                """, [record.duration_minutes, record.started_at.isoformat(), record.intent_id])
                conn.commit()
                session_id = cursor.lastrowid
            logger.debug(f"Stored session {session_id} ({record.duration_minutes} min)")
            return session_id
        except sqlite3.Error as e:
            with self._lock:
                conn.rollback()
            logger.error(f"Failed to store session: {e}")
            raise QueryError(f"Failed to store session: {e}")

    def get_session(self, session_id: int) -> Optional[StoredSession]:
        """Fetch one session by id"""
        rows = self._query("SELECT * FROM sessions WHERE id = ?", [session_id])
        return self._to_session(rows[0]) if rows else None

    def get_sessions(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        intent_id: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[StoredSession]:
        """List sessions, newest first, optionally filtered by start time range and intent"""
        clauses = []
        params: List[Any] = []
        if start is not None:
            clauses.append("started_at >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("started_at < ?")
            params.append(end.isoformat())
        if intent_id is not None:
            clauses.append("intent_id = ?")
            params.append(intent_id)

        query = "SELECT * FROM sessions"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY started_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        return [self._to_session(row) for row in self._query(query, params)]

    def get_stats(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Aggregate focus time, overall and per intent"""
        clauses = []
        params: List[Any] = []
        if start is not None:
            clauses.append("started_at >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("started_at < ?")
            params.append(end.isoformat())
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""

        totals = self._query(f"""
            SELECT COUNT(*) AS session_count, COALESCE(SUM(duration), 0) AS total_minutes
            FROM sessions{where}
        """, params)[0]
        by_intent = self._query(f"""
            SELECT intent_id, COUNT(*) AS session_count, SUM(duration) AS total_minutes
            FROM sessions{where}
            GROUP BY intent_id
            ORDER BY total_minutes DESC
        """, params)

        session_count = totals["session_count"]
        total_minutes = totals["total_minutes"]
        return {
            "session_count": session_count,
            "total_minutes": total_minutes,
            "average_minutes": round(total_minutes / session_count, 1) if session_count else 0.0,
            "by_intent": [
                {
                    "intent_id": row["intent_id"],
                    "session_count": row["session_count"],
                    "total_minutes": row["total_minutes"]
                }
                for row in by_intent
            ]
        }

    def _query(self, query: str, params: List[Any]) -> List[sqlite3.Row]:
        try:
            conn = self._require_conn()
            with self._lock:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise QueryError(f"Query failed: {e}")

    @staticmethod
    def _to_session(row: sqlite3.Row) -> StoredSession:
        return StoredSession(
            id=row["id"],
            duration_minutes=row["duration"],
            started_at=datetime.fromisoformat(row["started_at"]),
            intent_id=row["intent_id"],
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None
        )

    def verify_database_integrity(self) -> bool:
        """Run integrity check on the database"""
        try:
            conn = self._require_conn()
            with self._lock:
                result = conn.execute("PRAGMA integrity_check").fetchone()[0]
                if result != "ok":
                    logger.error(f"Database integrity check failed: {result}")
                    return False

                if conn.execute("PRAGMA foreign_key_check").fetchone() is not None:
                    logger.error("Foreign key violations found")
                    return False

            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to verify database integrity: {e}")
            raise DatabaseError(f"Integrity check failed: {e}")

    def close(self):
        """Close the database connection"""
        if self.conn:
            try:
                with self._lock:
                    self.conn.close()
                logger.info("Database connection closed")
            except Exception as e:
                logger.error(f"Error closing database connection: {e}")
            finally:
                self.conn = None
