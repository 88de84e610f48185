"""Patrol persistence layer."""

import json
import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import StoreError

# Document field -> column name
FIELD_COLUMNS = {
    "id": "id",
    "rangerId": "ranger_id",
    "route": "route",
    "status": "status",
    "patrolDate": "patrol_date",
    "startTime": "start_time",
    "estimatedDuration": "estimated_duration",
    "endTime": "end_time",
    "actualDuration": "actual_duration",
    "priority": "priority",
    "objectives": "objectives",
    "equipment": "equipment",
    "attendees": "attendees",
    "notes": "notes",
    "findings": "findings",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

LIST_FIELDS = frozenset({"objectives", "equipment", "attendees"})


class PatrolStore(ABC):
    """
    Document store holding patrol records.

    Documents are plain dicts keyed by the camelCase patrol field names.
    Filters map a field to a scalar (equality) or to a list, tuple or set
    (membership). Implementations raise StoreError on any backend failure.
    """

    @abstractmethod
    def insert(self, document: dict[str, Any]) -> str:
        """Insert a document, assigning an id when it has none. Returns the id."""

    @abstractmethod
    def get(self, patrol_id: str) -> Optional[dict[str, Any]]:
        """Get a document by id."""

    @abstractmethod
    def find(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Find documents matching all filters."""

    @abstractmethod
    def update(self, patrol_id: str, changes: dict[str, Any],
               expected: Optional[dict[str, Any]] = None) -> bool:
        """
        Apply field changes to a document.

        When `expected` is given the write only happens if the stored document
        still matches those filters.

        Returns:
            False if the document does not exist or no longer matches `expected`
        """

    @abstractmethod
    def delete(self, patrol_id: str) -> bool:
        """Delete a document. Returns False if it does not exist."""

    @abstractmethod
    def count_by(self, field: str, filters: Optional[dict[str, Any]] = None) -> dict[Any, int]:
        """Count matching documents grouped by a field's value."""


class SQLitePatrolStore(PatrolStore):
    """SQLite-based patrol store."""

    def __init__(self, db_path: str = "patrols.db"):
        self.db_path = Path(db_path)
        self.logger = structlog.get_logger("patrol.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection("init") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS patrols (
                    id TEXT PRIMARY KEY,
                    ranger_id TEXT NOT NULL,
                    route TEXT NOT NULL,
                    status TEXT NOT NULL,
                    patrol_date TEXT,
                    start_time TEXT,
                    estimated_duration REAL,
                    end_time TEXT,
                    actual_duration REAL,
                    priority TEXT,
                    objectives TEXT,
                    equipment TEXT,
                    attendees TEXT,
                    notes TEXT,
                    findings TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_patrols_ranger_id ON patrols(ranger_id)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_patrols_status ON patrols(status)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_patrols_patrol_date ON patrols(patrol_date)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self, operation: str, target: Optional[str] = None):
        """Get database connection, translating sqlite errors into StoreError."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", operation=operation, target=target, error=str(e))
            raise StoreError(
                f"Patrol store {operation} failed: {e}",
                operation=operation,
                target=target
            )
        finally:
            if conn:
                conn.close()

    def _column(self, field: str) -> str:
        try:
            return FIELD_COLUMNS[field]
        except KeyError:
            raise StoreError(f"Unknown patrol field: {field}", operation="query",
                             target=field, retryable=False)

    def _encode(self, field: str, value: Any) -> Any:
        if field in LIST_FIELDS:
            return json.dumps(list(value or []))
        return value

    def _where(self, filters: Optional[dict[str, Any]]) -> tuple[str, list[Any]]:
        """Build a WHERE clause from equality and membership filters."""
        if not filters:
            return "", []

        clauses = []
        params: list[Any] = []
        for field, value in filters.items():
            column = self._column(field)
            if isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    clauses.append("0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"{column} IN ({placeholders})")
                params.extend(values)
            elif value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(value)

        return " WHERE " + " AND ".join(clauses), params

    def insert(self, document: dict[str, Any]) -> str:
        """
        Insert a patrol document.

        Args:
            document: Patrol document; id and createdAt are filled in when missing

        Returns:
            Patrol id
        """
        record = dict(document)
        record.setdefault("id", None)
        if not record["id"]:
            record["id"] = uuid.uuid4().hex
        if not record.get("createdAt"):
            record["createdAt"] = datetime.now(timezone.utc).isoformat()

        fields = [f for f in FIELD_COLUMNS if f in record]
        columns = ", ".join(FIELD_COLUMNS[f] for f in fields)
        placeholders = ", ".join("?" for _ in fields)
        values = [self._encode(f, record[f]) for f in fields]

        with self._lock:
            with self._get_connection("insert", record["id"]) as conn:
                conn.execute(
                    f"INSERT INTO patrols ({columns}) VALUES ({placeholders})",
                    values
                )
                conn.commit()

        self.logger.info(
            "Patrol stored",
            patrol_id=record["id"],
            ranger_id=record.get("rangerId"),
            status=record.get("status")
        )
        return record["id"]

    def get(self, patrol_id: str) -> Optional[dict[str, Any]]:
        """Get a patrol by id."""
        with self._get_connection("get", patrol_id) as conn:
            row = conn.execute(
                "SELECT * FROM patrols WHERE id = ?", (patrol_id,)
            ).fetchone()

        if row:
            return self._row_to_document(row)
        return None

    def find(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Find patrols matching all filters."""
        where, params = self._where(filters)
        with self._get_connection("find") as conn:
            rows = conn.execute(f"SELECT * FROM patrols{where}", params).fetchall()

        return [self._row_to_document(row) for row in rows]

    def update(self, patrol_id: str, changes: dict[str, Any],
               expected: Optional[dict[str, Any]] = None) -> bool:
        """Apply field changes to a patrol, optionally only if it still matches `expected`."""
        if not changes:
            return self.get(patrol_id) is not None

        assignments = ", ".join(f"{self._column(f)} = ?" for f in changes)
        values = [self._encode(f, v) for f, v in changes.items()]
        where, params = self._where({**(expected or {}), "id": patrol_id})

        with self._lock:
            with self._get_connection("update", patrol_id) as conn:
                cursor = conn.execute(
                    f"UPDATE patrols SET {assignments}{where}",
                    [*values, *params]
                )
                conn.commit()
                return cursor.rowcount > 0

    def delete(self, patrol_id: str) -> bool:
        """Delete a patrol."""
        with self._lock:
            with self._get_connection("delete", patrol_id) as conn:
                cursor = conn.execute("DELETE FROM patrols WHERE id = ?", (patrol_id,))
                conn.commit()
                deleted = cursor.rowcount > 0

        if deleted:
            self.logger.info("Patrol deleted", patrol_id=patrol_id)
        return deleted

    def count_by(self, field: str, filters: Optional[dict[str, Any]] = None) -> dict[Any, int]:
        """Count patrols grouped by a field."""
        column = self._column(field)
        where, params = self._where(filters)
        with self._get_connection("count") as conn:
            rows = conn.execute(
                f"SELECT {column}, COUNT(*) FROM patrols{where} GROUP BY {column}",
                params
            ).fetchall()

        return {row[0]: row[1] for row in rows}

    def _row_to_document(self, row: sqlite3.Row) -> dict[str, Any]:
        """Convert database row to a patrol document."""
        document = {}
        for field, column in FIELD_COLUMNS.items():
            value = row[column]
            if field in LIST_FIELDS:
                value = json.loads(value) if value else []
            document[field] = value
        return document
