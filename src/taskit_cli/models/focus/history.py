"""Jornada history tracking with SQLite storage."""

import json
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Literal

JornadaStatus = Literal["completed", "stopped"]

MAX_RECENT_LIMIT = 100


def _normalize_timestamp(value: str | datetime) -> str:
    """Store every timestamp as second-precision UTC ISO 8601."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(UTC).isoformat(timespec="seconds")


def _started_between(
    since: str | datetime | None, until: str | datetime | None
) -> tuple[str, list[Any]]:
    """WHERE clause and parameters for an inclusive started_at range."""
    clauses = []
    params: list[Any] = []
    if since is not None:
        clauses.append("started_at >= ?")
        params.append(_normalize_timestamp(since))
    if until is not None:
        clauses.append("started_at <= ?")
        params.append(_normalize_timestamp(until))
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def start_of_week(now: datetime) -> datetime:
    """Monday 00:00 UTC of the week containing ``now``."""
    now = now.astimezone(UTC)
    monday = now - timedelta(days=now.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class JornadaRecord:
    """Outcome of one jornada."""

    started_at: str
    completed_at: str | None
    total_minutes: int
    focus_minutes: int
    sessions_planned: int
    sessions_completed: int
    task_ids: list[str] = field(default_factory=list)
    status: JornadaStatus = "completed"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "totalMinutes": self.total_minutes,
            "focusMinutes": self.focus_minutes,
            "sessionsPlanned": self.sessions_planned,
            "sessionsCompleted": self.sessions_completed,
            "taskIds": list(self.task_ids),
            "status": self.status,
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "JornadaRecord":
        return cls(
            id=row["id"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            total_minutes=row["total_minutes"],
            focus_minutes=row["focus_minutes"],
            sessions_planned=row["sessions_planned"],
            sessions_completed=row["sessions_completed"],
            task_ids=json.loads(row["task_ids"] or "[]"),
            status=row["status"],
        )


class JornadaHistory:
    """Manages jornada history in a SQLite database."""

    def __init__(self, db_path: Path | None = None):
        if db_path is None:
            from platformdirs import user_data_dir

            db_path = Path(user_data_dir("taskit_cli")) / "focus_history.db"

        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS jornadas (
                    id TEXT PRIMARY KEY,
                    started_at TEXT NOT NULL,
                    completed_at TEXT,
                    total_minutes INTEGER NOT NULL,
                    focus_minutes INTEGER NOT NULL,
                    sessions_planned INTEGER NOT NULL,
                    sessions_completed INTEGER NOT NULL,
                    task_ids TEXT NOT NULL DEFAULT '[]',
                    status TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_jornadas_started ON jornadas(started_at)"
            )
            conn.commit()

    def log_jornada(self, record: JornadaRecord) -> None:
        """Insert a finished or stopped jornada."""
        completed_at = (
            _normalize_timestamp(record.completed_at) if record.completed_at else None
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO jornadas (
                    id, started_at, completed_at, total_minutes, focus_minutes,
                    sessions_planned, sessions_completed, task_ids, status
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    _normalize_timestamp(record.started_at),
                    completed_at,
                    record.total_minutes,
                    record.focus_minutes,
                    record.sessions_planned,
                    record.sessions_completed,
                    json.dumps(record.task_ids),
                    record.status,
                ),
            )
            conn.commit()

    def get_recent(
        self,
        limit: int = 20,
        since: str | datetime | None = None,
        until: str | datetime | None = None,
    ) -> list[JornadaRecord]:
        """
        Get jornadas newest first.

        Args:
            limit: Maximum number of records, clamped to 1..100
            since: Only jornadas started at or after this time
            until: Only jornadas started at or before this time
        """
        limit = min(MAX_RECENT_LIMIT, max(1, limit))
        where, params = _started_between(since, until)
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT * FROM jornadas {where} ORDER BY started_at DESC LIMIT ?",
                (*params, limit),
            )
            return [JornadaRecord.from_row(row) for row in cursor.fetchall()]

    def get_stats(
        self,
        now: datetime | None = None,
        since: str | datetime | None = None,
        until: str | datetime | None = None,
    ) -> dict[str, int | float]:
        """
        Totals for a range of jornadas and for the current week.

        Args:
            now: Reference time for the week, defaults to the current time
            since: Only count jornadas started at or after this time
            until: Only count jornadas started at or before this time

        The week always starts on Monday 00:00 UTC and ignores the range.
        """
        now = now or datetime.now(UTC)
        week_start = start_of_week(now).isoformat(timespec="seconds")
        where, params = _started_between(since, until)

        with self._connect() as conn:
            total, total_minutes = conn.execute(
                f"SELECT COUNT(*), COALESCE(SUM(focus_minutes), 0) FROM jornadas {where}",
                params,
            ).fetchone()
            week, week_minutes = conn.execute(
                """
                SELECT COUNT(*), COALESCE(SUM(focus_minutes), 0)
                FROM jornadas WHERE started_at >= ?
                """,
                (week_start,),
            ).fetchone()

        return {
            "total_jornadas": total,
            "total_focus_minutes": total_minutes,
            "average_focus_minutes": round(total_minutes / total, 2) if total else 0,
            "week_jornadas": week,
            "week_focus_minutes": week_minutes,
        }
