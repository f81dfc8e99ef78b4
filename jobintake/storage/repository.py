from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from jobintake.core.models import DEFAULT_EXPIRY_DAYS, ErrorReport, Job

logger = logging.getLogger(__name__)

JOB_COLUMNS = [
    "id",
    "url",
    "direct_url",
    "title",
    "company",
    "location",
    "grade",
    "grade_reason",
    "category",
    "ceo_match",
    "salary",
    "requires_diploma",
    "requires_license",
    "date_posted",
    "expiration_date",
    "submitted_at",
    "submitted_by",
    "needs_review",
    "frequent_hirer_tag",
]
BOOL_COLUMNS = {"requires_diploma", "requires_license", "needs_review"}
FILTER_COLUMNS = {"grade", "category", "requires_diploma", "requires_license", "needs_review", "frequent_hirer_tag", "submitted_by"}
UPDATE_COLUMNS = set(JOB_COLUMNS) - {"id", "submitted_at"}
ORDERINGS = {
    "submitted_at DESC": "submitted_at DESC",
    "submitted_at ASC": "submitted_at ASC",
    "date_posted DESC": "date_posted DESC",
    "grade ASC": "grade ASC",
}

ChangeCallback = Callable[[str, str], None]


class JobRepository:
    def __init__(self, db_path: str = "data/jobintake.db") -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self._subscribers: list[ChangeCallback] = []
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id TEXT PRIMARY KEY,
                url TEXT NOT NULL,
                direct_url TEXT,
                title TEXT,
                company TEXT,
                location TEXT,
                grade TEXT,
                grade_reason TEXT,
                category TEXT,
                ceo_match TEXT,
                salary TEXT,
                requires_diploma INTEGER,
                requires_license INTEGER,
                date_posted TEXT,
                expiration_date TEXT,
                submitted_at TEXT,
                submitted_by TEXT,
                needs_review INTEGER,
                frequent_hirer_tag TEXT
            );
            CREATE INDEX IF NOT EXISTS jobs_submitted_at ON jobs(submitted_at);
            CREATE TABLE IF NOT EXISTS batch_runs (
                run_id INTEGER PRIMARY KEY AUTOINCREMENT,
                started_at TEXT,
                finished_at TEXT,
                num_submitted INTEGER,
                num_added INTEGER,
                num_failed INTEGER,
                num_needs_manual INTEGER
            );
            CREATE TABLE IF NOT EXISTS intake_errors (
                run_id INTEGER,
                occurred_at TEXT,
                url TEXT,
                error_kind TEXT,
                error TEXT,
                troubleshoot TEXT,
                can_retry_manually INTEGER
            );
            """
        )
        self.conn.commit()

    @staticmethod
    def _row_to_job(row: sqlite3.Row) -> Job:
        values = {col: row[col] for col in JOB_COLUMNS}
        for col in BOOL_COLUMNS:
            values[col] = bool(values[col])
        return Job(**values)

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback(event, job_id)``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: str, job_id: str) -> None:
        for callback in list(self._subscribers):
            callback(event, job_id)

    def insert(self, job: Job) -> None:
        values = [getattr(job, col) for col in JOB_COLUMNS]
        placeholders = ",".join("?" for _ in JOB_COLUMNS)
        self.conn.execute(f"INSERT INTO jobs ({','.join(JOB_COLUMNS)}) VALUES ({placeholders})", values)
        self.conn.commit()
        logger.info("job_inserted", extra={"extra_fields": {"job_id": job.id, "url": job.url}})
        self._notify("insert", job.id)

    def get(self, job_id: str) -> Job | None:
        row = self.conn.execute("SELECT * FROM jobs WHERE id=?", (job_id,)).fetchone()
        return self._row_to_job(row) if row else None

    def query(self, filters: dict[str, Any] | None = None, order: str = "submitted_at DESC") -> list[Job]:
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (filters or {}).items():
            if column not in FILTER_COLUMNS:
                raise ValueError(f"Unsupported filter column: {column}")
            if value is None:
                clauses.append(f"{column} IS NULL")
                continue
            clauses.append(f"{column}=?")
            params.append(int(value) if column in BOOL_COLUMNS else value)
        if order not in ORDERINGS:
            raise ValueError(f"Unsupported ordering: {order}")
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.conn.execute(f"SELECT * FROM jobs{where} ORDER BY {ORDERINGS[order]}", params).fetchall()
        return [self._row_to_job(row) for row in rows]

    def list_active(
        self,
        now: datetime | None = None,
        expiry_days: int = DEFAULT_EXPIRY_DAYS,
        filters: dict[str, Any] | None = None,
    ) -> list[Job]:
        return [job for job in self.query(filters) if not job.is_expired(now, expiry_days)]

    def update(self, job_id: str, fields: dict[str, Any]) -> bool:
        unknown = set(fields) - UPDATE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported update columns: {sorted(unknown)}")
        if not fields:
            return False
        assignments = ", ".join(f"{col}=?" for col in fields)
        params = [int(v) if col in BOOL_COLUMNS else v for col, v in fields.items()]
        cur = self.conn.execute(f"UPDATE jobs SET {assignments} WHERE id=?", (*params, job_id))
        self.conn.commit()
        if cur.rowcount:
            self._notify("update", job_id)
        return bool(cur.rowcount)

    def delete(self, job_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM jobs WHERE id=?", (job_id,))
        self.conn.commit()
        if cur.rowcount:
            self._notify("delete", job_id)
        return bool(cur.rowcount)

    def existing_urls(self) -> set[str]:
        urls: set[str] = set()
        for row in self.conn.execute("SELECT url, direct_url FROM jobs").fetchall():
            urls.add(row["url"])
            if row["direct_url"]:
                urls.add(row["direct_url"])
        return urls

    def create_run(self, started_at: str, num_submitted: int = 0) -> int:
        cur = self.conn.execute(
            "INSERT INTO batch_runs(started_at, finished_at, num_submitted, num_added, num_failed, num_needs_manual) VALUES (?,?,?,?,?,?)",
            (started_at, None, num_submitted, 0, 0, 0),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def finish_run(self, run_id: int, finished_at: str, counts: dict[str, int]) -> None:
        self.conn.execute(
            "UPDATE batch_runs SET finished_at=?, num_added=?, num_failed=?, num_needs_manual=? WHERE run_id=?",
            (
                finished_at,
                counts.get("added", 0),
                counts.get("failed", 0),
                counts.get("needs_manual", 0),
                run_id,
            ),
        )
        self.conn.commit()

    def add_intake_error(self, report: ErrorReport, run_id: int | None = None) -> None:
        self.conn.execute(
            "INSERT INTO intake_errors VALUES (?,?,?,?,?,?,?)",
            (
                run_id,
                report.occurred_at,
                report.url,
                report.error_kind,
                report.error,
                report.troubleshoot,
                int(report.can_retry_manually),
            ),
        )
        self.conn.commit()

    def list_runs(self) -> list[sqlite3.Row]:
        return self.conn.execute("SELECT * FROM batch_runs ORDER BY run_id DESC").fetchall()

    def list_failures(self) -> list[ErrorReport]:
        rows = self.conn.execute("SELECT * FROM intake_errors ORDER BY rowid ASC").fetchall()
        return [
            ErrorReport(
                url=row["url"],
                error_kind=row["error_kind"],
                error=row["error"],
                troubleshoot=row["troubleshoot"],
                can_retry_manually=bool(row["can_retry_manually"]),
                occurred_at=row["occurred_at"],
            )
            for row in rows
        ]

    def close(self) -> None:
        self.conn.close()
