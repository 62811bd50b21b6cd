from __future__ import annotations

import contextlib
import os
import re
import sqlite3
from abc import ABC, abstractmethod
from typing import Any

from .logging_bridge import error as log_error
from .models import JobRecord

_COLUMNS = (
    "title",
    "company",
    "location",
    "source",
    "job_type",
    "description",
    "job_url",
    "application_url",
    "application_deadline",
    "salary",
    "tags",
    "skills",
    "experience_level",
    "employment_type",
    "is_remote",
    "company_website",
    "company_description",
    "source_posted_at",
    "created_at",
    "updated_at",
)


class PersistenceError(Exception):
    """A storage operation failed; the original error is chained."""


# ---- Gateway interface --------------------------------------------------------


class JobStore(ABC):
    """
    Full-replace sink for one scrape run.

    The coordinator calls clear_previous_batch() once, insert_job() per
    record, then finish_batch(). Implementations raise PersistenceError.
    """

    @abstractmethod
    def clear_previous_batch(self) -> None: ...

    @abstractmethod
    def insert_job(self, job: JobRecord) -> None: ...

    def finish_batch(self) -> None:
        """Make the new batch visible. Default: nothing to do."""


class SqliteJobStore(JobStore):
    """
    SQLite implementation of JobStore.

    clear_previous_batch() opens a write transaction and deletes the old
    rows; inserts join that transaction; finish_batch() commits. Readers in
    WAL mode keep seeing the previous batch until the commit, and a run that
    dies midway leaves the old batch in place.
    """

    def __init__(self, sqlite_path: str):
        self.sqlite_path = sqlite_path
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            init_db(self.sqlite_path)
            self._conn = _connect(self.sqlite_path)
            _apply_pragmas(self._conn)
        return self._conn

    def clear_previous_batch(self) -> None:
        try:
            conn = self._connection()
            if not conn.in_transaction:
                conn.execute("BEGIN IMMEDIATE")
            conn.execute("DELETE FROM scraped_jobs")
        except sqlite3.Error as e:
            self._fail("clear_previous_batch", e)

    def insert_job(self, job: JobRecord) -> None:
        row = job.to_row()
        row["job_url"] = normalize_url(row["job_url"])
        row["application_url"] = normalize_url(row["application_url"]) or row["job_url"]
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            self._connection().execute(
                f"INSERT INTO scraped_jobs ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                tuple(row[c] for c in _COLUMNS),
            )
        except sqlite3.Error as e:
            # Only this row is lost; the batch transaction stays open.
            log_error({
                "component": "job_scrape.db",
                "op": "insert_job",
                "sqlite_path": self.sqlite_path,
                "title": job.title,
                "source": job.source,
                "error": repr(e),
            })
            raise PersistenceError(f"insert failed for {job.title!r}: {e}") from e

    def finish_batch(self) -> None:
        if self._conn is None:
            return
        try:
            if self._conn.in_transaction:
                self._conn.commit()
        except sqlite3.Error as e:
            self._fail("finish_batch", e)
        finally:
            self.close()

    def close(self) -> None:
        if self._conn is not None:
            with contextlib.suppress(sqlite3.Error):
                if self._conn.in_transaction:
                    self._conn.rollback()
                self._conn.close()
            self._conn = None

    def _fail(self, op: str, e: sqlite3.Error) -> None:
        log_error({
            "component": "job_scrape.db",
            "op": op,
            "sqlite_path": self.sqlite_path,
            "error": repr(e),
        })
        self.close()
        raise PersistenceError(f"{op} failed: {e}") from e


# ---- Public helpers -----------------------------------------------------------


def normalize_url(url: str | None) -> str | None:
    """Prefix scheme-less URLs with https://; None/'' stay None."""
    if not url:
        return None
    u = url.strip()
    if not u:
        return None
    if not re.match(r"^https?://", u, re.IGNORECASE):
        u = "https://" + u.lstrip("/")
    return u


def init_db(sqlite_path: str) -> None:
    """
    Ensure the SQLite database and schema exist.
    Safe to call multiple times.
    """
    _ensure_dir(sqlite_path)
    conn = _connect(sqlite_path)
    try:
        _apply_pragmas(conn)
        _ensure_schema(conn)
    finally:
        conn.close()


def count_rows(sqlite_path: str) -> int:
    """Return total rows in scraped_jobs; 0 if DB missing/empty."""
    if not os.path.exists(sqlite_path):
        return 0
    conn = _connect(sqlite_path)
    try:
        if not _has_table(conn):
            return 0
        (n,) = conn.execute("SELECT COUNT(*) FROM scraped_jobs").fetchone()
    finally:
        conn.close()
    return int(n or 0)


def fetch_jobs(sqlite_path: str, *, source: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
    """Rows as dicts, newest first; optionally for one source."""
    if not os.path.exists(sqlite_path):
        return []
    sql = "SELECT * FROM scraped_jobs"
    params: list[Any] = []
    if source:
        sql += " WHERE source = ?"
        params.append(source)
    sql += " ORDER BY id DESC"
    if limit:
        sql += " LIMIT ?"
        params.append(int(limit))
    conn = _connect(sqlite_path)
    conn.row_factory = sqlite3.Row
    try:
        if not _has_table(conn):
            return []
        return [dict(r) for r in conn.execute(sql, params).fetchall()]
    finally:
        conn.close()


def reset_db(sqlite_path: str) -> None:
    """
    Remove the DB file entirely (for pytest fixtures).
    Safe if it doesn't exist.
    """
    for suffix in ("", "-wal", "-shm"):
        with contextlib.suppress(FileNotFoundError):
            os.remove(sqlite_path + suffix)


# ---- Internal utilities -------------------------------------------------------


def _ensure_dir(sqlite_path: str) -> None:
    d = os.path.dirname(os.path.abspath(sqlite_path)) or "."
    os.makedirs(d, exist_ok=True)


def _connect(sqlite_path: str) -> sqlite3.Connection:
    # Autocommit mode; transactions are opened explicitly.
    return sqlite3.connect(sqlite_path, timeout=30.0, isolation_level=None)


def _has_table(conn: sqlite3.Connection) -> bool:
    row = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'scraped_jobs'").fetchone()
    return row is not None


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS scraped_jobs (
          id INTEGER PRIMARY KEY,
          title TEXT NOT NULL,
          company TEXT NOT NULL,
          location TEXT NOT NULL,
          source TEXT NOT NULL,
          job_type TEXT NOT NULL,
          description TEXT NOT NULL DEFAULT '',
          job_url TEXT,
          application_url TEXT,
          application_deadline TEXT,
          salary TEXT,
          tags TEXT NOT NULL DEFAULT '[]',
          skills TEXT NOT NULL DEFAULT '[]',
          experience_level TEXT,
          employment_type TEXT,
          is_remote INTEGER NOT NULL DEFAULT 0,
          company_website TEXT,
          company_description TEXT,
          source_posted_at TEXT,
          created_at TEXT NOT NULL,
          updated_at TEXT NOT NULL
        );
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS ix_scraped_jobs_source ON scraped_jobs (source);")
