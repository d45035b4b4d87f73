import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from .config import DB_PATH
from .errors import StoreError

_conn: sqlite3.Connection | None = None

# Serializes write transactions on the shared connection.
_write_lock = threading.RLock()

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL UNIQUE,
    name        TEXT,
    api_token   TEXT NOT NULL UNIQUE,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS projects (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    path        TEXT NOT NULL,
    name        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    UNIQUE (user_id, path)
);

CREATE TABLE IF NOT EXISTS activity_logs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id  INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    file_path   TEXT NOT NULL,
    language    TEXT NOT NULL,
    timestamp   INTEGER NOT NULL,
    duration    INTEGER NOT NULL DEFAULT 0,
    editor      TEXT,
    commit_id   TEXT,
    branch      TEXT,
    kind        TEXT NOT NULL DEFAULT 'raw',
    created_at  TEXT NOT NULL
);

-- One pre-aggregated row per (project, commit, branch, file).
CREATE UNIQUE INDEX IF NOT EXISTS uq_activity_file
    ON activity_logs(project_id, commit_id, branch, file_path) WHERE kind = 'file';
CREATE INDEX IF NOT EXISTS idx_activity_commit ON activity_logs(project_id, commit_id);
CREATE INDEX IF NOT EXISTS idx_activity_ts ON activity_logs(project_id, timestamp);

CREATE TABLE IF NOT EXISTS git_commits (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id      INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    commit_hash     TEXT NOT NULL,
    message         TEXT NOT NULL,
    author          TEXT NOT NULL,
    author_email    TEXT NOT NULL,
    timestamp       INTEGER NOT NULL,
    total_duration  INTEGER NOT NULL DEFAULT 0,
    files_changed   INTEGER NOT NULL DEFAULT 0,
    lines_added     INTEGER NOT NULL DEFAULT 0,
    lines_deleted   INTEGER NOT NULL DEFAULT 0,
    branch          TEXT,
    created_at      TEXT NOT NULL,
    UNIQUE (project_id, commit_hash)
);

CREATE TABLE IF NOT EXISTS daily_stats (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    project_id          INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    date                TEXT NOT NULL,
    total_duration      INTEGER NOT NULL DEFAULT 0,
    language_breakdown  TEXT NOT NULL DEFAULT '{}',
    files_edited        INTEGER NOT NULL DEFAULT 0,
    commits_count       INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    UNIQUE (user_id, project_id, date)
);

CREATE INDEX IF NOT EXISTS idx_daily_user_date ON daily_stats(user_id, date);
"""


def connect(path: str) -> sqlite3.Connection:
    """Open a connection with the pragmas and schema applied.

    The connection runs in autocommit mode; writes are grouped explicitly
    with :func:`transaction`.
    """
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA)
    return conn


def get_conn() -> sqlite3.Connection:
    global _conn
    if _conn is None:
        _conn = connect(DB_PATH)
    return _conn


def close_conn():
    global _conn
    if _conn is not None:
        _conn.close()
        _conn = None


@contextmanager
def transaction():
    """Run a block of writes atomically on the shared connection.

    Nested use joins the outer transaction. Store failures are rolled back
    and re-raised as StoreError.
    """
    with _write_lock:
        conn = get_conn()
        if conn.in_transaction:
            yield conn
            return
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreError(str(e)) from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
