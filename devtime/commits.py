"""Commit Registry and Commit Duration Roller.

A commit's ``total_duration`` is derived from the activity rows whose
``commit_id`` equals its hash. Two operations maintain it:

* ``apply_delta`` - O(1) increment used while file activity streams in.
* ``recompute_durations`` - full recomputation for a project, run after each
  commit sync. Authoritative: it overwrites whatever drift the deltas left.
"""

import logging
import sqlite3
import threading
import weakref

from . import projects
from .db import transaction
from .models import CommitInput, SyncResponse, validate_batch
from .timeutil import now_iso
from .users import authenticate

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
# Locks live only while some recompute holds a reference.
_project_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

_UPSERT_SQL = (
    "INSERT INTO git_commits(project_id, commit_hash, message, author, author_email, "
    "timestamp, total_duration, files_changed, lines_added, lines_deleted, branch, created_at) "
    "VALUES(?, ?, ?, ?, ?, ?, 0, ?, ?, ?, ?, ?) "
    "ON CONFLICT(project_id, commit_hash) DO UPDATE SET "
    "message=excluded.message, author=excluded.author, author_email=excluded.author_email, "
    "timestamp=excluded.timestamp, files_changed=excluded.files_changed, "
    "lines_added=excluded.lines_added, lines_deleted=excluded.lines_deleted, "
    "branch=excluded.branch"
)

_RECOMPUTE_SQL = (
    "UPDATE git_commits SET total_duration = COALESCE(("
    "  SELECT SUM(a.duration) FROM activity_logs a "
    "  WHERE a.project_id = git_commits.project_id AND a.commit_id = git_commits.commit_hash"
    "), 0) "
    "WHERE project_id=?"
)


def _project_lock(project_id: int) -> threading.Lock:
    with _locks_guard:
        lock = _project_locks.get(project_id)
        if lock is None:
            lock = _project_locks[project_id] = threading.Lock()
        return lock


def apply_delta(conn: sqlite3.Connection, project_id: int, commit_hash: str, delta: int) -> bool:
    """Add ``delta`` to an existing commit's total. False if the commit is unknown."""
    cur = conn.execute(
        "UPDATE git_commits SET total_duration = total_duration + ? "
        "WHERE project_id=? AND commit_hash=?",
        (delta, project_id, commit_hash),
    )
    return cur.rowcount > 0


def recompute_durations(project_id: int) -> int:
    """Overwrite every commit total in the project with its activity sum.

    Returns the number of commits rewritten. Safe to call repeatedly.
    """
    with _project_lock(project_id):
        with transaction() as conn:
            cur = conn.execute(_RECOMPUTE_SQL, (project_id,))
            updated = cur.rowcount
            if updated > 0:
                projects.touch(conn, project_id)
    logger.info("Recomputed durations for %d commits in project %s", updated, project_id)
    return updated


def upsert_commits(token: str | None, commits: list) -> SyncResponse:
    user = authenticate(token)
    items = validate_batch(CommitInput, commits)

    touched: list[int] = []
    created_at = now_iso()
    with transaction() as conn:
        for c in items:
            project = projects.resolve(conn, user["id"], c.project_path)
            conn.execute(_UPSERT_SQL, (
                project["id"], c.commit_hash, c.message, c.author, c.author_email,
                c.timestamp, c.files_changed, c.lines_added, c.lines_deleted,
                c.branch, created_at,
            ))
            projects.touch(conn, project["id"])
            if project["id"] not in touched:
                touched.append(project["id"])

    for project_id in touched:
        recompute_durations(project_id)

    logger.info("Synced %d commits for user %s", len(items), user["id"])
    return SyncResponse(
        success=True,
        message=f"Synced {len(items)} commits",
        synced_count=len(items),
    )
