"""Project Resolver: (user, path) -> canonical project row, created on first sight."""

import logging
import re
import sqlite3

from .config import UNKNOWN_PROJECT_NAME
from .timeutil import now_iso

logger = logging.getLogger(__name__)

_SEP_RE = re.compile(r"[\\/]+")


def project_name(path: str) -> str:
    """Last path segment, ignoring trailing separators.

    ``/home/me/code/my-app/`` → ``my-app``
    ``C:\\work\\api``          → ``api``
    ``/``                      → ``Unknown Project``
    """
    segments = [s for s in _SEP_RE.split(path) if s]
    return segments[-1] if segments else UNKNOWN_PROJECT_NAME


def _find(conn: sqlite3.Connection, user_id: int, path: str) -> sqlite3.Row | None:
    return conn.execute(
        "SELECT * FROM projects WHERE user_id=? AND path=?", (user_id, path)
    ).fetchone()


def resolve(conn: sqlite3.Connection, user_id: int, path: str) -> sqlite3.Row:
    """Return the user's project for ``path``, inserting it if absent.

    A concurrent writer may create the same project between the lookup and
    the insert; the unique (user_id, path) constraint turns that into an
    IntegrityError, which is answered with a second lookup.
    """
    project = _find(conn, user_id, path)
    if project is not None:
        return project

    now = now_iso()
    try:
        conn.execute(
            "INSERT INTO projects(user_id, path, name, created_at, updated_at) "
            "VALUES(?, ?, ?, ?, ?)",
            (user_id, path, project_name(path), now, now),
        )
        logger.info("Created project %r for user %s", path, user_id)
    except sqlite3.IntegrityError:
        logger.debug("Project %r for user %s already exists", path, user_id)
    return _find(conn, user_id, path)


def touch(conn: sqlite3.Connection, project_id: int):
    conn.execute(
        "UPDATE projects SET updated_at=? WHERE id=?", (now_iso(), project_id)
    )
