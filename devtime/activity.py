"""Activity Ingestor: raw editor events and per-file aggregates."""

import logging

from . import commits, projects
from .db import transaction
from .models import ActivityInput, FileActivityInput, SyncResponse, validate_batch
from .timeutil import now_iso
from .users import authenticate

logger = logging.getLogger(__name__)

ACTIVITY_COLS = [
    "project_id", "file_path", "language", "timestamp", "duration",
    "editor", "commit_id", "branch", "kind", "created_at",
]

_INSERT_SQL = (
    f"INSERT INTO activity_logs({','.join(ACTIVITY_COLS)}) "
    f"VALUES({','.join('?' for _ in ACTIVITY_COLS)})"
)

_FIND_FILE_SQL = (
    "SELECT id, duration, timestamp FROM activity_logs "
    "WHERE kind='file' AND project_id=? AND commit_id=? AND branch=? AND file_path=?"
)


def ingest_raw(token: str | None, events: list) -> SyncResponse:
    """Insert one row per event. Never merges, so a replayed batch duplicates rows."""
    user = authenticate(token)
    items = validate_batch(ActivityInput, events)
    logger.info("Processing %d activities for user %s", len(items), user["id"])

    created_at = now_iso()
    with transaction() as conn:
        for ev in items:
            project = projects.resolve(conn, user["id"], ev.project_path)
            conn.execute(_INSERT_SQL, (
                project["id"], ev.file_path, ev.language, ev.timestamp, ev.duration,
                ev.editor, ev.commit_hash or None, None, "raw", created_at,
            ))
            projects.touch(conn, project["id"])

    return SyncResponse(
        success=True,
        message=f"Synced {len(items)} activities",
        synced_count=len(items),
    )


def ingest_file_aggregate(token: str | None, file_activities: list) -> SyncResponse:
    """Merge per-file aggregates keyed by (project, commit, branch, file).

    Items are applied in order inside one transaction, so a later item for
    the same key sees the row written by an earlier one. Only the item's own
    ``total_duration`` is forwarded to the commit total.
    """
    user = authenticate(token)
    items = validate_batch(FileActivityInput, file_activities)
    logger.info("Processing %d file activities for user %s", len(items), user["id"])

    created_at = now_iso()
    merged = 0
    with transaction() as conn:
        for fa in items:
            project = projects.resolve(conn, user["id"], fa.project_path)
            existing = conn.execute(
                _FIND_FILE_SQL,
                (project["id"], fa.commit_hash, fa.branch, fa.file_path),
            ).fetchone()

            if existing is not None:
                conn.execute(
                    "UPDATE activity_logs SET duration=?, timestamp=? WHERE id=?",
                    (
                        existing["duration"] + fa.total_duration,
                        min(existing["timestamp"], fa.first_activity_at),
                        existing["id"],
                    ),
                )
                merged += 1
            else:
                conn.execute(_INSERT_SQL, (
                    project["id"], fa.file_path, fa.language, fa.first_activity_at,
                    fa.total_duration, fa.editor, fa.commit_hash, fa.branch, "file",
                    created_at,
                ))

            commits.apply_delta(conn, project["id"], fa.commit_hash, fa.total_duration)
            projects.touch(conn, project["id"])

    logger.debug("File activities: %d merged, %d inserted", merged, len(items) - merged)
    return SyncResponse(
        success=True,
        message=f"Synced {len(items)} file activities",
        synced_count=len(items),
    )
