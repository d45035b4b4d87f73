"""Daily Rollup Writer: additive upserts of client-side per-day summaries.

Clients send deltas, so a second sync for the same (user, project, day)
adds to the stored counters instead of replacing them.
"""

import json
import logging

from . import projects
from .db import transaction
from .errors import ValidationError
from .models import DailyStatsInput, SyncResponse, validate_batch
from .timeutil import normalize_day, now_iso
from .users import authenticate

logger = logging.getLogger(__name__)


def merge_breakdown(current: dict[str, int], delta: dict[str, int]) -> dict[str, int]:
    """Per-language sum of two breakdowns."""
    merged = dict(current)
    for language, duration in delta.items():
        merged[language] = merged.get(language, 0) + duration
    return merged


def _normalized_days(items: list[DailyStatsInput]) -> list[str]:
    days = []
    for index, item in enumerate(items):
        try:
            days.append(normalize_day(item.date))
        except (ValueError, OverflowError, OSError) as e:
            raise ValidationError(
                f"Invalid DailyStatsInput at index {index}: date",
                index=index,
                errors=[{"loc": ["date"], "msg": str(e), "type": "value_error"}],
            ) from e
    return days


def merge_daily_stats(token: str | None, stats: list) -> SyncResponse:
    user = authenticate(token)
    items = validate_batch(DailyStatsInput, stats)
    days = _normalized_days(items)
    logger.info("Processing %d daily stats for user %s", len(items), user["id"])

    now = now_iso()
    with transaction() as conn:
        for item, day in zip(items, days):
            project = projects.resolve(conn, user["id"], item.project_path)
            row = conn.execute(
                "SELECT id, language_breakdown FROM daily_stats "
                "WHERE user_id=? AND project_id=? AND date=?",
                (user["id"], project["id"], day),
            ).fetchone()

            if row is None:
                conn.execute(
                    "INSERT INTO daily_stats(user_id, project_id, date, total_duration, "
                    "language_breakdown, files_edited, commits_count, created_at, updated_at) "
                    "VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        user["id"], project["id"], day, item.total_duration,
                        json.dumps(item.language_breakdown, sort_keys=True),
                        item.files_edited, item.commits_count, now, now,
                    ),
                )
            else:
                breakdown = merge_breakdown(
                    json.loads(row["language_breakdown"] or "{}"),
                    item.language_breakdown,
                )
                conn.execute(
                    "UPDATE daily_stats SET total_duration = total_duration + ?, "
                    "files_edited = files_edited + ?, commits_count = commits_count + ?, "
                    "language_breakdown=?, updated_at=? WHERE id=?",
                    (
                        item.total_duration, item.files_edited, item.commits_count,
                        json.dumps(breakdown, sort_keys=True), now, row["id"],
                    ),
                )
            projects.touch(conn, project["id"])

    return SyncResponse(
        success=True,
        message=f"Synced {len(items)} daily stats",
        synced_count=len(items),
    )
