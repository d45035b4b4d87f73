"""Read-side aggregation for the dashboard and project pages.

The dashboard combines two sources that never share a schema:

* cold - ``daily_stats`` rollups inside the trailing window
* hot  - ``activity_logs`` rows from today, not yet folded into a rollup

Both are folded into one ``_Accumulator`` keyed by project id and language
name, then sorted explicitly so the output never depends on dict order.
"""

import json
import logging
from collections import defaultdict
from datetime import datetime

from .config import DASHBOARD_WINDOW_DAYS
from .db import get_conn
from .errors import NotFoundError
from .models import (
    ActivityOut, CommitOut, DailyActivity, DashboardStats, FileStat, LanguageStat,
    ProjectDetails, ProjectOut, ProjectStat,
)
from .timeutil import TZ, day_of, day_start_ms, shift_day

logger = logging.getLogger(__name__)

TOP_LANGUAGES = 5
TOP_FILES = 10
RECENT_ACTIVITIES = 20
RECENT_COMMITS = 50
DAILY_POINTS = 30


def _percent(duration: int, total: int) -> float:
    return duration / total * 100 if total > 0 else 0.0


def _language_stats(durations: dict[str, int], total: int, limit: int | None = None) -> list[LanguageStat]:
    ordered = sorted(durations.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ordered = ordered[:limit]
    return [
        LanguageStat(language=lang, duration=dur, percentage=_percent(dur, total))
        for lang, dur in ordered
    ]


def _daily_series(daily: dict[str, int]) -> list[DailyActivity]:
    return [DailyActivity(date=d, duration=daily[d]) for d in sorted(daily)]


class _Accumulator:
    """Folds rollup rows and hot activity rows into dashboard totals."""

    def __init__(self):
        self.total = 0
        self.projects: dict[int, dict] = {}
        self.languages: dict[str, int] = defaultdict(int)
        self.daily: dict[str, int] = defaultdict(int)

    def project(self, project_id: int, name: str = "", path: str = "") -> dict:
        p = self.projects.get(project_id)
        if p is None:
            p = self.projects[project_id] = {
                "id": project_id, "name": name, "path": path,
                "total_duration": 0, "activity_count": 0, "last_active": 0,
            }
        return p

    def add_rollup(self, row):
        duration = row["total_duration"]
        self.total += duration
        self.daily[row["date"]] += duration
        for language, lang_duration in json.loads(row["language_breakdown"] or "{}").items():
            self.languages[language] += lang_duration

        p = self.project(row["project_id"])
        p["total_duration"] += duration
        p["activity_count"] += 1
        p["last_active"] = max(p["last_active"], day_start_ms(row["date"]))

    def add_hot(self, row, day: str):
        duration = row["duration"]
        self.total += duration
        self.daily[day] += duration
        self.languages[row["language"]] += duration

        p = self.project(row["project_id"])
        p["total_duration"] += duration
        p["activity_count"] += 1
        p["last_active"] = max(p["last_active"], row["timestamp"])

    def result(self) -> DashboardStats:
        project_stats = sorted(
            self.projects.values(),
            key=lambda p: (-p["total_duration"], p["name"], p["id"]),
        )
        return DashboardStats(
            total_time=self.total,
            total_projects=len(project_stats),
            active_projects=sum(1 for p in project_stats if p["total_duration"] > 0),
            projects=[ProjectStat(**p) for p in project_stats],
            languages=_language_stats(self.languages, self.total),
            daily_activity=_daily_series(self.daily),
        )


def compute_summary(user_id: int, now: datetime | None = None) -> DashboardStats:
    """Dashboard totals for one user. Read-only."""
    conn = get_conn()
    now = now or datetime.now(TZ)
    today = now.astimezone(TZ).strftime("%Y-%m-%d")
    start_of_today = day_start_ms(today)
    cutoff = shift_day(today, -(DASHBOARD_WINDOW_DAYS - 1))

    acc = _Accumulator()
    for r in conn.execute(
        "SELECT id, name, path FROM projects WHERE user_id=? ORDER BY id", (user_id,)
    ):
        acc.project(r["id"], r["name"], r["path"])

    # ── Cold: rollups inside the window ──
    rollups = conn.execute(
        "SELECT project_id, date, total_duration, language_breakdown FROM daily_stats "
        "WHERE user_id=? AND date>=? ORDER BY date, project_id",
        (user_id, cutoff),
    ).fetchall()
    for r in rollups:
        acc.add_rollup(r)

    # ── Hot: today's activity rows ──
    hot = conn.execute(
        "SELECT a.project_id, a.language, a.timestamp, a.duration "
        "FROM activity_logs a JOIN projects p ON p.id = a.project_id "
        "WHERE p.user_id=? AND a.timestamp>=? ORDER BY a.timestamp, a.id",
        (user_id, start_of_today),
    ).fetchall()
    for r in hot:
        acc.add_hot(r, today)

    logger.debug("Dashboard for user %s: %d rollups, %d hot rows", user_id, len(rollups), len(hot))
    return acc.result()


# ── Project views ──

def _project_out(row) -> ProjectOut:
    return ProjectOut(
        id=row["id"], name=row["name"], path=row["path"], user_id=row["user_id"],
        created_at=row["created_at"], updated_at=row["updated_at"],
    )


def _owned_project(user_id: int, project_id: int):
    row = get_conn().execute(
        "SELECT * FROM projects WHERE id=? AND user_id=?", (project_id, user_id)
    ).fetchone()
    if row is None:
        raise NotFoundError("Project not found")
    return row


def list_projects(user_id: int) -> list[ProjectOut]:
    rows = get_conn().execute(
        "SELECT * FROM projects WHERE user_id=? ORDER BY updated_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    return [_project_out(r) for r in rows]


def get_project(user_id: int, project_id: int) -> ProjectOut:
    return _project_out(_owned_project(user_id, project_id))


def project_details(user_id: int, project_id: int) -> ProjectDetails:
    project = _owned_project(user_id, project_id)
    conn = get_conn()

    activities = conn.execute(
        "SELECT * FROM activity_logs WHERE project_id=? ORDER BY timestamp DESC, id DESC",
        (project_id,),
    ).fetchall()

    total = 0
    languages = defaultdict(int)
    files = defaultdict(int)
    daily = defaultdict(int)
    for a in activities:
        total += a["duration"]
        languages[a["language"]] += a["duration"]
        files[a["file_path"]] += a["duration"]
        daily[day_of(a["timestamp"])] += a["duration"]

    top_files = sorted(files.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_FILES]

    commits = conn.execute(
        "SELECT c.*, (SELECT COUNT(*) FROM activity_logs a "
        "  WHERE a.project_id = c.project_id AND a.commit_id = c.commit_hash) AS activity_count "
        "FROM git_commits c WHERE c.project_id=? "
        "ORDER BY c.timestamp DESC, c.id DESC LIMIT ?",
        (project_id, RECENT_COMMITS),
    ).fetchall()

    return ProjectDetails(
        id=project["id"],
        name=project["name"],
        path=project["path"],
        total_duration=total,
        activity_count=len(activities),
        top_languages=_language_stats(languages, total, limit=TOP_LANGUAGES),
        top_files=[FileStat(file_path=f, duration=d) for f, d in top_files],
        daily_activity=_daily_series(daily)[-DAILY_POINTS:],
        recent_activities=[
            ActivityOut(
                id=a["id"], project_id=a["project_id"], file_path=a["file_path"],
                language=a["language"], timestamp=a["timestamp"], duration=a["duration"],
                editor=a["editor"], commit_id=a["commit_id"], branch=a["branch"],
                created_at=a["created_at"],
            )
            for a in activities[:RECENT_ACTIVITIES]
        ],
        commits=[
            CommitOut(
                id=c["id"], commit_hash=c["commit_hash"], message=c["message"],
                author=c["author"], author_email=c["author_email"], timestamp=c["timestamp"],
                total_duration=c["total_duration"], files_changed=c["files_changed"],
                lines_added=c["lines_added"], lines_deleted=c["lines_deleted"],
                branch=c["branch"], activity_count=c["activity_count"],
                created_at=c["created_at"],
            )
            for c in commits
        ],
    )
