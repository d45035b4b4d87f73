import pytest

from conftest import make_activity, make_commit, make_file_activity
from devtime.activity import ingest_file_aggregate, ingest_raw
from devtime.commits import upsert_commits
from devtime.errors import AuthenticationError, ValidationError


def _count(conn, table):
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _file_rows(conn):
    return conn.execute(
        "SELECT * FROM activity_logs WHERE kind='file' ORDER BY id"
    ).fetchall()


class TestIngestRaw:
    def test_inserts_rows_and_creates_project(self, conn, token):
        resp = ingest_raw(token, [make_activity(), make_activity(filePath="util.go", commitHash="c9")])

        assert resp.success is True
        assert resp.synced_count == 2
        assert resp.message == "Synced 2 activities"
        rows = conn.execute("SELECT * FROM activity_logs ORDER BY id").fetchall()
        assert [r["commit_id"] for r in rows] == [None, "c9"]
        assert all(r["kind"] == "raw" for r in rows)
        assert _count(conn, "projects") == 1

    def test_redelivered_batch_duplicates_rows(self, conn, token):
        batch = [make_activity()]
        ingest_raw(token, batch)
        ingest_raw(token, batch)

        assert _count(conn, "activity_logs") == 2

    def test_unknown_token_writes_nothing(self, conn, user):
        with pytest.raises(AuthenticationError):
            ingest_raw("nope", [make_activity()])
        with pytest.raises(AuthenticationError):
            ingest_raw(None, [make_activity()])

        assert _count(conn, "projects") == 0
        assert _count(conn, "activity_logs") == 0

    def test_malformed_item_rejects_whole_batch(self, conn, token):
        bad = make_activity()
        del bad["language"]

        with pytest.raises(ValidationError) as exc:
            ingest_raw(token, [make_activity(), bad])

        assert exc.value.index == 1
        assert _count(conn, "activity_logs") == 0
        assert _count(conn, "projects") == 0

    def test_negative_duration_rejected(self, conn, token):
        with pytest.raises(ValidationError):
            ingest_raw(token, [make_activity(duration=-5)])


class TestIngestFileAggregate:
    def test_same_key_merges_into_one_row(self, conn, token):
        ingest_file_aggregate(token, [make_file_activity(totalDuration=300, firstActivityAt=2_000)])
        ingest_file_aggregate(token, [make_file_activity(totalDuration=200, firstActivityAt=1_000)])

        rows = _file_rows(conn)
        assert len(rows) == 1
        assert rows[0]["duration"] == 500
        assert rows[0]["timestamp"] == 1_000

    def test_later_timestamp_keeps_earliest(self, conn, token):
        ingest_file_aggregate(token, [make_file_activity(firstActivityAt=1_000)])
        ingest_file_aggregate(token, [make_file_activity(firstActivityAt=5_000)])

        assert _file_rows(conn)[0]["timestamp"] == 1_000

    def test_items_in_one_batch_see_each_other(self, conn, token):
        ingest_file_aggregate(token, [
            make_file_activity(totalDuration=100),
            make_file_activity(totalDuration=50),
        ])

        rows = _file_rows(conn)
        assert len(rows) == 1
        assert rows[0]["duration"] == 150

    @pytest.mark.parametrize("field,value", [
        ("commitHash", "c2"),
        ("branch", "feature"),
        ("filePath", "other.go"),
        ("projectPath", "/home/dev/code/web"),
    ])
    def test_distinct_keys_stay_separate(self, conn, token, field, value):
        ingest_file_aggregate(token, [make_file_activity(), make_file_activity(**{field: value})])

        assert len(_file_rows(conn)) == 2

    def test_does_not_merge_into_raw_rows(self, conn, token):
        ingest_raw(token, [make_activity(filePath="main.go", commitHash="c1")])
        ingest_file_aggregate(token, [make_file_activity()])

        assert _count(conn, "activity_logs") == 2

    def test_delta_applied_to_existing_commit(self, conn, token):
        upsert_commits(token, [make_commit()])
        ingest_file_aggregate(token, [make_file_activity(totalDuration=300)])
        ingest_file_aggregate(token, [make_file_activity(totalDuration=200)])

        commit = conn.execute("SELECT total_duration FROM git_commits").fetchone()
        assert commit["total_duration"] == 500

    def test_unknown_commit_is_not_created(self, conn, token):
        ingest_file_aggregate(token, [make_file_activity()])

        assert _count(conn, "git_commits") == 0

    def test_missing_field_rejects_batch(self, conn, token):
        bad = make_file_activity()
        del bad["firstActivityAt"]

        with pytest.raises(ValidationError) as exc:
            ingest_file_aggregate(token, [make_file_activity(), bad])

        assert exc.value.index == 1
        assert "firstActivityAt" in exc.value.message
        assert _count(conn, "activity_logs") == 0

    def test_touches_project(self, conn, token):
        ingest_file_aggregate(token, [make_file_activity()])
        conn.execute("UPDATE projects SET updated_at='2000-01-01T00:00:00'")
        ingest_file_aggregate(token, [make_file_activity()])

        updated = conn.execute("SELECT updated_at FROM projects").fetchone()[0]
        assert updated > "2000-01-01T00:00:00"
