"""Tests for the database layer."""

from __future__ import annotations

from pathlib import Path

import pytest

from ocdian import db
from ocdian.models import ErpSessionCreate


@pytest.fixture()
def conn(tmp_path: Path):
    """Provide a fresh database for each test."""
    db_path = tmp_path / "test.db"
    connection = db.get_connection(db_path=db_path)
    yield connection
    connection.close()


class TestBlobs:
    def test_missing_blob(self, conn) -> None:
        assert db.get_blob(conn, "nothing") is None

    def test_put_and_get(self, conn) -> None:
        db.put_blob(conn, "key", '["a"]')
        assert db.get_blob(conn, "key") == '["a"]'

    def test_put_replaces(self, conn) -> None:
        db.put_blob(conn, "key", "one")
        db.put_blob(conn, "key", "two")
        assert db.get_blob(conn, "key") == "two"
        count = conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
        assert count == 1

    def test_persists_across_connections(self, tmp_path: Path) -> None:
        path = tmp_path / "persist.db"
        first = db.get_connection(db_path=path)
        db.put_blob(first, "key", "kept")
        first.close()
        second = db.get_connection(db_path=path)
        assert db.get_blob(second, "key") == "kept"
        second.close()


class TestErpSessions:
    def test_log_session(self, conn) -> None:
        session = db.log_erp_session(
            conn,
            ErpSessionCreate(challenge="Touch door handle", duration_seconds=300,
                             anxiety_before=8, anxiety_after=4),
        )
        assert session.id == 1
        assert session.challenge == "Touch door handle"
        assert session.calmness == 6

    def test_log_without_after_rating(self, conn) -> None:
        session = db.log_erp_session(conn, ErpSessionCreate(duration_seconds=60, anxiety_before=5))
        assert session.anxiety_after is None

    def test_list_most_recent_first(self, conn) -> None:
        for before in (3, 5, 7):
            db.log_erp_session(conn, ErpSessionCreate(duration_seconds=60, anxiety_before=before))
        sessions = db.list_erp_sessions(conn)
        assert [s.anxiety_before for s in sessions] == [7, 5, 3]

    def test_list_limit(self, conn) -> None:
        for _ in range(5):
            db.log_erp_session(conn, ErpSessionCreate(duration_seconds=60, anxiety_before=5))
        assert len(db.list_erp_sessions(conn, limit=2)) == 2

    def test_list_empty(self, conn) -> None:
        assert db.list_erp_sessions(conn) == []
