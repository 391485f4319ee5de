"""Tests for the journal store."""

from __future__ import annotations

from pathlib import Path

import pytest

from ocdian import db
from ocdian.journal import JOURNAL_KEY, JournalStore
from ocdian.models import JournalEntry


@pytest.fixture()
def conn(tmp_path: Path):
    connection = db.get_connection(db_path=tmp_path / "test.db")
    yield connection
    connection.close()


@pytest.fixture()
def store(conn) -> JournalStore:
    return JournalStore(conn)


class TestAddEntry:
    def test_add(self, store: JournalStore) -> None:
        entry = store.add_entry("Did I leave the stove on?")
        assert entry is not None
        assert entry.obsession == "Did I leave the stove on?"
        assert entry.compulsion is None
        assert len(store) == 1

    def test_text_is_trimmed(self, store: JournalStore) -> None:
        entry = store.add_entry("  Germs on my hands  ")
        assert entry is not None
        assert entry.obsession == "Germs on my hands"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_is_ignored(self, store: JournalStore, text: str) -> None:
        assert store.add_entry(text) is None
        assert len(store) == 0

    def test_count_matches_non_empty_calls(self, store: JournalStore) -> None:
        texts = ["one", "", "two", "  ", "three", ""]
        for text in texts:
            store.add_entry(text)
        assert len(store) == 3
        assert [e.obsession for e in store.entries] == ["one", "two", "three"]

    def test_add_persists(self, conn, store: JournalStore) -> None:
        store.add_entry("Counting steps")
        assert "Counting steps" in db.get_blob(conn, JOURNAL_KEY)


class TestAttachCompulsion:
    def test_attach(self, store: JournalStore) -> None:
        entry = store.add_entry("Door unlocked?")
        updated = store.attach_compulsion(entry.id, "Checked it five times")
        assert updated is not None
        assert updated.id == entry.id
        assert store.get(entry.id).compulsion == "Checked it five times"

    def test_attach_overwrites(self, store: JournalStore) -> None:
        entry = store.add_entry("Door unlocked?")
        store.attach_compulsion(entry.id, "Checked twice")
        store.attach_compulsion(entry.id, "Checked once")
        assert store.get(entry.id).compulsion == "Checked once"

    def test_empty_compulsion_ignored(self, store: JournalStore) -> None:
        entry = store.add_entry("Door unlocked?")
        assert store.attach_compulsion(entry.id, "  ") is None
        assert store.get(entry.id).compulsion is None

    def test_unknown_id_leaves_store_unchanged(self, store: JournalStore) -> None:
        store.add_entry("First")
        store.add_entry("Second")
        before = store.entries
        assert store.attach_compulsion("no-such-id", "Washed") is None
        assert store.entries == before

    def test_id_stable(self, store: JournalStore) -> None:
        entry = store.add_entry("Stable")
        store.attach_compulsion(entry.id, "Something")
        assert store.entries[0].id == entry.id


class TestDelete:
    def test_delete_entry(self, store: JournalStore) -> None:
        for text in ("a", "b", "c"):
            store.add_entry(text)
        removed = store.delete_entry(1)
        assert removed is not None and removed.obsession == "b"
        assert [e.obsession for e in store.entries] == ["a", "c"]

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_delete_out_of_range(self, store: JournalStore, index: int) -> None:
        for text in ("a", "b", "c"):
            store.add_entry(text)
        assert store.delete_entry(index) is None
        assert len(store) == 3

    def test_delete_all(self, conn, store: JournalStore) -> None:
        store.add_entry("a")
        store.add_entry("b")
        assert store.delete_all() == 2
        assert len(store) == 0
        reloaded = JournalStore(conn)
        reloaded.load()
        assert reloaded.entries == []


class TestPersistence:
    def test_round_trip(self, conn, store: JournalStore) -> None:
        first = store.add_entry("Contamination worry")
        store.add_entry("Symmetry urge")
        store.attach_compulsion(first.id, "Washed hands")

        reloaded = JournalStore(conn)
        assert reloaded.load() is True
        assert reloaded.entries == store.entries

    def test_round_trip_explicit_entries(self, conn) -> None:
        entries = [
            JournalEntry(id="1", obsession="One", compulsion=None),
            JournalEntry(id="2", obsession="Two", compulsion="Counted"),
            JournalEntry(id="3", obsession="Three é中", compulsion=""),
        ]
        store = JournalStore(conn)
        store._entries = list(entries)
        store.save()
        reloaded = JournalStore(conn)
        reloaded.load()
        assert reloaded.entries == entries

    def test_load_without_blob(self, store: JournalStore) -> None:
        assert store.load() is False
        assert store.entries == []

    def test_load_corrupt_blob_keeps_entries(self, conn, store: JournalStore) -> None:
        store.add_entry("Keep me")
        db.put_blob(conn, JOURNAL_KEY, "not valid json{{{")
        assert store.load() is False
        assert [e.obsession for e in store.entries] == ["Keep me"]

    def test_load_wrong_shape(self, conn, store: JournalStore) -> None:
        db.put_blob(conn, JOURNAL_KEY, '["just a string"]')
        assert store.load() is False
        assert store.entries == []

    def test_load_duplicate_ids_rejected(self, conn, store: JournalStore) -> None:
        store.add_entry("Keep me")
        db.put_blob(
            conn, JOURNAL_KEY,
            '[{"id": "x", "obsession": "One", "compulsion": null},'
            ' {"id": "x", "obsession": "Two", "compulsion": null}]',
        )
        assert store.load() is False
        assert [e.obsession for e in store.entries] == ["Keep me"]

    def test_custom_key(self, conn) -> None:
        a = JournalStore(conn, key="a")
        b = JournalStore(conn, key="b")
        a.add_entry("only in a")
        b.load()
        assert b.entries == []


class TestObservers:
    def test_notified_on_mutation(self, store: JournalStore) -> None:
        seen: list[int] = []
        store.subscribe(lambda s: seen.append(len(s)))
        entry = store.add_entry("x")
        store.attach_compulsion(entry.id, "y")
        store.delete_entry(0)
        assert seen == [1, 1, 0]

    def test_not_notified_on_ignored_input(self, store: JournalStore) -> None:
        seen: list[int] = []
        store.subscribe(lambda s: seen.append(len(s)))
        store.add_entry("")
        store.attach_compulsion("missing", "y")
        store.delete_entry(5)
        assert seen == []

    def test_unsubscribe(self, store: JournalStore) -> None:
        seen: list[int] = []
        callback = lambda s: seen.append(len(s))  # noqa: E731
        store.subscribe(callback)
        store.unsubscribe(callback)
        store.add_entry("x")
        assert seen == []
