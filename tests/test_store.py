"""Tests for history stores."""

import sqlite3
from datetime import datetime

import pytest

from contextchat.exceptions import StorageError
from contextchat.session import MemoryHistoryStore, SQLiteHistoryStore
from contextchat.session.models import Message


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteHistoryStore(tmp_path / "history.db")


class TestMemoryStore:
    def test_empty_load(self):
        assert MemoryHistoryStore().load() == []

    def test_save_replaces(self, history):
        store = MemoryHistoryStore()
        store.save("default", history)
        store.save("default", history[:2])
        assert store.load() == history[:2]

    def test_load_returns_copy(self, history):
        store = MemoryHistoryStore()
        store.save("default", history)
        store.load().clear()
        assert store.load() == history

    def test_clear(self, history):
        store = MemoryHistoryStore()
        store.save("default", history)
        store.clear()
        assert store.load() == []


class TestSQLiteStore:
    def test_round_trip_preserves_order(self, sqlite_store, history):
        sqlite_store.save("default", history)
        assert sqlite_store.load() == history

    def test_images_persisted(self, sqlite_store):
        msg = Message.user("look", image="data:image/jpeg;base64,AAAA",
                           timestamp=datetime(2024, 1, 1, 8, 0))
        sqlite_store.save("default", [msg])
        assert sqlite_store.load()[0].image == msg.image

    def test_save_replaces_previous(self, sqlite_store, history):
        sqlite_store.save("default", history)
        sqlite_store.save("default", history[5:])
        assert sqlite_store.load() == history[5:]

    def test_conversations_isolated(self, sqlite_store, history):
        sqlite_store.save("a", history[:1])
        sqlite_store.save("b", history[1:3])
        sqlite_store.clear("a")
        assert sqlite_store.load("a") == []
        assert sqlite_store.load("b") == history[1:3]

    def test_persists_across_instances(self, tmp_path, history):
        SQLiteHistoryStore(tmp_path / "h.db").save("default", history)
        assert SQLiteHistoryStore(tmp_path / "h.db").load() == history

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "h.db"
        SQLiteHistoryStore(path)
        assert path.exists()

    def test_corrupt_rows_are_discarded(self, sqlite_store, history):
        sqlite_store.save("default", history)
        conn = sqlite3.connect(sqlite_store.db_path)
        conn.execute("UPDATE messages SET timestamp = 'not a date' WHERE position = 0")
        conn.commit()
        conn.close()

        assert sqlite_store.load() == []
        assert sqlite_store.load() == []

    def test_unknown_role_is_discarded(self, sqlite_store, history):
        sqlite_store.save("default", history)
        conn = sqlite3.connect(sqlite_store.db_path)
        conn.execute("UPDATE messages SET role = 'robot'")
        conn.commit()
        conn.close()

        assert sqlite_store.load() == []

    def test_unopenable_database_raises(self, tmp_path):
        path = tmp_path / "dir.db"
        path.mkdir()
        with pytest.raises(StorageError):
            SQLiteHistoryStore(path)
