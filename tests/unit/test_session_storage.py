"""Tests for regforms/lib/storage.py session stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from regforms.lib.errors import PersistenceError
from regforms.lib.settings import FormSettings
from regforms.lib.storage import (
    FileSessionStore,
    MemorySessionStore,
    NullSessionStore,
    SessionStore,
    create_session_store,
)


class TestMemorySessionStore:
    def test_round_trip_and_remove(self) -> None:
        store = MemorySessionStore()
        store.set_item("team-form-storage", "{}")

        assert store.get_item("team-form-storage") == "{}"
        assert len(store) == 1

        store.remove_item("team-form-storage")
        assert store.get_item("team-form-storage") is None

    def test_remove_missing_key_is_noop(self) -> None:
        MemorySessionStore().remove_item("missing")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemorySessionStore(), SessionStore)
        assert isinstance(NullSessionStore(), SessionStore)


class TestNullSessionStore:
    def test_keeps_nothing(self) -> None:
        store = NullSessionStore()
        store.set_item("k", "v")
        assert store.get_item("k") is None


class TestFileSessionStore:
    def test_writes_one_file_per_key(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path, "session-1")
        store.set_item("team-form-storage", '{"version": 0}')

        path = tmp_path / "session-1" / "team-form-storage.json"
        assert path.read_text(encoding="utf-8") == '{"version": 0}'
        assert store.get_item("team-form-storage") == '{"version": 0}'
        assert store.keys() == ["team-form-storage"]

    def test_overwrite_leaves_no_temp_files(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path, "s")
        store.set_item("k", "one")
        store.set_item("k", "two")

        assert store.get_item("k") == "two"
        assert [p.name for p in (tmp_path / "s").iterdir()] == ["k.json"]

    def test_missing_entry_is_none(self, tmp_path: Path) -> None:
        assert FileSessionStore(tmp_path, "s").get_item("nothing") is None

    def test_unsafe_names_are_sanitized(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path, "../escape")
        store.set_item("a/b", "x")

        assert store.session_dir.parent == tmp_path
        assert store.get_item("a/b") == "x"

    def test_clear_removes_all_entries(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path, "s")
        store.set_item("a", "1")
        store.set_item("b", "2")

        assert store.clear() == 2
        assert store.keys() == []

    def test_requires_session_id(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            FileSessionStore(tmp_path, "")

    def test_write_failure_raises_persistence_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory", encoding="utf-8")
        store = FileSessionStore(blocker, "s")

        with pytest.raises(PersistenceError) as exc_info:
            store.set_item("k", "v")
        assert exc_info.value.key == "k"


class TestCreateSessionStore:
    def test_memory_default(self) -> None:
        assert isinstance(create_session_store(FormSettings()), MemorySessionStore)

    def test_none_backend(self) -> None:
        settings = FormSettings(storage_backend="none")
        assert isinstance(create_session_store(settings), NullSessionStore)

    def test_non_interactive_context_never_stores(self) -> None:
        settings = FormSettings(storage_backend="file", execution_context="non_interactive")
        assert isinstance(create_session_store(settings, "s"), NullSessionStore)

    def test_file_backend(self, tmp_path: Path) -> None:
        settings = FormSettings(storage_backend="file", storage_dir=str(tmp_path))
        store = create_session_store(settings, "abc")

        assert isinstance(store, FileSessionStore)
        assert store.session_dir == (tmp_path / "abc").resolve()

    def test_file_backend_needs_session(self) -> None:
        settings = FormSettings(storage_backend="file")
        with pytest.raises(ValueError):
            create_session_store(settings)
