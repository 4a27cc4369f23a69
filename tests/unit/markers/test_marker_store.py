"""Tests for the marker store and its detached persistence."""

from __future__ import annotations

import json
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from vfm import markers as markers_module
from vfm.markers import MarkerStore


class MarkerStoreTests(unittest.TestCase):
    def test_rename_moves_path_under_new_name(self) -> None:
        store = MarkerStore(Path("unused.json"), {"a": Path("/x"), "b": Path("/y")})

        self.assertTrue(store.rename("a", "c"))

        self.assertEqual(store.snapshot(), {"b": Path("/y"), "c": Path("/x")})

    def test_rename_to_same_name_is_a_no_op(self) -> None:
        store = MarkerStore(Path("unused.json"), {"a": Path("/x")})

        self.assertFalse(store.rename("a", "a"))
        self.assertEqual(store.snapshot(), {"a": Path("/x")})

    def test_rename_missing_marker_returns_false(self) -> None:
        store = MarkerStore(Path("unused.json"), {"a": Path("/x")})

        self.assertFalse(store.rename("missing", "b"))
        self.assertEqual(store.snapshot(), {"a": Path("/x")})

    def test_rename_overwrites_existing_target(self) -> None:
        store = MarkerStore(Path("unused.json"), {"a": Path("/x"), "b": Path("/y")})

        self.assertTrue(store.rename("a", "b"))
        self.assertEqual(store.snapshot(), {"b": Path("/x")})

    def test_remove_reports_presence(self) -> None:
        store = MarkerStore(Path("unused.json"), {"a": Path("/x")})
        self.assertTrue(store.remove("a"))
        self.assertFalse(store.remove("a"))

    def test_entries_sorted_case_insensitively(self) -> None:
        store = MarkerStore(Path("unused.json"), {"b": Path("/b"), "A": Path("/a"), "c": Path("/c")})
        self.assertEqual([name for name, _ in store.entries()], ["A", "b", "c"])


class MarkerPersistenceTests(unittest.TestCase):
    def test_missing_file_loads_empty_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = MarkerStore.load(Path(tmp) / "markers.json")
        self.assertEqual(len(store), 0)

    def test_corrupt_file_loads_empty_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "markers.json"
            path.write_text("{not json", encoding="utf-8")
            store = MarkerStore.load(path)
        self.assertEqual(len(store), 0)

    def test_load_trims_names_and_drops_invalid_entries(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "markers.json"
            path.write_text(
                json.dumps({"markers": {"  home ": "/home/me", "   ": "/tmp", "bad": 3}}),
                encoding="utf-8",
            )
            store = MarkerStore.load(path)
        self.assertEqual(store.snapshot(), {"home": Path("/home/me")})

    def test_save_task_persists_snapshot_taken_at_call_time(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "markers.json"
            store = MarkerStore(path)
            store.set("proj", Path("/src/proj"))
            task = store.save_task()
            store.set("later", Path("/later"))

            task()

            reloaded = MarkerStore.load(path)
            self.assertEqual(reloaded.snapshot(), {"proj": Path("/src/proj")})
            self.assertEqual(sorted(p.name for p in path.parent.iterdir()), ["markers.json"])

    def test_older_snapshot_run_last_does_not_overwrite_newer(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "markers.json"
            store = MarkerStore(path)
            store.set("a", Path("/a"))
            older = store.save_task()
            store.remove("a")
            store.set("b", Path("/b"))
            newer = store.save_task()

            newer()
            older()

            self.assertEqual(MarkerStore.load(path).snapshot(), {"b": Path("/b")})

    def test_concurrent_saves_keep_latest_snapshot(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "markers.json"
            store = MarkerStore(path)
            store.set("a", Path("/a"))
            older = store.save_task()
            store.set("b", Path("/b"))
            newer = store.save_task()

            release = threading.Event()
            writing = threading.Event()
            real_write = markers_module.write_markers

            def slow_write(target: Path, snapshot: dict[str, Path]) -> None:
                if "b" not in snapshot:
                    writing.set()
                    release.wait(timeout=5)
                real_write(target, snapshot)

            with mock.patch.object(markers_module, "write_markers", side_effect=slow_write):
                first = threading.Thread(target=older)
                first.start()
                self.assertTrue(writing.wait(timeout=5))
                second = threading.Thread(target=newer)
                second.start()
                release.set()
                first.join(timeout=5)
                second.join(timeout=5)

            self.assertEqual(MarkerStore.load(path).snapshot(), {"a": Path("/a"), "b": Path("/b")})
            self.assertEqual(sorted(p.name for p in path.parent.iterdir()), ["markers.json"])

    def test_default_path_comes_from_module_constant(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "markers.json"
            with mock.patch.object(markers_module, "MARKERS_PATH", path):
                store = MarkerStore.load()
                store.set("x", Path("/x"))
                store.save_task()()
            self.assertTrue(path.exists())

    def test_save_failure_is_logged_not_raised(self) -> None:
        store = MarkerStore(Path("/proc/definitely-not-writable/markers.json"), {"a": Path("/a")})
        with self.assertLogs("vfm.markers", level="WARNING"):
            store.save_task()()


if __name__ == "__main__":
    unittest.main()
