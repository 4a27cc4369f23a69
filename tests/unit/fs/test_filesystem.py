"""Tests for the filesystem adapter.

Covers listing order, hidden-name detection and the mutation helpers used by
background action jobs.
"""

from __future__ import annotations

import os
import stat
import tempfile
import unittest
from pathlib import Path

from vfm import filesystem
from vfm.filesystem import FileEntry


def _entry(name: str, is_dir: bool) -> FileEntry:
    return FileEntry(name=name, path=Path("/x") / name, is_dir=is_dir)


class SortEntriesTests(unittest.TestCase):
    def test_directories_first_then_case_insensitive_names(self) -> None:
        entries = [
            _entry("b.txt", False),
            _entry("A", True),
            _entry("a.txt", False),
            _entry("Z", True),
        ]

        ordered = [entry.name for entry in filesystem.sort_entries(entries)]

        self.assertEqual(ordered, ["A", "Z", "a.txt", "b.txt"])

    def test_hidden_names_start_with_dot(self) -> None:
        self.assertTrue(filesystem.is_hidden_name(".git"))
        self.assertFalse(filesystem.is_hidden_name("git"))

    def test_format_permissions_drops_type_character(self) -> None:
        self.assertEqual(filesystem.format_permissions(stat.S_IFREG | 0o754), "rwxr-xr--")

    def test_format_permissions_ignores_special_bits(self) -> None:
        self.assertEqual(filesystem.format_permissions(stat.S_IFREG | stat.S_ISUID | 0o755), "rwxr-xr-x")
        self.assertEqual(filesystem.format_permissions(stat.S_IFDIR | stat.S_ISVTX | 0o777), "rwxrwxrwx")
        self.assertEqual(filesystem.format_permissions(stat.S_IFDIR | stat.S_ISGID | 0o640), "rw-r-----")


class ScanDirectoryTests(unittest.TestCase):
    def test_scan_reports_directories_and_follows_symlinks(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "sub").mkdir()
            (root / "file.txt").write_text("x", encoding="utf-8")
            os.symlink(root / "sub", root / "link")

            entries = {entry.name: entry for entry in filesystem.scan_directory(root)}

        self.assertTrue(entries["sub"].is_dir)
        self.assertTrue(entries["link"].is_dir)
        self.assertFalse(entries["file.txt"].is_dir)
        self.assertRegex(entries["file.txt"].owner, r"^\d+:\d+$")

    def test_scan_of_missing_directory_is_empty(self) -> None:
        self.assertEqual(filesystem.scan_directory(Path("/definitely/not/here")), [])

    def test_iter_directory_raises_for_missing_directory(self) -> None:
        with self.assertRaises(OSError):
            list(filesystem.iter_directory(Path("/definitely/not/here")))


class MutationTests(unittest.TestCase):
    def test_create_file_refuses_existing_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "new.txt"
            filesystem.create_file(target)
            self.assertTrue(target.is_file())
            with self.assertRaises(FileExistsError):
                filesystem.create_file(target)

    def test_copy_recursively_copies_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            source = root / "src"
            (source / "nested").mkdir(parents=True)
            (source / "nested" / "a.txt").write_text("alpha", encoding="utf-8")

            filesystem.copy_recursively(source, root / "dst")

            self.assertEqual((root / "dst" / "nested" / "a.txt").read_text(encoding="utf-8"), "alpha")
            self.assertTrue((source / "nested" / "a.txt").exists())

    def test_copy_and_rename_refuse_to_overwrite(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "a.txt").write_text("a", encoding="utf-8")
            (root / "b.txt").write_text("b", encoding="utf-8")

            with self.assertRaises(FileExistsError):
                filesystem.copy_recursively(root / "a.txt", root / "b.txt")
            with self.assertRaises(FileExistsError):
                filesystem.rename_path(root / "a.txt", root / "b.txt")
            self.assertEqual((root / "b.txt").read_text(encoding="utf-8"), "b")

    def test_remove_path_handles_files_and_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "dir" / "inner").mkdir(parents=True)
            (root / "file.txt").write_text("x", encoding="utf-8")

            filesystem.remove_path(root / "dir")
            filesystem.remove_path(root / "file.txt")

            self.assertEqual(list(root.iterdir()), [])

    def test_move_path_relocates_source(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "dest").mkdir()
            (root / "a.txt").write_text("a", encoding="utf-8")

            filesystem.move_path(root / "a.txt", root / "dest" / "a.txt")

            self.assertFalse((root / "a.txt").exists())
            self.assertTrue((root / "dest" / "a.txt").exists())


if __name__ == "__main__":
    unittest.main()
