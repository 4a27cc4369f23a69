"""Filesystem adapter used by listing, preview and mutation jobs.

Every function here may block on disk I/O, so callers run them from
background jobs rather than from the event loop thread.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """One directory entry as shown in a listing pane."""

    name: str
    path: Path
    is_dir: bool
    permissions: str = ""
    owner: str = ""


@dataclass(frozen=True)
class FileMetadata:
    """Human-readable stat summary shown in the metadata bar."""

    permissions: str
    owner: str
    created: str | None
    modified: str | None
    accessed: str | None


def entry_sort_key(entry: FileEntry) -> tuple[bool, str]:
    """Directories first, then case-insensitive name."""
    return (not entry.is_dir, entry.name.lower())


def sort_entries(entries: Iterable[FileEntry]) -> list[FileEntry]:
    return sorted(entries, key=entry_sort_key)


def is_hidden_name(name: str) -> bool:
    return name.startswith(".")


_PERMISSION_BITS = (
    (stat.S_IRUSR, "r"), (stat.S_IWUSR, "w"), (stat.S_IXUSR, "x"),
    (stat.S_IRGRP, "r"), (stat.S_IWGRP, "w"), (stat.S_IXGRP, "x"),
    (stat.S_IROTH, "r"), (stat.S_IWOTH, "w"), (stat.S_IXOTH, "x"),
)


def format_permissions(mode: int) -> str:
    """Render plain rwx triplets; setuid, setgid and sticky bits are not shown."""
    return "".join(char if mode & bit else "-" for bit, char in _PERMISSION_BITS)


def format_owner(st: os.stat_result) -> str:
    return f"{st.st_uid}:{st.st_gid}"


def _format_time(timestamp: float | None) -> str | None:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp).astimezone().isoformat(timespec="seconds")
    except (OverflowError, OSError, ValueError):
        return None


def iter_directory(path: Path) -> Iterator[FileEntry]:
    """Yield entries of ``path`` in filesystem order.

    Raises ``OSError`` when the directory itself cannot be opened. Entries
    whose stat fails mid-scan are skipped.
    """
    with os.scandir(path) as it:
        for dirent in it:
            try:
                is_dir = dirent.is_dir(follow_symlinks=True)
                st = dirent.stat(follow_symlinks=False)
            except OSError as exc:
                logger.debug("skipping %s: %s", dirent.path, exc)
                continue
            yield FileEntry(
                name=dirent.name,
                path=Path(dirent.path),
                is_dir=is_dir,
                permissions=format_permissions(st.st_mode),
                owner=format_owner(st),
            )


def scan_directory(path: Path) -> list[FileEntry]:
    """Return sorted entries of ``path``, or an empty list when unreadable."""
    try:
        return sort_entries(iter_directory(path))
    except OSError as exc:
        logger.debug("cannot list %s: %s", path, exc)
        return []


def read_prefix(path: Path, limit: int) -> bytes:
    with path.open("rb") as handle:
        return handle.read(limit)


def file_metadata(st: os.stat_result) -> FileMetadata:
    created = getattr(st, "st_birthtime", None)
    return FileMetadata(
        permissions=format_permissions(st.st_mode),
        owner=format_owner(st),
        created=_format_time(created),
        modified=_format_time(st.st_mtime),
        accessed=_format_time(st.st_atime),
    )


def create_file(path: Path) -> None:
    """Create an empty file, failing if anything already exists at ``path``."""
    with path.open("x"):
        pass


def create_dir(path: Path) -> None:
    path.mkdir(parents=True)


def remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def rename_path(source: Path, target: Path) -> None:
    if target.exists():
        raise FileExistsError(f"{target.name} already exists")
    source.rename(target)


def copy_recursively(source: Path, target: Path) -> None:
    """Copy a file or a directory tree; symlinks are copied as links."""
    if target.exists():
        raise FileExistsError(f"{target.name} already exists")
    if source.is_dir() and not source.is_symlink():
        shutil.copytree(source, target, symlinks=True)
    else:
        shutil.copy2(source, target, follow_symlinks=False)


def move_path(source: Path, target: Path) -> None:
    if target.exists():
        raise FileExistsError(f"{target.name} already exists")
    shutil.move(str(source), str(target))
