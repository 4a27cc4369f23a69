"""Background job factories.

Each factory returns a ``Job`` for ``TaskRunner.spawn``. Jobs never touch
session state; they only read the filesystem and post tagged result events.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

import pyperclip

from .. import filesystem
from ..preview import load_preview
from .events import ActionCompleted, DirEntriesLoaded, ListingTarget, Notice, PreviewLoaded
from .tasks import Job, Post

logger = logging.getLogger(__name__)

DIR_BATCH_SIZE = 512


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


def list_directory_job(
    target: ListingTarget,
    listing_id: int,
    path: Path,
    batch_size: int = DIR_BATCH_SIZE,
) -> Job:
    """Stream ``path`` in batches, finishing with an empty ``done`` batch.

    A directory that cannot be opened produces just the final empty batch.
    """

    def job(post: Post) -> None:
        batch: list[filesystem.FileEntry] = []
        try:
            for entry in filesystem.iter_directory(path):
                batch.append(entry)
                if len(batch) >= batch_size:
                    post(DirEntriesLoaded(listing_id, target, tuple(batch), False))
                    batch = []
        except OSError as exc:
            logger.debug("listing %s failed: %s", path, exc)
        if batch:
            post(DirEntriesLoaded(listing_id, target, tuple(batch), False))
        post(DirEntriesLoaded(listing_id, target, (), True))

    return job


def preview_job(request_id: int, path: Path, *, check_mismatch: bool) -> Job:
    def job(post: Post) -> None:
        try:
            preview = load_preview(path, check_mismatch=check_mismatch)
        except OSError as exc:
            post(PreviewLoaded(request_id, path, error=f"Cannot preview {path.name}: {_describe(exc)}"))
            return
        post(PreviewLoaded(request_id, path, preview=preview))

    return job


def create_file_job(path: Path) -> Job:
    def job(post: Post) -> None:
        try:
            filesystem.create_file(path)
        except OSError as exc:
            post(ActionCompleted(error=f"Create file failed: {_describe(exc)}"))
            return
        post(ActionCompleted(select=path))

    return job


def create_dir_job(path: Path) -> Job:
    def job(post: Post) -> None:
        try:
            filesystem.create_dir(path)
        except OSError as exc:
            post(ActionCompleted(error=f"Create directory failed: {_describe(exc)}"))
            return
        post(ActionCompleted(select=path))

    return job


def rename_job(source: Path, target: Path) -> Job:
    def job(post: Post) -> None:
        try:
            filesystem.rename_path(source, target)
        except OSError as exc:
            post(ActionCompleted(select=source, error=f"Rename failed: {_describe(exc)}"))
            return
        post(ActionCompleted(select=target))

    return job


def delete_job(path: Path) -> Job:
    def job(post: Post) -> None:
        try:
            filesystem.remove_path(path)
        except OSError as exc:
            post(ActionCompleted(select=path, error=f"Delete failed: {_describe(exc)}"))
            return
        post(ActionCompleted())

    return job


def paste_job(op: str, source: Path, destination_dir: Path) -> Job:
    """Copy or move ``source`` into ``destination_dir`` under the same name."""
    target = destination_dir / source.name

    def job(post: Post) -> None:
        try:
            if op == "cut":
                filesystem.move_path(source, target)
            else:
                filesystem.copy_recursively(source, target)
        except OSError as exc:
            post(ActionCompleted(error=f"Paste failed: {_describe(exc)}"))
            return
        post(ActionCompleted(select=target))

    return job


def _default_opener() -> str:
    return "open" if sys.platform == "darwin" else "xdg-open"


def open_default_job(path: Path) -> Job:
    def job(post: Post) -> None:
        try:
            subprocess.Popen(
                [_default_opener(), str(path)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            post(Notice(f"Failed to open {path.name}: {_describe(exc)}"))

    return job


def copy_path_job(path: Path) -> Job:
    def job(post: Post) -> None:
        try:
            pyperclip.copy(str(path))
        except pyperclip.PyperclipException as exc:
            post(Notice(f"Clipboard unavailable: {exc}"))
            return
        post(Notice(f"Copied path: {path}"))

    return job
