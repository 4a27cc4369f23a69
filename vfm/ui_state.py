"""Immutable per-frame snapshot handed from the session to the renderer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .classify import MismatchStatus
from .filesystem import FileEntry, FileMetadata
from .preview import PreviewContent


@dataclass(frozen=True)
class PopupState:
    title: str
    rows: tuple[tuple[str, str], ...]
    selected: int
    filter: str


@dataclass(frozen=True)
class UiState:
    current_dir: Path
    parent_entries: tuple[FileEntry, ...]
    parent_selected: int | None
    entries: tuple[FileEntry, ...]
    selected: int
    filter: str
    loading: bool
    preview_path: Path | None
    preview_content: PreviewContent | None
    preview_error: str | None
    preview_pending: bool
    mismatch: MismatchStatus | None
    metadata: FileMetadata | None
    has_image: bool
    prompt: str | None
    status: str | None
    pending_prefix: str | None
    clipboard: str | None
    popup: PopupState | None
    show_metadata: bool
    show_permissions: bool
    show_dates: bool
    show_owner: bool
    show_list_permissions: bool
    show_list_owner: bool
