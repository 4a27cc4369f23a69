"""Mutable session state owned by the event loop thread."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .filesystem import FileEntry
from .filtering import FilteredList
from .image.worker import ImageHandle
from .input.modes import Mode, NormalMode, PendingPrefix
from .preview import Preview
from .programs import ProgramEntry


@dataclass(frozen=True)
class ClipboardEntry:
    op: Literal["cut", "copy"]
    path: Path


@dataclass
class SessionState:
    """Everything the renderer and key handlers read.

    ``listing_id`` and ``preview_request_id`` are epochs: results tagged with
    an older value are discarded on arrival. ``selected`` indexes into
    ``filtered``, which in turn indexes into ``current_entries``.
    """

    current_dir: Path
    parent_entries: list[FileEntry] = field(default_factory=list)
    current_entries: list[FileEntry] = field(default_factory=list)
    listing_id: int = 0
    listing_done: bool = False
    filtered: list[int] = field(default_factory=list)
    selected: int = 0
    filter: str = ""
    show_hidden: bool = True
    mode: Mode = field(default_factory=NormalMode)
    pending_prefix: PendingPrefix | None = None
    clipboard: ClipboardEntry | None = None

    preview_request_id: int = 0
    preview: Preview | None = None
    preview_error: str | None = None
    preview_pending: bool = False
    pending_selection: Path | None = None
    image: ImageHandle | None = None
    image_version: int = 0

    marker_list: FilteredList[tuple[str, Path]] | None = None
    program_list: FilteredList[ProgramEntry] | None = None

    show_metadata: bool = False
    show_permissions: bool = True
    show_dates: bool = True
    show_owner: bool = True
    show_list_permissions: bool = False
    show_list_owner: bool = False

    status_message: str | None = None
