"""Session controller: the only code that mutates ``SessionState``.

Every method runs on the event loop thread. Background work is started
through the task runner and its results come back as events which are
checked against the listing epoch, the preview epoch or the image version
before being applied.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Literal, Protocol

from .. import filtering
from ..config import AppConfig
from ..filesystem import FileEntry, is_hidden_name, sort_entries
from ..image.protocol import ImageProtocol, Rect, ResizeMode
from ..image.worker import ImageHandle, ImageJob
from ..input.modes import InputAction, InputMode, MarkerListMode, NormalMode, ProgramListMode
from ..markers import MarkerStore
from ..programs import ProgramEntry
from ..state import ClipboardEntry, SessionState
from ..ui_state import PopupState, UiState
from . import effects
from .effects import Effect, OpenWithAction, ShellAction
from .events import ActionCompleted, DirEntriesLoaded, ImageRendered, Notice, PreviewLoaded, TerminalResized
from .producers import copy_path_job, list_directory_job, open_default_job, paste_job, preview_job
from .tasks import Job

logger = logging.getLogger(__name__)

TOGGLE_FIELDS = frozenset(
    {
        "show_metadata",
        "show_permissions",
        "show_dates",
        "show_owner",
        "show_list_permissions",
        "show_list_owner",
    }
)
# Fields shown inside the metadata bar; toggling one also reveals the bar.
METADATA_BAR_FIELDS = frozenset({"show_permissions", "show_dates", "show_owner"})


class TaskSpawner(Protocol):
    def spawn(self, job: Job, name: str = ...) -> object: ...

    def spawn_detached(self, task, name: str = ...) -> object: ...


class ImageSubmitter(Protocol):
    def submit(self, job: ImageJob) -> bool: ...


class ProtocolFactory(Protocol):
    def new_protocol(self, image) -> ImageProtocol: ...


def _entry_name(entry: FileEntry) -> str:
    return entry.name


def _entry_path(entry: FileEntry) -> Path:
    return entry.path


class Session:
    """Owns session state plus handles to every background service."""

    def __init__(
        self,
        state: SessionState,
        *,
        config: AppConfig,
        markers: MarkerStore,
        tasks: TaskSpawner,
        image_worker: ImageSubmitter,
        picker: ProtocolFactory,
        programs: Sequence[ProgramEntry] = (),
    ) -> None:
        self.state = state
        self.config = config
        self.markers = markers
        self.tasks = tasks
        self.image_worker = image_worker
        self.picker = picker
        self.programs = list(programs)
        self.resize_mode = ResizeMode.FIT

    @classmethod
    def create(cls, start_dir: Path, *, config: AppConfig, **services) -> Session:
        metadata = config.metadata_bar
        state = SessionState(
            current_dir=start_dir,
            show_hidden=config.show_hidden,
            show_metadata=metadata.enabled,
            show_permissions=metadata.show_permissions,
            show_dates=metadata.show_dates,
            show_owner=metadata.show_owner,
        )
        return cls(state, config=config, **services)

    # Selection

    def selected_entry(self) -> FileEntry | None:
        state = self.state
        if not state.filtered:
            return None
        position = filtering.clamp_selection(state.selected, len(state.filtered))
        return state.current_entries[state.filtered[position]]

    def selected_path(self) -> Path | None:
        entry = self.selected_entry()
        return None if entry is None else entry.path

    def _recompute_filter(self, preferred: Path | None) -> None:
        state = self.state
        state.filtered = filtering.filter_indices(state.current_entries, _entry_name, state.filter)
        state.selected = filtering.anchor_selection(
            state.current_entries, state.filtered, _entry_path, preferred
        )

    def move_selection(self, delta: int) -> Effect:
        state = self.state
        if not state.filtered:
            return effects.NONE
        position = filtering.clamp_selection(state.selected + delta, len(state.filtered))
        if position == state.selected:
            return effects.NONE
        state.selected = position
        # While a listing streams in, an explicit move becomes the anchor for the final sort.
        state.pending_selection = None if state.listing_done else self.selected_path()
        self.invalidate_preview()
        return effects.PREVIEW

    # Listing

    def start_listing(self, select: Path | None = None) -> None:
        """Restart both listings under a fresh epoch."""
        state = self.state
        if select is None:
            select = self.selected_path() if state.listing_done else state.pending_selection
        state.pending_selection = select
        state.listing_id += 1
        state.parent_entries = []
        state.current_entries = []
        state.filtered = []
        state.selected = 0
        state.listing_done = False
        self.invalidate_preview()

        listing_id = state.listing_id
        current = state.current_dir
        self.tasks.spawn(list_directory_job("current", listing_id, current), name=f"list {current}")
        parent = current.parent
        if parent != current:
            self.tasks.spawn(list_directory_job("parent", listing_id, parent), name=f"list {parent}")

    def apply_dir_entries(self, event: DirEntriesLoaded) -> Effect:
        state = self.state
        if event.listing_id != state.listing_id:
            logger.debug("dropping listing batch for epoch %d (now %d)", event.listing_id, state.listing_id)
            return effects.NONE
        accepted = [entry for entry in event.entries if state.show_hidden or not is_hidden_name(entry.name)]

        if event.target == "parent":
            state.parent_entries.extend(accepted)
            if event.done:
                state.parent_entries = sort_entries(state.parent_entries)
            return effects.REDRAW

        previous = self.selected_path()
        state.current_entries.extend(accepted)
        if not event.done:
            self._recompute_filter(state.pending_selection)
            return effects.REDRAW

        state.current_entries = sort_entries(state.current_entries)
        state.listing_done = True
        preferred = state.pending_selection
        state.pending_selection = None
        self._recompute_filter(preferred)
        selected = self.selected_path()
        unpreviewed = selected is not None and state.preview is None and not state.preview_pending
        if selected != previous or unpreviewed:
            self.invalidate_preview()
            return effects.PREVIEW
        return effects.REDRAW

    def change_directory(self, path: Path, select: Path | None = None) -> Effect:
        self.state.current_dir = path
        self.state.filter = ""
        self.start_listing(select=select)
        return effects.REDRAW

    def navigate_parent(self) -> Effect:
        current = self.state.current_dir
        parent = current.parent
        if parent == current:
            return effects.NONE
        return self.change_directory(parent, select=current)

    def activate_selected(self) -> Effect:
        entry = self.selected_entry()
        if entry is None:
            return effects.NONE
        if entry.is_dir:
            return self.change_directory(entry.path)
        self.tasks.spawn(open_default_job(entry.path), name=f"open {entry.path}")
        self.set_status(f"Opening {entry.name}")
        return effects.REDRAW

    def toggle_hidden(self) -> Effect:
        self.state.show_hidden = not self.state.show_hidden
        self.set_status("Hidden files shown" if self.state.show_hidden else "Hidden files hidden")
        self.start_listing()
        return effects.REDRAW

    def toggle_setting(self, field: str) -> Effect:
        if field not in TOGGLE_FIELDS:
            raise ValueError(f"unknown toggle {field!r}")
        setattr(self.state, field, not getattr(self.state, field))
        if field in METADATA_BAR_FIELDS:
            self.state.show_metadata = True
        return effects.REDRAW

    # Preview

    def invalidate_preview(self) -> None:
        state = self.state
        state.preview_request_id += 1
        state.preview = None
        state.preview_error = None
        state.preview_pending = False
        state.image = None

    def request_preview(self) -> None:
        """Start loading a preview for the current selection.

        The epoch moves even when nothing is selected so that any in-flight
        result for an earlier selection is discarded.
        """
        self.invalidate_preview()
        entry = self.selected_entry()
        if entry is None:
            return
        state = self.state
        state.preview_pending = True
        job = preview_job(state.preview_request_id, entry.path, check_mismatch=self.config.check_mismatch)
        self.tasks.spawn(job, name=f"preview {entry.path}")

    def apply_preview(self, event: PreviewLoaded) -> Effect:
        state = self.state
        if event.request_id != state.preview_request_id:
            logger.debug("dropping preview %d for %s (now %d)", event.request_id, event.path, state.preview_request_id)
            return effects.NONE
        state.preview_pending = False
        if event.preview is None:
            state.preview = None
            state.preview_error = event.error
            state.image = None
            return effects.REDRAW
        preview = event.preview
        image = preview.take_image()
        state.preview = preview
        state.preview_error = None
        if image is None:
            state.image = None
        else:
            state.image_version += 1
            state.image = ImageHandle(self.picker.new_protocol(image), state.image_version)
        return effects.REDRAW

    def install_image(self, event: ImageRendered) -> Effect:
        handle = self.state.image
        if handle is None or handle.version != event.version:
            logger.debug("dropping rendered image version %d", event.version)
            return effects.NONE
        handle.set_inner(event.protocol)
        return effects.REDRAW

    def render_image(self, area: Rect) -> str | None:
        handle = self.state.image
        if handle is None:
            return None
        return handle.render(area, self.resize_mode, self.image_worker)

    # Filter

    def apply_filter(self, query: str) -> Effect:
        state = self.state
        previous = self.selected_path()
        state.filter = query
        self._recompute_filter(previous if state.listing_done else state.pending_selection)
        if self.selected_path() != previous:
            self.invalidate_preview()
            return effects.PREVIEW
        return effects.REDRAW

    def clear_filter(self) -> Effect:
        if not self.state.filter:
            return effects.NONE
        return self.apply_filter("")

    # Background actions

    def spawn_action(self, job: Job, name: str) -> Effect:
        self.tasks.spawn(job, name=name)
        return effects.REDRAW

    def apply_action_completed(self, event: ActionCompleted) -> Effect:
        if event.error:
            self.set_status(event.error)
        self.start_listing(select=event.select)
        return effects.REDRAW

    def apply_notice(self, event: Notice) -> Effect:
        self.set_status(event.message)
        return effects.REDRAW

    def handle_resize(self, _event: TerminalResized) -> Effect:
        return effects.REDRAW

    def after_suspend(self, error: str | None) -> Effect:
        if error:
            self.set_status(error)
        self.start_listing()
        return effects.REDRAW

    def set_status(self, message: str | None) -> None:
        self.state.status_message = message

    # Clipboard

    def yank(self, op: Literal["cut", "copy"]) -> Effect:
        entry = self.selected_entry()
        if entry is None:
            self.set_status("Nothing selected")
            return effects.REDRAW
        self.state.clipboard = ClipboardEntry(op, entry.path)
        self.set_status(f"{'Cut' if op == 'cut' else 'Copied'} {entry.name}")
        return effects.REDRAW

    def paste(self) -> Effect:
        clip = self.state.clipboard
        if clip is None:
            self.set_status("Clipboard is empty")
            return effects.REDRAW
        if clip.op == "cut":
            self.state.clipboard = None
        return self.spawn_action(paste_job(clip.op, clip.path, self.state.current_dir), name="paste")

    def copy_selected_path(self) -> Effect:
        path = self.selected_path()
        if path is None:
            self.set_status("Nothing selected")
            return effects.REDRAW
        return self.spawn_action(copy_path_job(path), name="copy path")

    # Markers

    def persist_markers(self) -> None:
        self.tasks.spawn_detached(self.markers.save_task(), name="save markers")

    def set_marker(self, name: str, path: Path | None = None) -> Effect:
        name = name.strip()
        if not name:
            return effects.REDRAW
        self.markers.set(name, path if path is not None else self.state.current_dir)
        self.persist_markers()
        self.sync_marker_list(preferred=name)
        self.set_status(f"Marker '{name}' set")
        return effects.REDRAW

    def jump_to_marker(self, name: str) -> Effect:
        name = name.strip()
        path = self.markers.get(name)
        if path is None:
            self.set_status(f"No marker named '{name}'")
            return effects.REDRAW
        return self.change_directory(path)

    def rename_marker(self, old: str, new: str) -> Effect:
        new = new.strip()
        if new and self.markers.rename(old, new):
            self.persist_markers()
            self.sync_marker_list(preferred=new)
        return effects.REDRAW

    def remove_marker(self, name: str) -> Effect:
        if self.markers.remove(name):
            self.persist_markers()
            self.sync_marker_list()
        return effects.REDRAW

    def open_marker_list(self) -> Effect:
        self.state.marker_list = filtering.FilteredList(
            self.markers.entries(), filtering.marker_matcher, key_of=lambda item: item[0]
        )
        self.state.mode = MarkerListMode()
        return effects.REDRAW

    def close_marker_list(self) -> Effect:
        self.state.marker_list = None
        self.state.mode = NormalMode()
        return effects.REDRAW

    def sync_marker_list(self, preferred: str | None = None) -> None:
        if self.state.marker_list is not None:
            self.state.marker_list.replace_entries(self.markers.entries(), preferred)

    # Programs and external processes

    def open_program_list(self) -> Effect:
        if self.selected_entry() is None:
            self.set_status("Nothing selected")
            return effects.REDRAW
        self.state.program_list = filtering.FilteredList(
            self.programs,
            filtering.substring_matcher(lambda program: (program.name, str(program.path))),
            key_of=lambda program: program.path,
        )
        self.state.mode = ProgramListMode()
        return effects.REDRAW

    def close_program_list(self) -> Effect:
        self.state.program_list = None
        self.state.mode = NormalMode()
        return effects.REDRAW

    def open_with(self, program: ProgramEntry) -> Effect:
        entry = self.selected_entry()
        if entry is None:
            self.set_status("Nothing selected")
            return effects.REDRAW
        return Effect(redraw=True, suspend=OpenWithAction(program.path, entry.path, self.state.current_dir))

    def open_with_quick(self, slot: str) -> Effect:
        name = self.config.open_with_quick.get(slot)
        if name is None:
            self.set_status(f"No program bound to {slot}")
            return effects.REDRAW
        program = next((p for p in self.programs if p.name == name), None)
        if program is None:
            self.set_status(f"{name} not found on PATH")
            return effects.REDRAW
        return self.open_with(program)

    def open_shell(self) -> Effect:
        return Effect(redraw=True, suspend=ShellAction(self.state.current_dir))

    # Text input

    def begin_input(self, action: InputAction, buffer: str = "") -> Effect:
        self.state.mode = InputMode(action, buffer)
        return effects.REDRAW

    def finish_input(self) -> None:
        """Leave text input, returning to whichever popup is still open."""
        state = self.state
        if state.marker_list is not None:
            state.mode = MarkerListMode()
        elif state.program_list is not None:
            state.mode = ProgramListMode()
        else:
            state.mode = NormalMode()

    # Presentation

    def _popup(self) -> PopupState | None:
        state = self.state
        if state.marker_list is not None:
            markers = state.marker_list
            rows = tuple((name, str(path)) for name, path in markers.visible())
            return PopupState("Markers", rows, markers.selected, markers.filter)
        if state.program_list is not None:
            programs = state.program_list
            rows = tuple((program.name, str(program.path)) for program in programs.visible())
            return PopupState("Open with", rows, programs.selected, programs.filter)
        return None

    def ui_state(self) -> UiState:
        state = self.state
        parent_selected = next(
            (i for i, entry in enumerate(state.parent_entries) if entry.path == state.current_dir),
            None,
        )
        prompt = None
        if isinstance(state.mode, InputMode):
            prompt = state.mode.action.prompt() + state.mode.buffer
        preview = state.preview
        clipboard = None
        if state.clipboard is not None:
            clipboard = f"{state.clipboard.op}: {state.clipboard.path.name}"
        return UiState(
            current_dir=state.current_dir,
            parent_entries=tuple(state.parent_entries),
            parent_selected=parent_selected,
            entries=tuple(state.current_entries[i] for i in state.filtered),
            selected=state.selected,
            filter=state.filter,
            loading=not state.listing_done,
            preview_path=preview.path if preview is not None else None,
            preview_content=preview.content if preview is not None else None,
            preview_error=state.preview_error,
            preview_pending=state.preview_pending,
            mismatch=preview.mismatch if preview is not None else None,
            metadata=preview.metadata if preview is not None else None,
            has_image=state.image is not None,
            prompt=prompt,
            status=state.status_message,
            pending_prefix=state.pending_prefix.value if state.pending_prefix is not None else None,
            clipboard=clipboard,
            popup=self._popup(),
            show_metadata=state.show_metadata,
            show_permissions=state.show_permissions,
            show_dates=state.show_dates,
            show_owner=state.show_owner,
            show_list_permissions=state.show_list_permissions,
            show_list_owner=state.show_list_owner,
        )
