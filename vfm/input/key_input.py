"""Text-input mode: prefill, live editing, commit and cancel per action."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..runtime import effects
from ..runtime.effects import Effect
from ..runtime.producers import create_dir_job, create_file_job, delete_job, rename_job
from .keys import KeyMap, is_text_key
from .modes import InputAction, InputActionKind, InputMode

if TYPE_CHECKING:
    from ..runtime.session import Session

K = InputActionKind


def initial_buffer(session: Session, action: InputAction) -> str:
    """Return the text an input of ``action`` starts with."""
    state = session.state
    kind = action.kind
    if kind is K.SEARCH:
        return state.filter
    if kind is K.MARKER_SEARCH:
        return state.marker_list.filter if state.marker_list is not None else ""
    if kind is K.RENAME:
        return action.target.name if action.target is not None else ""
    if kind is K.RENAME_MARKER:
        return action.marker_name or ""
    if kind is K.EDIT_MARKER_PATH:
        existing = session.markers.get(action.marker_name or "")
        return str(existing) if existing is not None else ""
    if kind is K.CREATE_MARKER_PATH:
        return str(state.current_dir)
    return ""


def begin_input(session: Session, action: InputAction) -> Effect:
    return session.begin_input(action, initial_buffer(session, action))


def apply_live_edit(session: Session, mode: InputMode) -> Effect:
    """Propagate a buffer change for inputs that filter as you type."""
    if mode.action.kind is K.SEARCH:
        return session.apply_filter(mode.buffer).merge(effects.REDRAW)
    if mode.action.kind is K.MARKER_SEARCH and session.state.marker_list is not None:
        session.state.marker_list.update_filter(mode.buffer)
    return effects.REDRAW


def cancel_input(session: Session, mode: InputMode) -> Effect:
    effect = effects.REDRAW
    if mode.action.kind is K.SEARCH:
        effect = session.clear_filter().merge(effects.REDRAW)
    elif mode.action.kind is K.MARKER_SEARCH and session.state.marker_list is not None:
        session.state.marker_list.clear_filter()
    session.finish_input()
    return effect


def _spawn_in_current_dir(session: Session, name: str, make_job, label: str) -> Effect:
    if not name:
        return effects.REDRAW
    path = session.state.current_dir / name
    return session.spawn_action(make_job(path), name=f"{label} {path}")


def commit_input(session: Session, mode: InputMode) -> Effect:
    """Apply the input and leave input mode.

    Create-marker is two-phase: committing the name replaces the input with
    the path phase instead of finishing.
    """
    action = mode.action
    text = mode.buffer.strip()
    kind = action.kind

    if kind is K.CREATE_MARKER_NAME:
        if not text:
            session.finish_input()
            return effects.REDRAW
        return begin_input(session, InputAction(K.CREATE_MARKER_PATH, marker_name=text))

    session.finish_input()
    if kind in (K.SEARCH, K.MARKER_SEARCH):
        return effects.REDRAW
    if kind is K.ADD_FILE:
        return _spawn_in_current_dir(session, text, create_file_job, "create file")
    if kind is K.ADD_DIR:
        return _spawn_in_current_dir(session, text, create_dir_job, "create dir")
    if kind is K.RENAME:
        source = action.target
        if source is None or not text or text == source.name:
            return effects.REDRAW
        return session.spawn_action(rename_job(source, source.parent / text), name=f"rename {source}")
    if kind is K.CONFIRM_DELETE:
        if action.target is None:
            return effects.REDRAW
        return session.spawn_action(delete_job(action.target), name=f"delete {action.target}")
    if kind is K.SET_MARKER:
        return session.set_marker(text)
    if kind is K.JUMP_MARKER:
        return session.jump_to_marker(text)
    if kind is K.RENAME_MARKER:
        return session.rename_marker(action.marker_name or "", text)
    if kind in (K.EDIT_MARKER_PATH, K.CREATE_MARKER_PATH):
        if not text or not action.marker_name:
            return effects.REDRAW
        return session.set_marker(action.marker_name, Path(text).expanduser())
    raise ValueError(f"unhandled input action {kind}")


class InputKeyHandler:
    """Line editing for text inputs plus the y/n confirmation prompt."""

    def __init__(self, session: Session, keymap: KeyMap) -> None:
        self.session = session
        self._edit = keymap.dispatcher(
            "input",
            {
                "submit": lambda: commit_input(session, self._mode()),
                "cancel": lambda: cancel_input(session, self._mode()),
                "backspace": self._backspace,
            },
        )
        self._confirm = keymap.dispatcher(
            "confirm",
            {
                "yes": lambda: commit_input(session, self._mode()),
                "no": lambda: cancel_input(session, self._mode()),
            },
        )

    def _mode(self) -> InputMode:
        mode = self.session.state.mode
        assert isinstance(mode, InputMode)
        return mode

    def _backspace(self) -> Effect:
        mode = self._mode()
        if not mode.buffer:
            return effects.NONE
        mode.buffer = mode.buffer[:-1]
        return apply_live_edit(self.session, mode)

    def handle(self, key: str) -> Effect:
        mode = self._mode()
        if mode.action.kind is K.CONFIRM_DELETE:
            handled = self._confirm.dispatch(key)
            return handled if handled is not None else effects.NONE
        handled = self._edit.dispatch(key)
        if handled is not None:
            return handled
        if is_text_key(key):
            mode.buffer += key
            return apply_live_edit(self.session, mode)
        return effects.NONE
