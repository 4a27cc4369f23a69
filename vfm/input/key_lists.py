"""Key handling for the marker list and program ("open with") popups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..runtime import effects
from ..runtime.effects import Effect
from .key_input import begin_input
from .keys import KeyMap, is_text_key
from .modes import InputAction, InputActionKind

if TYPE_CHECKING:
    from ..runtime.session import Session


class MarkerListKeyHandler:
    def __init__(self, session: Session, keymap: KeyMap) -> None:
        self.session = session
        self._bindings = keymap.dispatcher(
            "marker_list",
            {
                "close": session.close_marker_list,
                "up": lambda: self._move(-1),
                "down": lambda: self._move(1),
                "open": self._open,
                "rename": lambda: self._edit_selected(InputActionKind.RENAME_MARKER),
                "edit_path": lambda: self._edit_selected(InputActionKind.EDIT_MARKER_PATH),
                "delete": self._delete,
                "add": lambda: begin_input(session, InputAction(InputActionKind.CREATE_MARKER_NAME)),
                "search": lambda: begin_input(session, InputAction(InputActionKind.MARKER_SEARCH)),
            },
        )

    def handle(self, key: str) -> Effect:
        handled = self._bindings.dispatch(key)
        return handled if handled is not None else effects.NONE

    def _selected(self) -> tuple[str, object] | None:
        markers = self.session.state.marker_list
        return markers.selected_entry() if markers is not None else None

    def _move(self, delta: int) -> Effect:
        markers = self.session.state.marker_list
        if markers is None:
            return effects.NONE
        markers.move_selection(delta)
        return effects.REDRAW

    def _open(self) -> Effect:
        selected = self._selected()
        if selected is None:
            return effects.NONE
        name, _path = selected
        self.session.close_marker_list()
        return self.session.jump_to_marker(name)

    def _edit_selected(self, kind: InputActionKind) -> Effect:
        selected = self._selected()
        if selected is None:
            return effects.NONE
        return begin_input(self.session, InputAction(kind, marker_name=selected[0]))

    def _delete(self) -> Effect:
        selected = self._selected()
        if selected is None:
            return effects.NONE
        return self.session.remove_marker(selected[0])


class ProgramListKeyHandler:
    """Navigation keys are bound; any other printable key edits the filter."""

    def __init__(self, session: Session, keymap: KeyMap) -> None:
        self.session = session
        self._bindings = keymap.dispatcher(
            "program_list",
            {
                "close": session.close_program_list,
                "up": lambda: self._move(-1),
                "down": lambda: self._move(1),
                "open": self._open,
                "backspace": self._backspace,
            },
        )

    def handle(self, key: str) -> Effect:
        handled = self._bindings.dispatch(key)
        if handled is not None:
            return handled
        programs = self.session.state.program_list
        if programs is not None and is_text_key(key):
            programs.update_filter(programs.filter + key)
            return effects.REDRAW
        return effects.NONE

    def _move(self, delta: int) -> Effect:
        programs = self.session.state.program_list
        if programs is None:
            return effects.NONE
        programs.move_selection(delta)
        return effects.REDRAW

    def _backspace(self) -> Effect:
        programs = self.session.state.program_list
        if programs is None or not programs.filter:
            return effects.NONE
        programs.update_filter(programs.filter[:-1])
        return effects.REDRAW

    def _open(self) -> Effect:
        programs = self.session.state.program_list
        program = programs.selected_entry() if programs is not None else None
        if program is None:
            return effects.NONE
        self.session.close_program_list()
        return self.session.open_with(program)
