"""Normal-mode keyboard handling, including two-key prefixes."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from ..runtime import effects
from ..runtime.effects import Effect
from .key_input import initial_buffer
from .keys import KeyMap, is_text_key
from .modes import InputAction, InputActionKind, PendingPrefix

if TYPE_CHECKING:
    from ..runtime.session import Session


class NormalKeyHandler:
    """Dispatches Normal-mode keys through tables resolved at construction."""

    def __init__(self, session: Session, keymap: KeyMap) -> None:
        self.session = session
        self._bindings = keymap.dispatcher(
            "normal",
            {
                "quit": lambda: effects.EXIT,
                "up": lambda: session.move_selection(-1),
                "down": lambda: session.move_selection(1),
                "parent": session.navigate_parent,
                "open": session.activate_selected,
                "search": lambda: self._begin(InputActionKind.SEARCH),
                "clear_filter": session.clear_filter,
                "add": lambda: self._set_prefix(PendingPrefix.ADD),
                "rename": self._begin_rename,
                "delete": lambda: self._set_prefix(PendingPrefix.DELETE),
                "marker_set": lambda: self._begin(InputActionKind.SET_MARKER),
                "marker_jump": lambda: self._begin(InputActionKind.JUMP_MARKER),
                "marker_list": session.open_marker_list,
                "settings": lambda: self._set_prefix(PendingPrefix.SETTINGS),
                "view": lambda: self._set_prefix(PendingPrefix.VIEW),
                "copy": self._copy,
                "cut": lambda: session.yank("cut"),
                "paste": session.paste,
                "open_shell": session.open_shell,
                "open_with_picker": session.open_program_list,
                "open_with_quick": lambda: self._set_prefix(PendingPrefix.OPEN_WITH),
            },
        )
        self._prefix_handlers: dict[PendingPrefix, Callable[[str], Effect | None]] = {
            PendingPrefix.ADD: self._handle_add_prefix,
            PendingPrefix.DELETE: keymap.dispatcher(
                "delete", {"confirm": self._begin_delete}
            ).dispatch,
            PendingPrefix.COPY: keymap.dispatcher(
                "copy", {"path": session.copy_selected_path}
            ).dispatch,
            PendingPrefix.SETTINGS: keymap.dispatcher(
                "settings",
                {
                    "permissions": lambda: session.toggle_setting("show_permissions"),
                    "dates": lambda: session.toggle_setting("show_dates"),
                    "owner": lambda: session.toggle_setting("show_owner"),
                    "metadata": lambda: session.toggle_setting("show_metadata"),
                    "hidden": session.toggle_hidden,
                },
            ).dispatch,
            PendingPrefix.VIEW: keymap.dispatcher(
                "view",
                {
                    "permissions": lambda: session.toggle_setting("show_list_permissions"),
                    "owner": lambda: session.toggle_setting("show_list_owner"),
                },
            ).dispatch,
            PendingPrefix.OPEN_WITH: self._handle_open_with_prefix,
        }
        self._add_dir = keymap.combos("add", "dir")

    def handle(self, key: str) -> Effect:
        state = self.session.state
        prefix = state.pending_prefix
        if prefix is not None:
            state.pending_prefix = None
            if key == "ESC":
                return effects.REDRAW
            handled = self._prefix_handlers[prefix](key)
            if handled is not None:
                return handled.merge(effects.REDRAW)
        handled = self._bindings.dispatch(key)
        if handled is None:
            return effects.REDRAW if prefix is not None else effects.NONE
        return handled

    def _set_prefix(self, prefix: PendingPrefix) -> Effect:
        self.session.state.pending_prefix = prefix
        return effects.REDRAW

    def _begin(self, kind: InputActionKind, target=None) -> Effect:
        action = InputAction(kind, target=target)
        return self.session.begin_input(action, initial_buffer(self.session, action))

    def _begin_rename(self) -> Effect:
        entry = self.session.selected_entry()
        if entry is None:
            return effects.NONE
        return self._begin(InputActionKind.RENAME, target=entry.path)

    def _begin_delete(self) -> Effect:
        entry = self.session.selected_entry()
        if entry is None:
            return effects.NONE
        return self._begin(InputActionKind.CONFIRM_DELETE, target=entry.path)

    def _copy(self) -> Effect:
        effect = self.session.yank("copy")
        self.session.state.pending_prefix = PendingPrefix.COPY
        return effect

    def _handle_add_prefix(self, key: str) -> Effect | None:
        if key in self._add_dir:
            return self._begin(InputActionKind.ADD_DIR)
        if is_text_key(key):
            return self.session.begin_input(InputAction(InputActionKind.ADD_FILE), key)
        return None

    def _handle_open_with_prefix(self, key: str) -> Effect | None:
        if len(key) == 1 and key.isdigit():
            return self.session.open_with_quick(key)
        return None

